"""Semantic validation rules for package contents."""