# pkgspec

`pkgspec` runs semantic checks over a package directory: its field
definitions, changelog, manifests, data streams and Kibana dashboards. Every
check takes a `pkgspec.fspath.DirFS` rooted at the package and returns a list
of `pkgspec.issues.ValidationError`; an empty list means the check passed.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Example

```python
from pkgspec.fspath import DirFS
from pkgspec.semantic.changelog import validate_version_integrity
from pkgspec.semantic.field_checks import validate_dimension_fields

package = DirFS("path/to/my_package")
for check in (validate_version_integrity, validate_dimension_fields):
    for error in check(package):
        print(error, error.code.value or "")
```

Error messages name files through `DirFS.path`, so they read relative to the
root the file system was opened on.

## Building blocks

- `pkgspec.fspath.DirFS` reads files below a root directory: `read_bytes`,
  `open`, `read_dir` (entries sorted by name), `stat`, `glob` (sorted
  relative paths) and `path(*names)`.
- `pkgspec.pkgpath.files(fsys, glob)` returns `PackageFile` objects for
  matching files. `PackageFile.values(path)` loads a `.json`, `.yaml` or
  `.yml` file and evaluates a JSONPath on it with `json_path_get`. The
  supported syntax is `$`, `.key`, `["key"]`, `[index]` and the wildcards
  `.*` / `[*]`; with a wildcard the result is a list of matches. Bad paths
  and missing keys raise `JSONPathError`.
- `pkgspec.specpatch` handles version-dependent RFC 6902 patches.
  `patch_for_version(target, versions)` gathers the operations of every
  `VersionPatch` whose `before` version is newer than the target;
  `apply_patch(document, operations)` applies `add`, `remove`, `replace`,
  `move`, `copy` and `test` to a copy of the document; `resolve_patch`
  does the same and reports failures as `PatchError`.
- `pkgspec.issues.ValidationError` carries a message and an `ErrorCode`
  (`ErrorCode.UNASSIGNED` by default).

## Semantic checks

Field definitions (`pkgspec.semantic.fields`) are read from
`data_stream/<name>/fields/*` and, for input packages, from `fields/*`.
`validate_fields(fsys, validate)` calls `validate(metadata, field)` on every
field, nested names joined with dots.

| Module | Checks |
| --- | --- |
| `semantic.field_checks` | `validate_date_fields`, `validate_dimension_fields`, `validate_field_groups`, `validate_unique_fields`, `validate_fields_limits(limit)` (returns a check) |
| `semantic.field_presence` | `validate_required_fields` (defaults to `data_stream.type`, `data_stream.dataset`, `data_stream.namespace`, `@timestamp`), `validate_dimensions_present`, `validate_external_fields_with_dev_folder` |
| `semantic.changelog` | `validate_version_integrity`, `validate_changelog_links` |
| `semantic.datastreams` | `validate_ilm_policy_present`, `validate_profiling_non_ga`, `validate_routing_rules_and_dataset`, `validate_prerelease` |
| `semantic.kibana_version` | `validate_minimum_kibana_version` |
| `semantic.visualizations` | `validate_visualizations_used_by_value` |

Smaller helpers are public too, for example
`datastreams.validate_prerelease_tag`, `datastreams.check_prerelease`,
`changelog.validate_github_link` and
`kibana_version.kibana_version_condition_is_greater_than_or_equal_to`.

## Warnings as errors

`pkgspec.semantic.warning.warn_on(check)` wraps a check so that errors
carrying a code are logged as warnings on the `pkgspec.semantic.warning`
logger and dropped, while uncoded errors are still returned. When the
environment variable `PACKAGE_SPEC_WARNINGS_AS_ERRORS` is `true` (or `1`,
`t`, `TRUE`, `True`, `T`) everything is returned. Use
`pkgspec.issues.enable_warnings_as_errors()` and
`disable_warnings_as_errors()` to set or clear it.

## What this package does not do

- It does not load folder specifications or check a package's layout
  (allowed names, required items, sizes, media types) against one; only the
  patch helpers in `pkgspec.specpatch` are provided for such specifications.
- It has no single entry point that runs every check for a package type and
  spec version; call the checks you need yourself.
- It has no command-line interface.