# mtree

A library for working with mtree(8) style directory hierarchy manifests.
A manifest lists files under a root directory together with keywords such as
`type`, `size`, `mode`, `uid`, `gid`, `time`, `sha256digest` and `xattr`.
This package parses manifests, writes them back out, compares two of them to
find files that are missing, extra or modified, and computes keyword values
for individual files.

## Parsing and writing a manifest

```python
import sys

from mtree.parse import parse_spec

with open("root.mtree") as fh:
    spec = parse_spec(fh)

print(spec.used_keywords())   # keywords used by entries and /set lines
spec.write_to(sys.stdout)     # entries are written in their original order
```

`parse_spec` accepts any iterable of text lines and returns a
`DirectoryHierarchy` whose `entries` are `Entry` objects. Each entry keeps the
`/set` line in force when it was read, so `entry.all_keys()` returns its
keywords merged with those defaults, the entry's own values winning.
`entry.path()` gives the decoded, cleaned path relative to the manifest root,
and `entry.is_dir()` tells whether its `type` keyword is `dir`.

## Comparing two manifests

```python
from mtree.compare import compare
from mtree.parse import parse_spec
from mtree.report import format_bsd

with open("before.mtree") as old_fh, open("after.mtree") as new_fh:
    before = parse_spec(old_fh)
    after = parse_spec(new_fh)

deltas = compare(before, after, None)
print(format_bsd(deltas), end="")
```

Each result is an `InodeDelta` whose `type` is a `DifferenceType`
(`MISSING`, `EXTRA` or `MODIFIED`). Modified results carry `keys`, a list of
`KeyDelta` objects naming the keywords that changed; `old()` and `new()`
return the values on each side where they exist. Pass a list of keywords
instead of `None` to compare only keys with those prefixes. `compare_same`
also reports unchanged entries with the type `SAME`. Passing `None` for a
hierarchy treats it as empty.

`mtree.report` turns results into text:

* `format_bsd` – one line per difference, in the style of mtree(8)
* `format_json` – the full results as JSON
* `format_path` – only the paths of modified entries

It also has `filter_missing_keywords` and `is_tar_spec` for relaxing
comparisons against manifests made from tar archives, `split_keywords_arg`
for comma or space separated keyword lists, and `list_keywords` and
`list_used` for describing available and used keywords.

## Keywords

`mtree.keywords` provides `Keyword` and `KeyVal` (a `keyword=value` pair),
synonym handling (`keyword_synonym("sha1")` gives `sha1digest`) and helpers
such as `merge_keyval_set`, `has_keyword` and `keyval_selector`.

`mtree.keywordfuncs.KEYWORD_FUNCS` maps each keyword name to a function that
computes it for a file from its `lstat` result or a `tarfile.TarInfo`:

```python
import os

from mtree.keywordfuncs import KEYWORD_FUNCS

path = "some/file"
info = os.lstat(path)
with open(path, "rb") as fh:
    print(KEYWORD_FUNCS["sha256"](path, info, fh))   # [KeyVal('sha256digest=...')]
```

`mtree.cksum.cksum` returns the POSIX `cksum` CRC of a binary stream together
with the number of bytes read.

`mtree.fseval` defines the `FsEval` protocol for opening, stat-ing and listing
files, with `DefaultFsEval` going straight to the operating system.

## What this package does not do

There is no command-line program. The package does not walk a directory tree
to build a manifest on its own, does not check a directory against a manifest
directly, does not read a whole tar archive into a manifest, and does not
change file attributes to match a manifest. Manifests to compare have to be
parsed from text or assembled from `Entry` objects by the caller.