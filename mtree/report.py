"""Formatting of validation results and keyword listings for the command line."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable, Sequence

from mtree.compare import DifferenceType, InodeDelta
from mtree.entry import Entry
from mtree.hierarchy import DirectoryHierarchy
from mtree.keywordfuncs import KEYWORD_FUNCS
from mtree.keywords import Keyword, keyword_synonym

__all__ = [
    "FORMATS",
    "format_bsd",
    "format_json",
    "format_path",
    "is_dir_entry",
    "filter_missing_keywords",
    "is_tar_spec",
    "split_keywords_arg",
    "list_keywords",
    "list_used",
]


def format_bsd(deltas: Iterable[InodeDelta]) -> str:
    """One line per discrepancy, in the style of BSD mtree."""
    return "".join(f"{delta}\n" for delta in deltas)


def format_json(deltas: Sequence[InodeDelta] | None) -> str:
    """All discrepancies as a single JSON document followed by a newline."""
    payload = None if deltas is None else [delta.to_dict() for delta in deltas]
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False) + "\n"


def format_path(deltas: Iterable[InodeDelta]) -> str:
    """Only the paths of objects that were modified, one per line."""
    return "".join(
        f"{delta.path}\n" for delta in deltas if delta.type == DifferenceType.MODIFIED
    )


FORMATS = {
    "bsd": format_bsd,
    "json": format_json,
    "path": format_path,
}


def is_dir_entry(entry: Entry) -> bool:
    """Whether the entry's own ``type`` keyword says it is a directory."""
    for kv in entry.keywords:
        if kv.keyword() == "type":
            return kv.value() == "dir"
    return False


def filter_missing_keywords(diffs: Iterable[InodeDelta]) -> list[InodeDelta]:
    """Drop discrepancies that tar-generated manifests cannot avoid.

    For modified directories the ``size`` key is removed; a directory whose
    only discrepancy is its size, and the root ``.`` directory, are dropped.
    """
    kept: list[InodeDelta] = []
    for diff in diffs:
        if diff.type == DifferenceType.MODIFIED:
            old, new = diff.old(), diff.new()
            if (old is not None and is_dir_entry(old)) or (
                new is not None and is_dir_entry(new)
            ):
                if diff.path == ".":
                    continue
                keys = list(diff.keys or [])
                if any(k.name == "size" for k in keys):
                    if len(keys) < 2:
                        continue
                    diff = dataclasses.replace(
                        diff, keys=[k for k in keys if k.name != "size"]
                    )
        kept.append(diff)
    return kept


def is_tar_spec(spec: DirectoryHierarchy) -> bool:
    """Whether the manifest looks generated from a tar archive.

    The first directory entry is inspected: tar manifests lack its ``size``.
    """
    for entry in spec.entries:
        if not is_dir_entry(entry):
            continue
        return not any(kv.keyword() == "size" for kv in entry.keywords)
    return False


def split_keywords_arg(text: str) -> list[Keyword]:
    """Split a comma or space separated keyword list into canonical keywords."""
    return [keyword_synonym(word) for word in text.replace(",", " ").split()]


def list_keywords() -> str:
    """Describe every available keyword, marking defaults and non-BSD ones."""
    lines = ["Available keywords:\n"]
    for name in KEYWORD_FUNCS:
        keyword = Keyword(name)
        line = f" {keyword}"
        if keyword.is_default():
            line += " (default)"
        if not keyword.is_bsd():
            line += " (not upstream)"
        lines.append(line + "\n")
    return "".join(lines)


def list_used(
    files: Iterable[str], keywords: Sequence[str] | None, result_format: str
) -> str:
    """Describe the keywords used by a manifest, once for each named file."""
    parts: list[str] = []
    for name in files:
        if result_format == "json":
            words = None if keywords is None else [str(k) for k in keywords]
            parts.append(json.dumps({name: words}, indent=2, ensure_ascii=False) + "\n")
            continue
        parts.append(f"Keywords used in [{name}]:\n")
        for keyword in keywords or []:
            line = f" {keyword}"
            if Keyword(keyword) not in KEYWORD_FUNCS:
                line += " (unsupported)"
            parts.append(line + "\n")
    return "".join(parts)