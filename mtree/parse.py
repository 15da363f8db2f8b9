"""Reading mtree specifications."""

from __future__ import annotations

import posixpath
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Iterable

from mtree.entry import Entry, EntryType
from mtree.hierarchy import DirectoryHierarchy
from mtree.keywords import KeyVal

__all__ = ["parse_spec"]


@dataclass
class _Creator:
    """State kept while building a hierarchy."""

    hierarchy: DirectoryHierarchy = field(default_factory=DirectoryHierarchy)
    cur_set: Entry | None = None
    cur_dir: Entry | None = None
    cur_ent: Entry | None = None


def _lines(stream: Iterable[str]) -> Iterator[str]:
    for line in stream:
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def _join_continuations(text: str, lines: Iterator[str]) -> str:
    while text.endswith("\\"):
        text = text[:-1] + next(lines, "")
    return text


def _clean_name(name: str) -> str:
    cleaned = posixpath.normpath(name)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def parse_spec(stream: Iterable[str]) -> DirectoryHierarchy:
    """Parse an mtree specification from a text stream."""
    creator = _Creator()
    lines = _lines(stream)
    pos = 0
    for text in lines:
        trimmed = text.lstrip(" \t")
        fields = text.split()
        entry = Entry(pos=pos)
        if trimmed.startswith("#"):
            entry.raw = text
            entry.type = (
                EntryType.SIGNATURE
                if trimmed.startswith("#mtree")
                else EntryType.COMMENT
            )
        elif text == "":
            entry.type = EntryType.BLANK
        elif text.startswith("/"):
            entry.type = EntryType.SPECIAL
            fields = _join_continuations(text, lines).split()
            entry.name = fields[0]
            entry.keywords = [KeyVal(word) for word in fields[1:]]
            if entry.name == "/set":
                creator.cur_set = entry
            elif entry.name == "/unset":
                creator.cur_set = None
        elif fields and fields[0] == "..":
            entry.type = EntryType.DOTDOT
            entry.raw = text
            if creator.cur_dir is not None:
                creator.cur_dir = creator.cur_dir.parent
        elif fields:
            fields = _join_continuations(text, lines).split()
            entry.name = _clean_name(fields[0])
            entry.type = EntryType.FULL if "/" in entry.name else EntryType.RELATIVE
            entry.keywords = [KeyVal(word) for word in fields[1:]]
            entry.parent = creator.cur_dir
            for kv in entry.keywords:
                if kv.keyword() == "type":
                    if kv.value() == "dir":
                        creator.cur_dir = entry
                    else:
                        creator.cur_ent = entry
            entry.set = creator.cur_set
        else:
            continue
        creator.hierarchy.entries.append(entry)
        pos += 1
    return creator.hierarchy