"""Entries of an mtree specification and the paths they describe."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import IntEnum

from mtree.keywords import KeyVal, merge_keyval_set

__all__ = ["EntryType", "Entry", "clean_path"]


class EntryType(IntEnum):
    """The kinds of line found in an mtree specification."""

    SIGNATURE = 0  # first line of the file, like "#mtree v2.0"
    BLANK = 1  # blank lines are ignored
    COMMENT = 2  # lines beginning with "#" are ignored
    SPECIAL = 3  # lines starting with "/", such as /set and /unset
    RELATIVE = 4  # first word has no "/": a name relative to the current directory
    DOTDOT = 5  # ".." steps back up one directory
    FULL = 6  # first word contains a "/": a full path name

    def __str__(self) -> str:
        return _TYPE_NAMES[self]


_TYPE_NAMES = {
    EntryType.SIGNATURE: "SignatureType",
    EntryType.BLANK: "BlankType",
    EntryType.COMMENT: "CommentType",
    EntryType.SPECIAL: "SpecialType",
    EntryType.RELATIVE: "RelativeType",
    EntryType.DOTDOT: "DotDotType",
    EntryType.FULL: "FullType",
}

_SIMPLE_ESCAPES = {
    "\\": 0x5C,
    "n": 0x0A,
    "t": 0x09,
    "r": 0x0D,
    "b": 0x08,
    "a": 0x07,
    "v": 0x0B,
    "f": 0x0C,
    "s": 0x20,
    "E": 0x1B,
}


def _unvis(text: str) -> str:
    """Decode backslash escapes (octal and C style) in an encoded name."""
    out = bytearray()
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char != "\\":
            out += char.encode("utf-8", "surrogateescape")
            pos += 1
            continue
        pos += 1
        if pos >= length:
            raise ValueError(f"unterminated escape in {text!r}")
        char = text[pos]
        if char in "01234567":
            end = pos
            while end < length and end - pos < 3 and text[end] in "01234567":
                end += 1
            value = int(text[pos:end], 8)
            if value > 0xFF:
                raise ValueError(f"octal escape out of range in {text!r}")
            out.append(value)
            pos = end
        elif char in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[char])
            pos += 1
        else:
            raise ValueError(f"invalid escape \\{char} in {text!r}")
    return out.decode("utf-8", "surrogateescape")


def _clean(path: str) -> str:
    """Lexically clean a slash separated path."""
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return _clean(joined) if joined else ""


def clean_path(path: str) -> str:
    """Clean ``path`` so that a relative result never climbs above its root."""
    if path == "":
        return ""
    path = _clean(path)
    if not path.startswith("/"):
        path = _clean("/" + path)
        path = path[1:] or "."
    return _clean(path)


@dataclass(eq=False)
class Entry:
    """One line of an mtree specification."""

    name: str = ""
    type: EntryType = EntryType.RELATIVE
    keywords: list[KeyVal] = field(default_factory=list)
    raw: str = ""
    pos: int = 0
    parent: Entry | None = field(default=None, repr=False)
    set: Entry | None = field(default=None, repr=False)
    children: list[Entry] = field(default_factory=list, repr=False)
    prev: Entry | None = field(default=None, repr=False)
    next: Entry | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.keywords = [KeyVal(kv) for kv in self.keywords]

    def descend(self, filename: str) -> Entry | None:
        """Return the child named ``filename``, searching from the last child."""
        if filename in (".", ""):
            return self
        for child in reversed(self.children):
            if child.name == filename:
                return child
        return None

    def ascend(self) -> Entry | None:
        """Return the parent entry."""
        return self.parent

    def path(self) -> str:
        """Return the decoded, cleaned path of this entry."""
        decoded = clean_path(_unvis(self.name))
        if self.parent is None or self.type == EntryType.FULL:
            return decoded
        return clean_path(_join(self.parent.path(), decoded))

    def all_keys(self) -> list[KeyVal]:
        """Return the keywords of the current /set merged with this entry's own."""
        if self.set is not None:
            return merge_keyval_set(self.set.keywords, self.keywords)
        return list(self.keywords)

    def is_dir(self) -> bool:
        """Whether the ``type`` keyword says this entry is a directory."""
        for kv in self.all_keys():
            if kv.keyword().prefix() == "type":
                return kv.value() == "dir"
        return False

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        if self.type == EntryType.BLANK:
            return ""
        if self.type == EntryType.DOTDOT:
            return self.name
        words = " ".join(self.keywords)
        if (
            self.type in (EntryType.SPECIAL, EntryType.FULL)
            or "type=dir" in self.keywords
        ):
            return f"{self.name} {words}"
        return f"    {self.name} {words}"