"""Keywords and ``keyword=value`` pairs of an mtree specification."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "Keyword",
    "KeyVal",
    "DEFAULT_KEYWORDS",
    "DEFAULT_TAR_KEYWORDS",
    "BSD_KEYWORDS",
    "SET_KEYWORDS",
    "keyword_synonym",
    "has",
    "has_keyword",
    "merge_set",
    "merge_keyval_set",
    "keyval_selector",
    "keyval_difference",
]


class Keyword(str):
    """The name of a keyword, the part of ``keyword=value`` before the ``=``."""

    __slots__ = ()

    def prefix(self) -> Keyword:
        """Return the part before the first ``.``, or the whole keyword."""
        return Keyword(self.split(".", 1)[0])

    def suffix(self) -> str:
        """Return the part after the first ``.``, or the whole keyword."""
        if "." in self:
            return str(self.split(".", 1)[1])
        return str(self)

    def is_default(self) -> bool:
        """Whether this keyword is one of the default keywords."""
        return self in DEFAULT_KEYWORDS

    def is_bsd(self) -> bool:
        """Whether this keyword is supported by the upstream BSD mtree."""
        return self in BSD_KEYWORDS

    def synonym(self) -> Keyword:
        """Return the canonical name of this keyword."""
        return keyword_synonym(self)


class KeyVal(str):
    """A single ``keyword=value`` pair."""

    __slots__ = ()

    def keyword(self) -> Keyword:
        """Return the keyword, or an empty keyword if there is no ``=``."""
        if "=" not in self:
            return Keyword("")
        return Keyword(self.strip().split("=", 1)[0])

    def value(self) -> str:
        """Return the value, or an empty string if there is no ``=``."""
        if "=" not in self:
            return ""
        return self.strip().split("=", 1)[1]

    def new_value(self, newval: str) -> KeyVal:
        """Return a pair with the same keyword and ``newval`` as its value."""
        return KeyVal(f"{self.keyword()}={newval}")

    def equal(self, other: str) -> bool:
        """Whether both pairs have the same keyword and the same value."""
        other = KeyVal(other)
        return self.keyword() == other.keyword() and self.value() == other.value()


def _keywords(*names: str) -> list[Keyword]:
    return [Keyword(name) for name in names]


DEFAULT_KEYWORDS: list[Keyword] = _keywords(
    "size", "type", "uid", "gid", "mode", "link", "nlink", "time"
)

DEFAULT_TAR_KEYWORDS: list[Keyword] = _keywords(
    "size", "type", "uid", "gid", "mode", "link", "tar_time"
)

BSD_KEYWORDS: list[Keyword] = _keywords(
    "cksum",
    "flags",
    "ignore",
    "gid",
    "gname",
    "link",
    "md5",
    "md5digest",
    "mode",
    "nlink",
    "nochange",
    "optional",
    "ripemd160digest",
    "rmd160",
    "rmd160digest",
    "sha1",
    "sha1digest",
    "sha256",
    "sha256digest",
    "sha384",
    "sha384digest",
    "sha512",
    "sha512digest",
    "size",
    "tags",
    "time",
    "type",
    "uid",
    "uname",
)

SET_KEYWORDS: list[Keyword] = _keywords("uid", "gid")

_SYNONYMS = {
    "md5": "md5digest",
    "rmd160": "ripemd160digest",
    "rmd160digest": "ripemd160digest",
    "sha1": "sha1digest",
    "sha256": "sha256digest",
    "sha384": "sha384digest",
    "sha512": "sha512digest",
    "sha512256": "sha512256digest",
    "xattrs": "xattr",
}


def keyword_synonym(name: str) -> Keyword:
    """Return the canonical name of a keyword, or the name itself."""
    return Keyword(_SYNONYMS.get(name, name))


def has(keyvals: Iterable[str], keyword: str) -> list[KeyVal]:
    """Return the pairs whose keyword prefix matches that of ``keyword``."""
    return has_keyword(keyvals, Keyword(keyword))


def has_keyword(keyvals: Iterable[str], keyword: str) -> list[KeyVal]:
    """Return the pairs whose keyword prefix matches that of ``keyword``."""
    wanted = Keyword(keyword).prefix()
    return [
        KeyVal(kv) for kv in keyvals if KeyVal(kv).keyword().prefix() == wanted
    ]


def merge_set(set_keyvals: Iterable[str], entry_keyvals: Iterable[str]) -> list[KeyVal]:
    """Merge two lists of ``keyword=value`` strings; the entry's values win."""
    return merge_keyval_set(
        [KeyVal(kv) for kv in set_keyvals], [KeyVal(kv) for kv in entry_keyvals]
    )


def merge_keyval_set(
    set_keyvals: Iterable[str], entry_keyvals: Iterable[str]
) -> list[KeyVal]:
    """Merge two lists of pairs; on a duplicate keyword the entry's pair wins."""
    entry = [KeyVal(kv) for kv in entry_keyvals]
    merged: list[KeyVal] = []
    seen: set[Keyword] = set()
    for kv in (KeyVal(item) for item in set_keyvals):
        word = kv.keyword()
        chosen = kv
        for match in has_keyword(entry, word):
            if match.keyword() == word:
                chosen = match
        merged.append(chosen)
        seen.add(word)
    merged.extend(kv for kv in entry if kv.keyword() not in seen)
    return merged


def keyval_selector(keyvals: Iterable[str], keyset: Iterable[str]) -> list[KeyVal]:
    """Keep the pairs whose keyword prefix is among the prefixes of ``keyset``."""
    prefixes = {Keyword(k).prefix() for k in keyset}
    return [
        KeyVal(kv) for kv in keyvals if KeyVal(kv).keyword().prefix() in prefixes
    ]


def keyval_difference(this: Iterable[str], that: Iterable[str]) -> list[KeyVal]:
    """Return the pairs of ``this`` absent from ``that``; ``that`` if ``this`` is empty."""
    this = [KeyVal(kv) for kv in this]
    that = [KeyVal(kv) for kv in that]
    if not this:
        return that
    return [kv for kv in this if kv not in that]