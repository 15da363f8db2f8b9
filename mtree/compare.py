"""Comparing two mtree directory hierarchies."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from mtree.entry import Entry, EntryType
from mtree.hierarchy import DirectoryHierarchy
from mtree.keywords import KeyVal, Keyword, has_keyword

__all__ = [
    "DifferenceType",
    "KeyDelta",
    "InodeDelta",
    "compare_entry",
    "compare",
    "compare_same",
]

_TIME = Keyword("time")
_TAR_TIME = Keyword("tar_time")


class DifferenceType(str, Enum):
    """The kind of discrepancy found for an object or one of its keys."""

    MISSING = "missing"  # present in the old manifest only
    EXTRA = "extra"  # present in the new manifest only
    MODIFIED = "modified"  # present in both, with differing keys
    SAME = "same"  # present in both and unchanged (compare_same only)
    ERRORED = "errored"  # an attempted update of a keyword failed

    def __str__(self) -> str:
        return self.value


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass(frozen=True)
class KeyDelta:
    """A discrepancy in one key of an object between two manifests."""

    type: DifferenceType
    name: Keyword
    old_value: str = ""
    new_value: str = ""
    error: Exception | None = None

    def old(self) -> str | None:
        """The value in the old manifest, or None if it had none."""
        if self.type in (DifferenceType.MODIFIED, DifferenceType.MISSING):
            return self.old_value
        return None

    def new(self) -> str | None:
        """The value in the new manifest, or None if it had none."""
        if self.type in (DifferenceType.MODIFIED, DifferenceType.EXTRA):
            return self.new_value
        return None

    def to_dict(self) -> dict:
        """A JSON-ready representation."""
        return {
            "type": self.type.value,
            "name": str(self.name),
            "old": self.old_value,
            "new": self.new_value,
        }


@dataclass(frozen=True)
class InodeDelta:
    """A discrepancy in one filesystem object between two manifests."""

    type: DifferenceType
    path: str
    old_entry: Entry | None = field(default=None, repr=False)
    new_entry: Entry | None = field(default=None, repr=False)
    keys: list[KeyDelta] | None = None

    def old(self) -> Entry | None:
        """The entry in the old manifest, for modified and missing objects."""
        if self.type in (DifferenceType.MODIFIED, DifferenceType.MISSING):
            return self.old_entry
        return None

    def new(self) -> Entry | None:
        """The entry in the new manifest, for modified and extra objects."""
        if self.type in (DifferenceType.MODIFIED, DifferenceType.EXTRA):
            return self.new_entry
        return None

    def to_dict(self) -> dict:
        """A JSON-ready representation."""
        return {
            "type": self.type.value,
            "path": self.path,
            "keys": None if self.keys is None else [k.to_dict() for k in self.keys],
        }

    def __str__(self) -> str:
        if self.type == DifferenceType.MODIFIED:
            first = self.keys[0]
            return (
                f"{_quote(self.path)}: keyword {_quote(str(first.name))}: "
                f"expected {first.old_value}; got {first.new_value}"
            )
        if self.type == DifferenceType.EXTRA:
            return f"{_quote(self.path)}: unexpected path"
        if self.type == DifferenceType.MISSING:
            return f"{_quote(self.path)}: missing path"
        raise ValueError(f"cannot describe a {self.type.value} delta")


@dataclass
class _State:
    old: object = None
    new: object = None


def _is_always_compared(key: Keyword) -> bool:
    return key in (_TAR_TIME, _TIME) or key.prefix() == "xattr"


def _as_tar_time(kv: KeyVal | None, which: str) -> KeyVal:
    if kv is None:
        raise ValueError(f"failed to parse {which} time: no time value")
    try:
        seconds = float(kv.value())
    except ValueError as exc:
        raise ValueError(f"failed to parse {which} time: {exc}") from exc
    return KeyVal(f"tar_time={int(seconds)}.000000000")


def compare_entry(old_entry: Entry, new_entry: Entry) -> list[KeyDelta]:
    """Return the key discrepancies between two entries for the same object."""
    old_keys = old_entry.all_keys()
    new_keys = new_entry.all_keys()
    diffs: dict[Keyword, _State] = {}

    for kv in old_keys:
        key = kv.keyword()
        if not _is_always_compared(key) and not has_keyword(new_keys, key):
            continue
        diffs.setdefault(key, _State()).old = kv

    for kv in new_keys:
        key = kv.keyword()
        if not _is_always_compared(key) and not has_keyword(old_keys, key):
            continue
        diffs.setdefault(key, _State()).new = kv

    if _TAR_TIME in diffs and _TIME in diffs:
        time_state = diffs.pop(_TIME)
        tar_state = diffs[_TAR_TIME]
        if tar_state.old is None:
            tar_state.old = _as_tar_time(time_state.old, "old")
        elif tar_state.new is None:
            tar_state.new = _as_tar_time(time_state.new, "new")
        else:
            raise ValueError("time and tar_time set in the same manifest")

    results: list[KeyDelta] = []
    for name, state in diffs.items():
        if state.old is None and state.new is None:
            raise ValueError(f"invalid state: both old and new are nil: key={name}")
        if state.new is None:
            results.append(
                KeyDelta(DifferenceType.MISSING, name, old_value=state.old.value())
            )
        elif state.old is None:
            results.append(
                KeyDelta(DifferenceType.EXTRA, name, new_value=state.new.value())
            )
        elif not state.old.equal(state.new):
            results.append(
                KeyDelta(
                    DifferenceType.MODIFIED,
                    name,
                    old_value=state.old.value(),
                    new_value=state.new.value(),
                )
            )
    return results


def _collect(
    diffs: dict[str, _State], dh: DirectoryHierarchy | None, side: str
) -> None:
    if dh is None:
        return
    for entry in dh.entries:
        if entry.type in (EntryType.RELATIVE, EntryType.FULL):
            setattr(diffs.setdefault(entry.path(), _State()), side, entry)


def _compare(
    old_dh: DirectoryHierarchy | None,
    new_dh: DirectoryHierarchy | None,
    keys,
    same: bool,
) -> list[InodeDelta]:
    diffs: dict[str, _State] = {}
    _collect(diffs, old_dh, "old")
    _collect(diffs, new_dh, "new")
    wanted = None if keys is None else [Keyword(k) for k in keys]

    results: list[InodeDelta] = []
    for path, state in diffs.items():
        if state.old is None and state.new is None:
            raise ValueError(f"invalid state: both old and new are nil: path={path}")
        if state.new is None:
            results.append(InodeDelta(DifferenceType.MISSING, path, old_entry=state.old))
        elif state.old is None:
            results.append(InodeDelta(DifferenceType.EXTRA, path, new_entry=state.new))
        else:
            try:
                changed = compare_entry(state.old, state.new)
            except ValueError as exc:
                raise ValueError(f"comparison failed {path}: {exc}") from exc
            if wanted is not None:
                changed = [d for d in changed if d.name.prefix() in wanted]
            if changed:
                results.append(
                    InodeDelta(
                        DifferenceType.MODIFIED, path, state.old, state.new, changed
                    )
                )
            elif same:
                results.append(
                    InodeDelta(DifferenceType.SAME, path, state.old, state.new, changed)
                )
    return results


def compare(
    old_dh: DirectoryHierarchy | None, new_dh: DirectoryHierarchy | None, keys
) -> list[InodeDelta]:
    """Return the discrepancies between an old and a new hierarchy.

    Only keys whose prefix is in ``keys`` are compared, unless ``keys`` is None.
    A missing hierarchy is treated as an empty one.
    """
    return _compare(old_dh, new_dh, keys, False)


def compare_same(
    old_dh: DirectoryHierarchy | None, new_dh: DirectoryHierarchy | None, keys
) -> list[InodeDelta]:
    """Like :func:`compare`, but also report unchanged objects as SAME."""
    return _compare(old_dh, new_dh, keys, True)