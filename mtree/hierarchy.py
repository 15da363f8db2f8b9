"""A parsed or generated mtree directory hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TextIO

from mtree.entry import Entry, EntryType
from mtree.keywords import Keyword, keyword_synonym

__all__ = ["DirectoryHierarchy"]


@dataclass(eq=False)
class DirectoryHierarchy:
    """The entries of an mtree specification."""

    entries: list[Entry] = field(default_factory=list)

    def write_to(self, stream: TextIO) -> int:
        """Write the specification in position order; return characters written."""
        self.entries.sort(key=lambda entry: entry.pos)
        total = 0
        for entry in self.entries:
            total += stream.write(f"{entry}\n")
        return total

    def used_keywords(self) -> list[Keyword]:
        """Return the keywords used by entries and /set lines, in first-seen order."""
        used: list[Keyword] = []
        for entry in self.entries:
            if entry.type in (EntryType.FULL, EntryType.RELATIVE) or (
                entry.type == EntryType.SPECIAL and entry.name == "/set"
            ):
                for kv in entry.keywords:
                    word = kv.keyword().prefix()
                    if word not in used:
                        used.append(keyword_synonym(word))
        return used