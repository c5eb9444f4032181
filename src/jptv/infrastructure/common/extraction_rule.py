"""Named regular-expression rules for scraping third-party markup.

Each rule carries a sample input it is expected to match so that the
pattern can be tested on its own and kept honest when upstream markup
drifts.  A rule that does not match returns ``None``; "not found" is
an expected outcome, never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class ExtractionRule:
    """A compiled pattern with a name and a documented example input."""

    name: str
    pattern: re.Pattern[str]
    example: str = ""

    @classmethod
    def compile(
        cls, name: str, pattern: str, *, example: str = "", flags: int = 0
    ) -> ExtractionRule:
        return cls(name=name, pattern=re.compile(pattern, flags), example=example)

    def search(self, text: str) -> re.Match[str] | None:
        if not text:
            return None
        return self.pattern.search(text)

    def first(self, text: str, group: int = 1) -> str | None:
        """Return *group* of the first match, or None."""
        match = self.search(text)
        if match is None:
            return None
        return match.group(group)

    def groups(self, text: str) -> tuple[str, ...] | None:
        match = self.search(text)
        if match is None:
            return None
        return match.groups()

    def iter_first_groups(self, text: str) -> Iterator[str]:
        """Yield group 1 of every match, left to right."""
        if not text:
            return
        for match in self.pattern.finditer(text):
            yield match.group(1)
