"""Typed nodes of a tagged document.

A tagged document is an ordered list of nodes. Tagline and body text carry
inline runs; links and citations carry plain strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

RunKind = Literal["plain", "highlight"]


@dataclass(frozen=True)
class Run:
    """A contiguous plain or highlighted sub-string within a node."""

    kind: RunKind
    text: str

    @property
    def highlighted(self) -> bool:
        return self.kind == "highlight"


@dataclass
class Tagline:
    runs: list[Run] = field(default_factory=list)
    highlight_color: str | None = None

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


@dataclass
class Text:
    runs: list[Run] = field(default_factory=list)
    highlight_color: str | None = None

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


@dataclass
class Link:
    href: str
    text: str


@dataclass
class Citation:
    text: str


Node = Tagline | Text | Link | Citation
