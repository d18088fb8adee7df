"""Recognise ``{{#...}}`` helper links in chapter text and parse their targets."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Union

__all__ = [
    "LineRange",
    "Anchor",
    "Escaped",
    "Include",
    "Playground",
    "RustdocInclude",
    "Title",
    "Link",
    "LinkType",
    "RangeOrAnchor",
    "parse_include_path",
    "parse_rustdoc_include_path",
    "parse_range_or_anchor",
    "find_links",
]

log = logging.getLogger(__name__)

ESCAPE_CHAR = "\\"
_USIZE_MAX = (1 << 64) - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_LINK_RE = re.compile(
    r"\\\{\{#.*\}\}"  # an escaped link
    r"|"
    r"\{\{\s*"  # opening braces and whitespace
    r"#([a-zA-Z0-9_]+)"  # link type
    r"\s+"  # separating whitespace
    r"([^}]+)"  # target path and space separated properties
    r"\}\}"  # closing braces
)


@dataclass(frozen=True)
class LineRange:
    """A zero-based, end-exclusive range of lines; ``None`` leaves a side open."""

    start: int | None = None
    end: int | None = None


@dataclass(frozen=True)
class Anchor:
    """A named anchor whose enclosed lines are to be included."""

    name: str


RangeOrAnchor = Union[LineRange, Anchor]


@dataclass(frozen=True)
class Escaped:
    """A link preceded by a backslash, to be emitted literally without it."""


@dataclass(frozen=True)
class Include:
    """``{{#include path}}``: insert a file, or part of one."""

    path: Path
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class Playground:
    """``{{#playground path attrs...}}``: insert a runnable code block."""

    path: Path
    attrs: tuple[str, ...] = ()


@dataclass(frozen=True)
class RustdocInclude:
    """``{{#rustdoc_include path}}``: insert a file, hiding the unselected lines."""

    path: Path
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class Title:
    """``{{#title text}}``: override the chapter's page title."""

    title: str


LinkType = Union[Escaped, Include, Playground, RustdocInclude, Title]


@dataclass(frozen=True)
class Link:
    """A helper link found in some text, with its position and kind."""

    start_index: int
    end_index: int
    link_type: LinkType
    link_text: str


def _parse_usize(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _USIZE_MAX else None


def parse_range_or_anchor(parts: str | None) -> RangeOrAnchor:
    """Parse the part after the path: ``start:end``, a single line, or an anchor name."""
    elements = (parts or "").split(":", 2)
    first = elements[0]

    value = _parse_usize(first)
    if value is not None:
        # line numbers are one-based
        start: int | None = max(value - 1, 0)
    elif first == "":
        start = None
    else:
        return Anchor(first)

    if len(elements) > 1:
        end_given = True
        end = _parse_usize(elements[1])
    else:
        end_given = False
        end = None

    if start is not None:
        if not end_given:
            return LineRange(start, start + 1)
        return LineRange(start, end)
    if end_given and end is not None:
        return LineRange(None, end)
    return LineRange()


def _split_path(path: str) -> tuple[Path, RangeOrAnchor]:
    name, sep, rest = path.partition(":")
    return Path(name), parse_range_or_anchor(rest if sep else None)


def parse_include_path(path: str) -> Include:
    """Parse the target of an ``include`` link."""
    return Include(*_split_path(path))


def parse_rustdoc_include_path(path: str) -> RustdocInclude:
    """Parse the target of a ``rustdoc_include`` link."""
    return RustdocInclude(*_split_path(path))


def _link_type(match: re.Match[str]) -> LinkType | None:
    typ, rest = match.group(1), match.group(2)
    if typ is not None and rest is not None:
        if typ == "title":
            return Title(rest)
        words = rest.split()
        if not words:
            return None
        file_arg, props = words[0], tuple(words[1:])
        if typ == "include":
            return parse_include_path(file_arg)
        if typ == "playground":
            return Playground(Path(file_arg), props)
        if typ == "playpen":
            log.warning(
                "the {{#playpen}} expression has been renamed to {{#playground}}, "
                "please update your book to use the new name"
            )
            return Playground(Path(file_arg), props)
        if typ == "rustdoc_include":
            return parse_rustdoc_include_path(file_arg)
        return None
    if typ is None and rest is None and match.group(0).startswith(ESCAPE_CHAR):
        return Escaped()
    return None


def find_links(contents: str) -> Iterator[Link]:
    """Yield every recognised helper link in ``contents``, in order."""
    for match in _LINK_RE.finditer(contents):
        link_type = _link_type(match)
        if link_type is not None:
            yield Link(match.start(), match.end(), link_type, match.group(0))