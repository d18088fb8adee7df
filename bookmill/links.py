"""Expand ``{{#...}}`` helper links in chapter text into the content they refer to."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from bookmill.linkparse import (
    Anchor,
    Escaped,
    Include,
    LineRange,
    Link,
    LinkType,
    Playground,
    RustdocInclude,
    Title,
    find_links,
)

__all__ = ["MAX_LINK_NESTED_DEPTH", "render_link", "replace_all"]

log = logging.getLogger(__name__)

MAX_LINK_NESTED_DEPTH = 10

_ANCHOR_START = re.compile(r"ANCHOR:\s*(?P<anchor_name>[\w_-]+)")
_ANCHOR_END = re.compile(r"ANCHOR_END:\s*(?P<anchor_name>[\w_-]+)")


def _lines(s: str) -> list[str]:
    """Split into lines the way a line iterator does: no trailing empty line, no ``\\r``."""
    if not s:
        return []
    parts = s.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _in_range(index: int, line_range: LineRange) -> bool:
    start = line_range.start or 0
    return index >= start and (line_range.end is None or index < line_range.end)


def _is_marker(line: str) -> bool:
    return bool(_ANCHOR_START.search(line) or _ANCHOR_END.search(line))


def _anchor_name(pattern: re.Pattern[str], line: str) -> str | None:
    match = pattern.search(line)
    return match.group("anchor_name") if match else None


def _take_lines(s: str, line_range: LineRange) -> str:
    start = line_range.start or 0
    return "\n".join(_lines(s)[start:line_range.end])


def _take_anchored_lines(s: str, anchor: str) -> str:
    selected: list[str] = []
    found = False
    for line in _lines(s):
        if found:
            if _anchor_name(_ANCHOR_END, line) == anchor:
                break
            if not _is_marker(line):
                selected.append(line)
        elif _anchor_name(_ANCHOR_START, line) == anchor:
            found = True
    return "\n".join(selected)


def _take_rustdoc_include_lines(s: str, line_range: LineRange) -> str:
    return "\n".join(
        line if _in_range(index, line_range) else f"#{line}"
        for index, line in enumerate(_lines(s))
    )


def _take_rustdoc_include_anchored_lines(s: str, anchor: str) -> str:
    output: list[str] = []
    within = False
    for line in _lines(s):
        if within:
            if _anchor_name(_ANCHOR_END, line) == anchor:
                within = False
            elif not _is_marker(line):
                output.append(line)
        else:
            start_name = _anchor_name(_ANCHOR_START, line)
            if start_name == anchor:
                within = True
            elif start_name is None and not _ANCHOR_END.search(line):
                output.append(f"#{line}")
    return "\n".join(output)


def _read_target(link: Link, target: Path) -> str:
    try:
        return target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise OSError(f"Could not read file for link {link.link_text} ({target})") from exc


def render_link(link: Link, base: str | Path) -> str:
    """Return the text that replaces ``link``, reading files relative to ``base``.

    A title link renders as an empty string; the caller takes the title from it.
    Raises ``OSError`` when the referenced file cannot be read.
    """
    base = Path(base)
    kind = link.link_type
    if isinstance(kind, Escaped):
        return link.link_text[1:]
    if isinstance(kind, Title):
        return ""
    if isinstance(kind, Include):
        contents = _read_target(link, base / kind.path)
        if isinstance(kind.range_or_anchor, Anchor):
            return _take_anchored_lines(contents, kind.range_or_anchor.name)
        return _take_lines(contents, kind.range_or_anchor)
    if isinstance(kind, RustdocInclude):
        contents = _read_target(link, base / kind.path)
        if isinstance(kind.range_or_anchor, Anchor):
            return _take_rustdoc_include_anchored_lines(contents, kind.range_or_anchor.name)
        return _take_rustdoc_include_lines(contents, kind.range_or_anchor)
    if isinstance(kind, Playground):
        contents = _read_target(link, base / kind.path)
        ftype = "rust," if kind.attrs else "rust"
        if not contents.endswith("\n"):
            contents += "\n"
        return f"```{ftype}{','.join(kind.attrs)}\n{contents}```\n"
    raise TypeError(f"unknown link type: {kind!r}")


def _relative_path(kind: LinkType, base: Path) -> Path | None:
    if isinstance(kind, (Include, Playground, RustdocInclude)):
        return (base / kind.path).parent
    return None


def replace_all(
    s: str,
    path: str | Path,
    source: str | Path,
    depth: int,
    chapter_title: str,
) -> tuple[str, str]:
    """Expand every helper link in ``s``, recursing into included files.

    Returns the expanded text and the chapter title, which a title link may
    have replaced. Links that fail to render are left in the text verbatim.
    """
    path = Path(path)
    pieces: list[str] = []
    previous_end = 0

    for link in find_links(s):
        pieces.append(s[previous_end:link.start_index])
        try:
            new_content = render_link(link, path)
        except OSError as exc:
            log.error('Error updating "%s", %s', link.link_text, exc)
            if exc.__cause__ is not None:
                log.warning("Caused By: %s", exc.__cause__)
            previous_end = link.start_index
            continue

        if isinstance(link.link_type, Title):
            chapter_title = link.link_type.title

        if depth < MAX_LINK_NESTED_DEPTH:
            rel_path = _relative_path(link.link_type, path)
            if rel_path is not None:
                new_content, chapter_title = replace_all(
                    new_content, rel_path, source, depth + 1, chapter_title
                )
            pieces.append(new_content)
        else:
            log.error("Stack depth exceeded in %s. Check for cyclic includes", source)
        previous_end = link.end_index

    pieces.append(s[previous_end:])
    return "".join(pieces), chapter_title