"""Detection of text regions excluded from wikilink extraction.

Three kinds of region are recognized:

- ``code-fence``: a fenced code block (three or more backticks or tildes). An
  unterminated fence runs to end-of-file.
- ``inline-code``: a backtick-delimited span on a single line.
- ``front-matter``: the ``---`` delimited block at the very top of a note. It is
  only emitted when ``ScanOptions.skip_frontmatter`` is set, and only when the
  block is terminated; an opening ``---`` with no closing delimiter is just a
  note that starts with a horizontal rule.
"""

from __future__ import annotations

import re
from typing import Optional

from vault_links.constants import FRONTMATTER_DELIMITER
from vault_links.data_models import ScanOptions, SkipRegion

BYTE_ORDER_MARK = "\ufeff"

FENCE_PATTERN = re.compile(r"^[ \t]*(?P<marker>`{3,}|~{3,})(?P<info>.*)$", re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"(?<!`)(?P<ticks>`+)(?!`).+?(?<!`)(?P=ticks)(?!`)")

# (line_number, offset, line) with line endings kept
_Line = tuple[int, int, str]


def split_lines(text: str) -> list[_Line]:
    """Split ``text`` into 1-indexed lines paired with their starting offsets."""
    lines: list[_Line] = []
    offset = 0
    for number, line in enumerate(text.splitlines(keepends=True), start=1):
        lines.append((number, offset, line))
        offset += len(line)
    return lines


def _is_frontmatter_delimiter(line: str) -> bool:
    return line.rstrip() == FRONTMATTER_DELIMITER


def _frontmatter_span(lines: list[_Line]) -> Optional[SkipRegion]:
    # A leading byte-order mark stays in the text but does not hide the opening delimiter
    if not lines or not _is_frontmatter_delimiter(lines[0][2].lstrip(BYTE_ORDER_MARK)):
        return None

    for number, offset, line in lines[1:]:
        if _is_frontmatter_delimiter(line):
            return SkipRegion(
                start=0,
                end=offset + len(line),
                kind="front-matter",
                start_line=1,
                end_line=number,
            )

    return None


def find_frontmatter_span(text: str) -> Optional[SkipRegion]:
    """Return the front-matter block of ``text``, or ``None`` when absent or unterminated."""
    return _frontmatter_span(split_lines(text))


def _open_fence(line: str) -> Optional[tuple[str, int]]:
    match = FENCE_PATTERN.match(line)
    if match is None:
        return None
    marker = match.group("marker")
    # A backtick fence's info string may not contain backticks; such a line is inline code
    if marker[0] == "`" and "`" in match.group("info"):
        return None
    return marker[0], len(marker)


def _closes_fence(line: str, fence_char: str, fence_length: int) -> bool:
    match = FENCE_PATTERN.match(line)
    if match is None:
        return False
    marker = match.group("marker")
    return (
        marker[0] == fence_char
        and len(marker) >= fence_length
        and not match.group("info").strip()
    )


def identify_skip_regions(
    text: str,
    options: Optional[ScanOptions] = None,
) -> frozenset[SkipRegion]:
    """Find every region of ``text`` that must not be scanned for wikilinks.

    Single forward pass over the lines. ``options.skip_frontmatter`` only decides
    whether the front-matter region is emitted; the pass itself is identical
    either way. Fence markers inside a terminated front-matter block never open
    a code fence.

    Args:
        text: Raw note text.
        options: Scan options; defaults to :class:`ScanOptions` defaults.

    Returns:
        A frozen set of non-overlapping :class:`SkipRegion` objects.
    """
    options = options or ScanOptions()
    lines = split_lines(text)
    regions: list[SkipRegion] = []

    body_index = 0
    frontmatter = _frontmatter_span(lines)
    if frontmatter is not None:
        body_index = frontmatter.end_line
        if options.skip_frontmatter:
            regions.append(frontmatter)

    fence: Optional[tuple[str, int, int, int]] = None
    for number, offset, line in lines[body_index:]:
        if fence is None:
            opened = _open_fence(line)
            if opened is not None:
                fence = (opened[0], opened[1], offset, number)
                continue

            for span in INLINE_CODE_PATTERN.finditer(line):
                regions.append(
                    SkipRegion(
                        start=offset + span.start(),
                        end=offset + span.end(),
                        kind="inline-code",
                        start_line=number,
                        end_line=number,
                    )
                )
        elif _closes_fence(line, fence[0], fence[1]):
            regions.append(
                SkipRegion(
                    start=fence[2],
                    end=offset + len(line),
                    kind="code-fence",
                    start_line=fence[3],
                    end_line=number,
                )
            )
            fence = None

    if fence is not None:
        regions.append(
            SkipRegion(
                start=fence[2],
                end=len(text),
                kind="code-fence",
                start_line=fence[3],
                end_line=len(lines),
            )
        )

    return frozenset(regions)
