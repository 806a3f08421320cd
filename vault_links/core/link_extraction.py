"""Wikilink extraction from raw note text.

Supported link formats:

- Basic: ``[[Note]]``
- Alias: ``[[Note|Display Text]]``
- Heading: ``[[Note#Heading]]`` and block: ``[[Note#^blockid]]``, each with an optional alias
- Embed: ``![[Note]]``
- Table-escaped alias: ``[[Note\\|Alias]]``, as Obsidian writes links inside tables

When front-matter is scanned, two YAML shapes carry links:

- block sequence items: ``  - "[[Note]]"``
- inline arrays: ``related: ["[[Note]]", "[[Other]]"]``
"""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from collections.abc import Iterable
from typing import Optional

from vault_links.constants import NOTE_SUFFIX
from vault_links.core.skip_regions import (
    find_frontmatter_span,
    identify_skip_regions,
    split_lines,
)
from vault_links.data_models import (
    LinkForm,
    LinkReference,
    LinkScanResult,
    ScanOptions,
    SkipRegion,
)

WIKILINK_PATTERN = re.compile(
    r"(?P<embed>!)?\[\["
    r"(?P<target>[^\[\]|#\n]+?)"
    r"(?:#(?P<anchor>[^\[\]|\n]+?))?"
    r"(?:\\?\|(?P<alias>[^\[\]\n]+?))?"
    r"\]\]"
)

FRONTMATTER_LIST_ITEM_PATTERN = re.compile(
    r"""^[ \t]*-[ \t]+(?P<quote>["']?)!?\[\[[^\n]*\]\](?P=quote)[ \t]*$"""
)
FRONTMATTER_INLINE_ARRAY_PATTERN = re.compile(r"^[ \t]*[^\s:#\-][^:\n]*:[ \t]*\[.*\][ \t]*$")


def _frontmatter_form(line: str) -> Optional[LinkForm]:
    """Classify a front-matter line holding a link, or ``None`` for unsupported shapes."""
    stripped = line.rstrip("\r\n")
    if FRONTMATTER_LIST_ITEM_PATTERN.match(stripped):
        return "frontmatter-list"
    if FRONTMATTER_INLINE_ARRAY_PATTERN.match(stripped):
        return "frontmatter-array"
    return None


def _overlaps_skip_region(
    regions: list[SkipRegion],
    starts: list[int],
    start: int,
    end: int,
) -> bool:
    # Regions never overlap each other, so their ends ascend with their starts
    candidate = bisect_left(starts, end)
    return candidate > 0 and regions[candidate - 1].end > start


def _target_span(match: re.Match[str]) -> Optional[tuple[str, int, int]]:
    raw_target = match.group("target")
    name = raw_target.strip()
    if not name:
        return None

    start = match.start("target") + (len(raw_target) - len(raw_target.lstrip()))
    end = start + len(name)
    if name.endswith(NOTE_SUFFIX) and len(name) > len(NOTE_SUFFIX):
        name = name[: -len(NOTE_SUFFIX)]
        end -= len(NOTE_SUFFIX)
    return name, start, end


def extract_links(
    text: str,
    skip_regions: Iterable[SkipRegion],
    source_file: str = "",
    include_embeds: bool = True,
) -> tuple[LinkReference, ...]:
    """Extract wikilinks from ``text`` that fall outside every skip region.

    The pattern runs over the whole text; matches overlapping an emitted skip
    region are dropped. Whether front-matter is scanned is therefore decided
    entirely by whether :func:`identify_skip_regions` emitted its region. Links
    inside a scanned front-matter block are kept only on lines that have one of
    the two supported YAML shapes.

    Args:
        text: Raw note text.
        skip_regions: Regions produced by :func:`identify_skip_regions`.
        source_file: Identity of the note, copied onto every reference.
        include_embeds: When ``False`` embed links (``![[...]]``) are ignored.

    Returns:
        References in document order.
    """
    regions = sorted(skip_regions)
    starts = [region.start for region in regions]
    lines = split_lines(text)
    line_offsets = [offset for _, offset, _ in lines]
    frontmatter = find_frontmatter_span(text)

    references: list[LinkReference] = []
    for match in WIKILINK_PATTERN.finditer(text):
        start, end = match.span()
        if _overlaps_skip_region(regions, starts, start, end):
            continue

        is_embed = match.group("embed") is not None
        if is_embed and not include_embeds:
            continue

        target = _target_span(match)
        if target is None:
            continue
        name, target_start, target_end = target

        line_number, line_offset, line = lines[bisect_right(line_offsets, start) - 1]

        in_frontmatter = frontmatter is not None and start < frontmatter.end
        form: Optional[LinkForm] = "body"
        if in_frontmatter:
            form = _frontmatter_form(line)
            if form is None:
                continue

        anchor = match.group("anchor")
        heading = block_ref = None
        if anchor is not None:
            if anchor.startswith("^"):
                block_ref = anchor.strip()
            else:
                heading = anchor.strip() or None

        references.append(
            LinkReference(
                source_file=source_file,
                raw_text=match.group(0),
                target=name,
                location=(start, end),
                target_span=(target_start, target_end),
                line_number=line_number,
                column=start - line_offset,
                alias=match.group("alias"),
                heading=heading,
                block_ref=block_ref,
                is_embed=is_embed,
                in_frontmatter=in_frontmatter,
                form=form,
            )
        )

    return tuple(references)


def scan_text(
    text: str,
    options: Optional[ScanOptions] = None,
    source_file: str = "",
) -> LinkScanResult:
    """Run skip-region detection and link extraction over one note's text."""
    options = options or ScanOptions()
    skip_regions = identify_skip_regions(text, options)
    references = extract_links(
        text,
        skip_regions,
        source_file=source_file,
        include_embeds=options.include_embeds,
    )
    return LinkScanResult(references=references, skip_regions=skip_regions)
