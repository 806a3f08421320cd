"""Tests for skip-region detection."""

from vault_links.core.skip_regions import (
    find_frontmatter_span,
    identify_skip_regions,
    split_lines,
)
from vault_links.data_models import ScanOptions


FRONTMATTER_NOTE = "---\ntitle: Example\npeople:\n  - \"[[Ada]]\"\n---\nBody [[Ada]]\n"


def _kinds(regions):
    return sorted(region.kind for region in regions)


class TestSplitLines:
    def test_offsets_account_for_line_endings(self):
        lines = split_lines("a\r\nbb\ncc")
        assert lines == [(1, 0, "a\r\n"), (2, 3, "bb\n"), (3, 6, "cc")]

    def test_empty_text(self):
        assert split_lines("") == []


class TestIdentifySkipRegions:
    def test_plain_text_has_no_regions_either_way(self):
        text = "Just a note with [[Link]].\nSecond line.\n"
        assert identify_skip_regions(text, ScanOptions(skip_frontmatter=True)) == frozenset()
        assert identify_skip_regions(text, ScanOptions(skip_frontmatter=False)) == frozenset()

    def test_frontmatter_region_emitted_only_when_skipped(self):
        skipped = identify_skip_regions(FRONTMATTER_NOTE, ScanOptions(skip_frontmatter=True))
        scanned = identify_skip_regions(FRONTMATTER_NOTE, ScanOptions(skip_frontmatter=False))

        assert _kinds(skipped) == ["front-matter"]
        (region,) = skipped
        assert region.start == 0
        assert FRONTMATTER_NOTE[region.end:] == "Body [[Ada]]\n"
        assert (region.start_line, region.end_line) == (1, 5)
        assert scanned == frozenset()

    def test_frontmatter_after_byte_order_mark(self):
        text = "\ufeff" + FRONTMATTER_NOTE
        (region,) = identify_skip_regions(text)

        assert region.kind == "front-matter"
        assert region.start == 0
        assert text[region.end:] == "Body [[Ada]]\n"
        assert find_frontmatter_span(text) == region

    def test_byte_order_mark_only_counts_on_first_line(self):
        text = "intro\n\ufeff---\na: b\n---\n"
        assert find_frontmatter_span(text) is None

    def test_unterminated_frontmatter_is_not_a_region(self):
        text = "---\ntitle: Example\n[[Ada]]\n"
        assert find_frontmatter_span(text) is None
        assert identify_skip_regions(text) == frozenset()

    def test_fenced_block_with_backticks(self):
        text = "before\n```python\nprint('[[Ada]]')\n```\nafter\n"
        (region,) = identify_skip_regions(text)

        assert region.kind == "code-fence"
        assert text[region.start:region.end] == "```python\nprint('[[Ada]]')\n```\n"
        assert (region.start_line, region.end_line) == (2, 4)

    def test_tilde_fence_needs_matching_character(self):
        text = "~~~\n```\n[[Ada]]\n~~~~\nafter\n"
        (region,) = identify_skip_regions(text)
        assert text[region.start:region.end] == "~~~\n```\n[[Ada]]\n~~~~\n"

    def test_closing_fence_must_be_at_least_as_long(self):
        text = "````\n```\n[[Ada]]\n````\n"
        (region,) = identify_skip_regions(text)
        assert region.end == len(text)
        assert region.end_line == 4

    def test_unterminated_fence_runs_to_end_of_file(self):
        text = "intro\n```\n[[Ada]]\nstill code"
        (region,) = identify_skip_regions(text)
        assert region.kind == "code-fence"
        assert region.end == len(text)
        assert region.end_line == 4

    def test_inline_code_spans(self):
        text = "Use `[[Ada]]` or ``a ` b`` here\n"
        regions = sorted(identify_skip_regions(text))

        assert [text[r.start:r.end] for r in regions] == ["`[[Ada]]`", "``a ` b``"]
        assert all(region.kind == "inline-code" for region in regions)

    def test_single_line_triple_backticks_are_inline_code(self):
        text = "```[[Old Note]]```\n"
        (region,) = identify_skip_regions(text)
        assert region.kind == "inline-code"
        assert text[region.start:region.end] == "```[[Old Note]]```"

    def test_no_inline_code_inside_fence(self):
        text = "```\n`[[Ada]]`\n```\n"
        assert _kinds(identify_skip_regions(text)) == ["code-fence"]

    def test_fence_markers_inside_frontmatter_are_ignored(self):
        text = "---\nnote: |\n  ```\n---\n[[Ada]]\n"
        assert identify_skip_regions(text, ScanOptions(skip_frontmatter=False)) == frozenset()
        assert _kinds(identify_skip_regions(text)) == ["front-matter"]

    def test_regions_never_overlap(self):
        text = "---\na: `x`\n---\n`one` and ```\n`two`\n```\n`three`\n"
        regions = sorted(identify_skip_regions(text))
        for left, right in zip(regions, regions[1:]):
            assert left.end <= right.start
