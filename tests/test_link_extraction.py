"""Tests for wikilink extraction."""

import pytest

from vault_links.core.link_extraction import extract_links, scan_text
from vault_links.core.skip_regions import identify_skip_regions
from vault_links.data_models import ScanOptions


SCAN_FRONTMATTER = ScanOptions(skip_frontmatter=False)


class TestBodyLinks:
    def test_basic_link(self):
        result = scan_text("See [[Old Note]] for details.", source_file="Ref")
        (reference,) = result.references

        assert reference.target == "Old Note"
        assert reference.alias is None
        assert reference.raw_text == "[[Old Note]]"
        assert reference.location == (4, 16)
        assert reference.source_file == "Ref"
        assert reference.in_frontmatter is False
        assert reference.form == "body"

    def test_alias_is_kept_verbatim(self):
        (reference,) = scan_text("[[Old Note| My  Alias ]]").references
        assert reference.target == "Old Note"
        assert reference.alias == " My  Alias "

    def test_heading_and_block_anchors(self):
        heading, block = scan_text("[[Note#Section|Alias]] and [[Note#^abc123]]").references

        assert heading.heading == "Section"
        assert heading.block_ref is None
        assert heading.alias == "Alias"
        assert block.block_ref == "^abc123"
        assert block.heading is None

    def test_embeds_can_be_excluded(self):
        text = "![[Diagram]] and [[Diagram]]"

        embedded, plain = scan_text(text).references
        assert embedded.is_embed is True
        assert plain.is_embed is False

        (only,) = scan_text(text, ScanOptions(include_embeds=False)).references
        assert only.is_embed is False

    def test_table_escaped_pipe(self):
        text = "| [[Old Note\\|Alias]] | [[Old Note#Part\\|Shown]] |\n"
        plain, anchored = scan_text(text).references

        assert plain.target == "Old Note"
        assert plain.alias == "Alias"
        assert plain.with_target("New") == "[[New\\|Alias]]"
        assert anchored.heading == "Part"
        assert anchored.alias == "Shown"

    def test_md_suffix_is_stripped_from_target(self):
        (reference,) = scan_text("[[Old Note.md|x]]").references
        assert reference.target == "Old Note"
        assert reference.target_span == (2, 10)

    def test_target_span_excludes_padding(self):
        (reference,) = scan_text("[[ Old Note ]]").references
        assert reference.target == "Old Note"
        assert reference.with_target("New") == "[[ New ]]"

    def test_line_and_column(self):
        (reference,) = scan_text("first\r\nsecond [[Ada]]\n").references
        assert reference.line_number == 2
        assert reference.column == 7

    @pytest.mark.parametrize("text", ["[[]]", "[[ ]]", "[[#Heading]]", "[[a\nb]]"])
    def test_malformed_links_are_ignored(self, text):
        assert scan_text(text).references == ()

    def test_document_order_and_idempotence(self):
        text = "[[B]] then [[A]]\n[[C]]"
        first = scan_text(text)
        second = scan_text(text)

        assert [ref.target for ref in first.references] == ["B", "A", "C"]
        assert first == second


class TestCodeRegions:
    @pytest.mark.parametrize("skip_frontmatter", [True, False])
    def test_links_in_code_are_never_extracted(self, skip_frontmatter):
        options = ScanOptions(skip_frontmatter=skip_frontmatter)
        text = "```\n[[Old Note]]\n```\n```[[Old Note]]```\n`[[Old Note]]`\n"
        assert scan_text(text, options).references == ()

    def test_link_after_unterminated_fence_is_skipped(self):
        assert scan_text("```\n\n[[Ada]]").references == ()

    def test_extract_links_respects_given_regions(self):
        text = "[[A]] `[[B]]` [[C]]"
        regions = identify_skip_regions(text)
        assert [ref.target for ref in extract_links(text, regions)] == ["A", "C"]
        assert [ref.target for ref in extract_links(text, frozenset())] == ["A", "B", "C"]


class TestFrontmatterLinks:
    LIST_NOTE = "---\npeople:\n  - \"[[Old Note]]\"\n---\nBody\n"
    ARRAY_NOTE = "---\nrelated: [\"[[Old Note]]\", \"[[Other]]\"]\n---\n"

    def test_list_item_extracted_when_scanning_frontmatter(self):
        (reference,) = scan_text(self.LIST_NOTE, SCAN_FRONTMATTER).references
        assert reference.target == "Old Note"
        assert reference.in_frontmatter is True
        assert reference.form == "frontmatter-list"

    def test_frontmatter_skipped_by_default(self):
        assert scan_text(self.LIST_NOTE).references == ()

    def test_inline_array(self):
        references = scan_text(self.ARRAY_NOTE, SCAN_FRONTMATTER).references
        assert [ref.target for ref in references] == ["Old Note", "Other"]
        assert {ref.form for ref in references} == {"frontmatter-array"}

    def test_same_target_and_alias_as_body_form(self):
        text = "---\nlinks:\n  - '[[Ada|Countess]]'\n---\n[[Ada|Countess]]\n"
        fm, body = scan_text(text, SCAN_FRONTMATTER).references
        assert (fm.target, fm.alias) == (body.target, body.alias)
        assert fm.in_frontmatter and not body.in_frontmatter

    def test_byte_order_mark_does_not_expose_frontmatter_links(self):
        text = "\ufeff" + self.LIST_NOTE
        assert scan_text(text).references == ()

        (reference,) = scan_text(text, SCAN_FRONTMATTER).references
        assert reference.in_frontmatter is True
        assert reference.form == "frontmatter-list"

    def test_unsupported_yaml_shapes_are_ignored(self):
        text = "---\nsummary: see [[Ada]] for more\n---\n"
        assert scan_text(text, SCAN_FRONTMATTER).references == ()

    def test_unterminated_frontmatter_links_are_body_links(self):
        text = "---\nsummary: see [[Ada]]\n"
        (reference,) = scan_text(text).references
        assert reference.in_frontmatter is False
        assert reference.form == "body"
