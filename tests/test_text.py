"""
Text helper tests

Anchors, dimensions, language aliases, slugs and the escaping used when
writing canonical markdown.
"""

import pytest

from mdpress.lib.text import (
    alt_splitDimensions,
    anchor_split,
    code_fence,
    comments_strip,
    dimensions_format,
    dimensions_parse,
    href_normalize,
    language_isSupported,
    language_normalize,
    lines_escape,
    markdown_escape,
    slug_generate,
    superscript_make,
    table_markdown,
)
from mdpress.lib.scanner import tokens_scan
from mdpress.models.tokens import Dimensions, TextToken


class TestAnchors:
    """Test trailing ^id recognition"""

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("Some paragraph ^para-1", ("Some paragraph", "para-1")),
            ("^only", ("", "only")),
            ("x^2", ("x^2", None)),
            ("bad ^not_valid", ("bad ^not_valid", None)),
            ("no anchor", ("no anchor", None)),
        ],
    )
    def test_anchor_split(self, content, expected):
        assert anchor_split(content) == expected


class TestDimensions:
    """Test |WxH suffixes"""

    def test_parse(self):
        assert dimensions_parse("200x100") == Dimensions(200, 100)
        assert dimensions_parse("200") == Dimensions(200)
        assert dimensions_parse("wide") is None

    def test_format(self):
        assert dimensions_format(Dimensions(200, 100)) == "|200x100"
        assert dimensions_format(Dimensions(50)) == "|50"
        assert dimensions_format(None) == ""

    def test_alt_split(self):
        """Only a parsable suffix is removed"""
        assert alt_splitDimensions("logo|64x64") == ("logo", Dimensions(64, 64))
        assert alt_splitDimensions("a|b") == ("a|b", None)


class TestLanguages:
    """Test fence language normalisation"""

    def test_aliases(self):
        assert language_normalize("JS") == "javascript"
        assert language_normalize("py") == "python"
        assert language_normalize("go") == "go"

    def test_supported(self):
        assert language_isSupported("python")
        assert not language_isSupported("mermaid")


class TestSlugs:
    """Test heading slugs"""

    @pytest.mark.parametrize(
        "title,slug",
        [
            ("What's New?", "whats-new"),
            ("  Many   spaces  ", "many-spaces"),
            ("Café au lait", "cafe-au-lait"),
            ("snake_case-kept", "snake_case-kept"),
            ("???", "untitled"),
        ],
    )
    def test_slug_generate(self, title, slug):
        assert slug_generate(title) == slug


class TestEscaping:
    """Test the escaping applied to literal text"""

    def test_markdown_escape(self):
        assert markdown_escape("a*b == c") == "a\\*b \\=\\= c"
        assert markdown_escape("single = and ~ stay") == "single = and ~ stay"
        assert markdown_escape("![x]") == "\\!\\[x]"
        assert markdown_escape("x^2 and ^id") == "x^2 and \\^id"

    @pytest.mark.parametrize(
        "text",
        ["a*b_c", "`code` $5 [x]", "~~no~~ ==no==", "back\\slash", "![not image]"],
    )
    def test_escaped_text_scans_back(self, text):
        """Escaped text scans to a single text token equal to the input"""
        assert tokens_scan(markdown_escape(text)) == [TextToken(text=text)]

    def test_lines_escape(self):
        assert lines_escape("intro\n- not a list") == "intro\n\\- not a list"
        assert lines_escape("1. not ordered") == "1\\. not ordered"
        assert lines_escape("  # not heading") == "  \\# not heading"
        assert lines_escape("> no quote\n+ no item") == "\\> no quote\n\\+ no item"
        assert lines_escape("plain 1. text") == "plain 1. text"


class TestMisc:
    """Test the remaining helpers"""

    def test_href_normalize(self):
        assert href_normalize("#My Section") == "#My-Section"
        assert href_normalize("#^block-id") == "#block-id"
        assert href_normalize("files/my doc.pdf") == "files/my%20doc.pdf"

    def test_superscript(self):
        assert superscript_make(12) == "¹²"

    def test_code_fence(self):
        assert code_fence("plain") == "`"
        assert code_fence("has ` and ``") == "```"

    def test_comments_strip(self):
        assert comments_strip("keep %%drop%% this") == "keep  this"
        assert comments_strip("keep %%unterminated") == "keep "

    def test_table_markdown(self):
        assert table_markdown([["a", "b"], ["1", "2"]]) == (
            "| a | b |\n| --- | --- |\n| 1 | 2 |\n"
        )
        assert table_markdown([]) == ""
