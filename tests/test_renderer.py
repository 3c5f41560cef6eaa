"""
Renderer tests

Tests the element tree, canonical markdown, footnote and TOC resolution,
title decomposition, rasterizer fallback and per-block failure isolation.
"""

import asyncio

import pytest

from mdpress.config.settings import RenderSettings
from mdpress.lib.collaborators import (
    ImageSize,
    MemoryHostBuffer,
    NullRasterizer,
    RecordingRasterizer,
)
from mdpress.lib.engine import render
from mdpress.lib.errors import RasterizationError
from mdpress.lib.renderer import Renderer, caption_quote, fence_markdown, inlineMath_markdown
from mdpress.lib.segmenter import blocks_segment
from mdpress.models.blocks import BlockKind, CodeBlock
from mdpress.models.elements import Element, Text, elements_find, text_content


def settings(**overrides):
    return RenderSettings(**overrides)


def tags(result):
    return [child.tag for child in result.element_tree.children]


def find(result, predicate):
    return elements_find(result.element_tree, predicate)


class FailingRasterizer:
    """Rasterizer that always raises"""

    async def image_render(self, element, asset_path, target_width, scale, smoothing, style_hook):
        raise RasterizationError(asset_path, "browser crashed")


class TestFootnotes:
    """Test footnote numbering and rendering"""

    def test_reference_and_definition(self):
        """Reference numbered 1, definition rendered after an hr"""
        result = render("# Title\n\nSee [^1].\n\n[^1]: A note.", settings())

        assert result.footnotes == {"1": 1}
        assert tags(result) == ["h1", "p", "hr", "p"]

        paragraph = result.element_tree.children[1]
        assert paragraph.children[0] == Text("See ")
        sup = paragraph.children[1]
        assert sup.tag == "sup"
        link = sup.children[0]
        assert link.attrs == {"class": "footnote-ref", "href": "#fn-1"}
        assert text_content(link) == "¹"

        footnote = result.element_tree.children[3]
        assert footnote.attr("id") == "fn-1"
        assert text_content(footnote) == "1. A note."
        assert result.canonical_markdown == "# Title\n\nSee [^1].\n\n[^1]: A note."

    def test_numbered_by_first_reference(self):
        """Definition order does not matter"""
        result = render("Refs [^b] then [^a].\n\n[^a]: Alpha.\n[^b]: Beta.", settings())

        assert result.footnotes == {"b": 1, "a": 2}
        footnotes = find(result, lambda node: node.attr("id", "").startswith("fn-"))
        assert [text_content(node) for node in footnotes] == ["1. Beta.", "2. Alpha."]
        assert result.canonical_markdown == "Refs [^1] then [^2].\n\n[^1]: Beta.\n[^2]: Alpha."

    def test_unreferenced_definition_not_rendered(self):
        result = render("Text.\n\n[^x]: Unused.", settings())

        assert tags(result) == ["p"]
        assert result.footnotes == {}

    def test_reference_inside_footnote(self):
        """A footnote may reference another one"""
        result = render("A[^1].\n\n[^1]: See also[^2].\n[^2]: Deep.", settings())

        assert result.footnotes == {"1": 1, "2": 2}
        footnotes = find(result, lambda node: node.attr("id", "").startswith("fn-"))
        assert [node.attr("id") for node in footnotes] == ["fn-1", "fn-2"]

    def test_reference_after_exclamation(self):
        """text![^a] keeps the ! and numbers the reference"""
        result = render("Amazing![^a]\n\n[^a]: Note.", settings())

        assert result.footnotes == {"a": 1}
        assert tags(result) == ["p", "hr", "p"]
        assert text_content(result.element_tree.children[0]) == "Amazing!¹"
        assert result.canonical_markdown == "Amazing![^1]\n\n[^1]: Note."

    def test_undefined_reference_still_numbered(self):
        result = render("Dangling[^missing].", settings())

        assert result.footnotes == {"missing": 1}
        assert "hr" not in tags(result)


class TestHeadingsAndToc:
    """Test title classification and the heading outline"""

    def test_title_and_toc_anchors(self):
        result = render("# Doc\n\nIntro text.\n\n## Setup\n\n### Install\n\n## Usage", settings())

        assert result.document.title == "Doc"
        headings = find(result, lambda node: node.tag in ("h2", "h3"))
        assert [heading.attr("id") for heading in headings] == ["1-setup", "1.1-install", "2-usage"]
        assert result.element_tree.children[0].attr("class") == "md-title"
        assert result.toc_markdown == (
            "# Table of Contents\n"
            "1. [Setup](#1-setup)\n"
            "  1.1. [Install](#1.1-install)\n"
            "2. [Usage](#2-usage)\n"
        )

    def test_subtitle_and_body(self):
        """The heading after the title is the subtitle; both are left out of the body"""
        result = render("# Doc\n## A subtitle\n\nBody.", settings())

        assert result.document.title == "Doc"
        assert result.document.subtitle == "A subtitle"
        assert result.document.content == "Body."
        assert result.toc == []

    def test_split_title_off(self):
        result = render("# Doc\n\nBody.", settings(split_title=False))

        assert result.document.title is None
        assert result.element_tree.children[0].attr("id") == "1-doc"

    def test_explicit_heading_anchor(self):
        result = render("Intro.\n\n## Setup ^setup", settings())

        heading = result.element_tree.children[1]
        assert heading.attr("id") == "setup"
        assert result.toc[0].anchor == "setup"
        assert result.canonical_markdown == "Intro.\n\n## Setup ^setup"

    @pytest.mark.parametrize("link", ["[[#My Section]]", "[here](#my-section)"])
    def test_links_retargeted_to_display_anchor(self, link):
        result = render(f"Intro.\n\n## My Section\n\nSee {link}.", settings())

        anchors = find(result, lambda node: node.tag == "a")
        assert anchors[0].attr("href") == "#1-my-section"

    def test_toc_inserted_after_title(self):
        result = render("# Doc\n\nIntro.\n\n## Part", settings())
        tree = result.tree_withToc()

        assert tree.children[0].tag == "h1"
        assert tree.children[1].attr("class") == "toc"
        assert result.element_tree.children[1].tag == "p"

    def test_toc_disabled(self):
        result = render("Intro.\n\n## Part", settings(create_toc=False))

        assert result.toc_markdown == ""
        assert result.toc_element is None
        assert result.tree_withToc() is result.element_tree


class TestDocumentParts:
    """Test the title / main image / content decomposition"""

    def test_main_image(self):
        result = render("# Doc\n\n![cover|800x400](c.png \"Cover\")\n\nBody text.", settings())

        image = result.document.main_image
        assert image.url == "c.png"
        assert (image.alt, image.caption, image.width, image.height) == ("cover", "Cover", 800, 400)
        assert result.document.content == "Body text."
        assert result.element_tree.children[1].tag == "figure"

    def test_image_after_body_is_not_main(self):
        result = render("Body.\n\n![later](l.png)", settings())

        assert result.document.main_image is None
        assert "![later](l.png)" in result.document.content

    def test_inline_image_splits_paragraph(self):
        result = render("before ![x](x.png) after", settings())

        assert tags(result) == ["p", "figure", "p"]


class TestBreaksAndAnchors:
    """Test hidden paragraphs for blank-line runs and block anchors"""

    def test_two_blank_lines_add_break(self):
        result = render("a\n\n\nb", settings())

        assert tags(result) == ["p", "p", "p"]
        assert result.element_tree.children[1].attr("class") == "md-break"
        assert result.canonical_markdown == "a\n\n\nb"

    def test_anchor_reuses_break(self):
        result = render("a\n\n\nb ^blk", settings())

        middle = result.element_tree.children[1]
        assert middle.attrs == {"class": "link-block", "name": "blk"}
        assert len(result.element_tree.children) == 3

    def test_anchor_without_break(self):
        result = render("a\n\nb ^blk", settings())

        assert [child.attr("class") for child in result.element_tree.children] == [None, "link-block", None]
        assert result.canonical_markdown == "a\n\nb\n^blk"


class TestWidgets:
    """Test rasterizable blocks with and without a rasterizer"""

    def test_code_fence_native(self):
        result = render("```python\nx = 1\n```", settings())

        pre = result.element_tree.children[0]
        assert pre.attrs == {"data-code-block-mode": "2", "data-code-block-lang": "python"}
        assert text_content(pre) == "x = 1\n"
        assert result.canonical_markdown == "```python\nx = 1\n```"

    def test_unsupported_language_without_rasterizer(self):
        """Falls back to the native form, mode 1, no issue"""
        result = render("```brainfuck\n+++\n```", settings())

        assert result.element_tree.children[0].attr("data-code-block-mode") == "1"
        assert result.issues == []

    def test_unsupported_language_rasterized(self):
        rasterizer = RecordingRasterizer()
        result = render("```brainfuck\n+++\n```", settings(), rasterizer=rasterizer)

        assert [request.asset_path for request in rasterizer.requests] == ["/assets/brainfuck-widget-0-2.png"]
        img = find(result, lambda node: node.tag == "img")[0]
        assert img.attr("data-width") == "680"
        assert img.attr("data-height") == "240"
        assert img.attr("data-widget") == "true"
        assert result.canonical_markdown == "![Code Block Widget](/assets/brainfuck-widget-0-2.png)"

    def test_bang_flag_requests_rasterization(self):
        rasterizer = RecordingRasterizer(ImageSize(100, 50))
        render("```js! Demo\nx\n```", settings(use_dark_theme=True), rasterizer=rasterizer)

        request = rasterizer.requests[0]
        assert request.asset_path == "/assets/js-widget-0-2.png"
        assert request.style_hook["theme"] == "dark"
        assert request.target_width is None

    def test_light_flag_and_custom_width(self):
        rasterizer = RecordingRasterizer()
        render(
            "```js!*\nx\n```",
            settings(use_dark_theme=True, custom_width=True, target_width=900),
            rasterizer=rasterizer,
        )

        assert rasterizer.requests[0].style_hook["theme"] == "light"
        assert rasterizer.requests[0].target_width == 900

    @pytest.mark.parametrize("rasterizer", [NullRasterizer(), FailingRasterizer()])
    def test_failed_rasterization_falls_back(self, rasterizer):
        result = render("$$\nE = mc^2\n$$", settings(), rasterizer=rasterizer)

        assert result.element_tree.children[0].attr("class") == "math"
        assert result.issues == []

    def test_math_rasterized(self):
        rasterizer = RecordingRasterizer()
        result = render("$$\nE = mc^2\n$$", settings(), rasterizer=rasterizer)

        assert rasterizer.requests[0].asset_path == "/assets/math-widget-0-2.png"
        assert result.element_tree.children[0].tag == "figure"

    def test_math_without_native_form_dropped(self):
        result = render("Text.\n\n$$\nx\n$$", settings(native_math=False))

        assert tags(result) == ["p"]
        assert [issue.kind for issue in result.issues] == ["unrenderable"]
        assert (result.issues[0].line_start, result.issues[0].line_end) == (2, 4)

    def test_table_native_and_rasterized(self):
        text = "| a | b |\n| --- | --- |\n| 1 | 2 |"

        native = render(text, settings())
        assert find(native, lambda node: node.tag == "th")[1].children == (Text("b"),)
        assert native.canonical_markdown == text

        rasterizer = RecordingRasterizer()
        render(text, settings(convert_table_to_png=True), rasterizer=rasterizer)
        assert rasterizer.requests[0].asset_path == "/assets/table-widget-0-2.png"

    def test_callout(self):
        text = "> [!note] Heads up\n> Body text"

        native = render(text, settings())
        callout = native.element_tree.children[0]
        assert callout.attrs == {"class": "callout", "data-callout": "note"}
        assert text_content(callout) == "Heads upBody text"
        assert native.canonical_markdown == text

        rasterizer = RecordingRasterizer()
        render(text, settings(), rasterizer=rasterizer)
        assert rasterizer.requests[0].asset_path == "/assets/note-widget-0-1.png"

    def test_host_buffer_staged_and_restored(self):
        text = "Intro\n\n$$\nx\n$$"
        host = MemoryHostBuffer(text)

        render(text, settings(), rasterizer=RecordingRasterizer(), host=host)

        assert host.history == ["$$\nx\n$$\n", text]
        assert host.text == text
        assert host.refresh_count == 2


class TestFailureIsolation:
    """Test that a failing handler only loses its own block"""

    def test_handler_exception_recorded(self):
        renderer = Renderer(blocks_segment("a\n\n---\n\nb"), settings())

        async def broken(block):
            raise ValueError("boom")

        renderer.handlers[BlockKind.HORIZONTAL_RULE] = broken
        result = asyncio.run(renderer.render())

        assert tags(result) == ["p", "p"]
        assert len(result.issues) == 1
        assert result.issues[0].kind == "handler"
        assert result.issues[0].message == "boom"
        assert result.canonical_markdown == "a\n\nb"


class TestCanonicalMarkdown:
    """Test that canonical markdown renders back to the same tree"""

    @pytest.mark.parametrize(
        "text",
        [
            "# Title\n\nSee [^1].\n\n[^1]: A note.",
            "Some **bold *and italic* text** and ~~strike~~ with ==mark==.",
            "*a **b* c**",
            "- one\n- two ^lst\n\n1. first\n2. second",
            "Para one\ncontinues here\n\n\n\nPara two ^p2",
            "> quoted **bold\n> still** bold",
            "```js\nconst a = 1;\n```\n\n| h1 | h2 |\n| --- | --- |\n| `c` | [l](u) |",
            "Escapes: \\*not emphasis\\* and 2 * 3 and a_b_c",
            "Line with $x^2$ math",
            "# Doc\n\nIntro.\n\n## Part One\n\nSee [[#Part One]].",
            '![logo|120x40](img/logo.png "The *logo*")\n\nText after.',
            "> [!tip] Title here\n> Body **bold**",
            "Text\n\n---\n\n    indented code\n\n1. a\n2. b",
            "Text[^n].\n\n[^n]: line one\n  line two",
            "\\- not a list\n\\# not a heading",
            ">> pulled\n>> quote",
            "* --",
            "+ - -",
            "- # not a heading\n- > not a quote",
            "[^a]\\: see\n\n[^a]: Note.",
            "\\![^a] and \\![link](u) and \\![[Page]]\n\n[^a]: Note.",
            "Amazing![^a]\n\n[^a]: Note.",
        ],
    )
    def test_round_trip(self, text):
        first = render(text, settings())
        second = render(first.canonical_markdown, settings())

        assert second.element_tree == first.element_tree

    @pytest.mark.parametrize(
        "text",
        [
            "Some **bold *and italic* text** and ~~strike~~ with ==mark==.",
            "*a **b* c**",
            "> quoted **bold\n> still** bold",
            "> [!tip] Title here\n> Body **bold**",
            "\\- not a list",
            "- \\--\n- \\- -",
            "[^1]\\: see\n\n[^1]: Note.",
            "\\![^1] and \\![link](u)\n\n[^1]: Note.",
        ],
    )
    def test_canonical_is_stable(self, text):
        """Already canonical text is written back unchanged"""
        assert render(text, settings()).canonical_markdown == text


class TestSerialisationHelpers:
    """Test the markdown helpers used for widgets and inline math"""

    def test_caption_quote(self):
        assert caption_quote("") == ""
        assert caption_quote("plain") == ' "plain"'
        assert caption_quote('say "hi"') == " 'say \"hi\"'"

    def test_inline_math_markdown(self):
        assert inlineMath_markdown("x") == "$x$"
        assert inlineMath_markdown(" x") == "$$ x$$"
        assert inlineMath_markdown("a\\b") == "$$a\\b$$"

    def test_fence_longer_than_content(self):
        block = CodeBlock(line_start=0, line_end=4, content="```\ninner\n```\n", language="md")
        assert fence_markdown(block) == "````md\n```\ninner\n```\n````"

    def test_fence_with_backtick_caption(self):
        block = CodeBlock(line_start=0, line_end=2, content="x\n", language="py", caption="a `b`", to_png=True)
        assert fence_markdown(block) == "~~~py! a `b`\nx\n~~~"

    def test_element_tree_root(self):
        assert isinstance(render("", settings()).element_tree, Element)
        assert render("", settings()).canonical_markdown == ""
