"""
Inline scanner tests

Tests emphasis pairing, code and math spans, links, images, footnote
references and escape handling.
"""

import pytest

from mdpress.lib.scanner import InlineScanner, tokens_scan
from mdpress.models.tokens import (
    BreakToken,
    CodeToken,
    Dimensions,
    EmToken,
    FootnoteRefToken,
    ImageToken,
    LinkToken,
    MarkToken,
    MathToken,
    PairedToken,
    StrikeToken,
    StrongToken,
    TextToken,
)


def S(opening=True):
    return StrongToken(opening=opening)


def E(opening=True):
    return EmToken(opening=opening)


def T(text):
    return TextToken(text=text)


class TestEmphasis:
    """Test strong, em, strike and mark markers"""

    def test_nested_strong_and_em(self):
        """Em nested inside strong"""
        tokens = tokens_scan("**bold *and italic* text**")

        assert tokens == [S(), T("bold "), E(), T("and italic"), E(False), T(" text"), S(False)]

    def test_underscore_markers(self):
        """Underscores pair like asterisks"""
        assert tokens_scan("__strong__ _em_") == [
            S(), T("strong"), S(False), T(" "), E(), T("em"), E(False)
        ]

    def test_triple_marker(self):
        """Three markers open strong outside em and close em first"""
        assert tokens_scan("***both***") == [S(), E(), T("both"), E(False), S(False)]

    def test_interleaved_markers_stay_nested(self):
        """Closing an outer marker closes and re-opens the inner one"""
        tokens = tokens_scan("*a **b* c**")

        assert tokens == [
            E(), T("a "), S(), T("b"), S(False), E(False), S(), T(" c"), S(False)
        ]
        reopened = tokens[6]
        assert isinstance(reopened, StrongToken) and reopened.implicit

    def test_unclosed_marker_closed_at_line_end(self):
        """A marker left open is closed implicitly at the end of the line"""
        tokens = tokens_scan("**open")

        assert tokens == [S(), T("open"), S(False)]
        assert tokens[-1].implicit is True

    def test_spaced_marker_is_literal(self):
        """A marker surrounded by spaces is plain text"""
        assert tokens_scan("2 * 3") == [T("2 * 3")]

    def test_intraword_underscore_is_literal(self):
        """Underscores inside words do not open emphasis"""
        assert tokens_scan("snake_case_name") == [T("snake_case_name")]

    def test_strike_and_mark(self):
        """Double tildes and double equals"""
        assert tokens_scan("~~gone~~ ==hi==") == [
            StrikeToken(), T("gone"), StrikeToken(opening=False),
            T(" "),
            MarkToken(), T("hi"), MarkToken(opening=False),
        ]

    def test_other_tilde_runs_are_literal(self):
        """Only runs of exactly two toggle"""
        assert tokens_scan("~~~ = ~") == [T("~~~ = ~")]

    @pytest.mark.parametrize(
        "text",
        [
            "**a *b** c*",
            "*a **b* c**",
            "~~x **y~~ z**",
            "**unclosed *also",
            "==a ~~b== c~~ d",
            "***x** y*",
            "_a __b_ c__",
        ],
    )
    def test_markers_balance(self, text):
        """Every opener has a closer of the same kind, properly nested"""
        stack = []
        for token in tokens_scan(text):
            if not isinstance(token, PairedToken):
                continue
            if token.opening:
                stack.append(type(token))
            else:
                assert stack and stack.pop() is type(token)
        assert stack == []


class TestCarry:
    """Test markers spanning lines"""

    def test_carry_reopens_on_next_line(self):
        """With carry, markers closed at a line end re-open on the next"""
        tokens = tokens_scan("**a\nb**", carry=True)

        assert tokens == [S(), T("a"), S(False), BreakToken(), S(), T("b"), S(False)]
        assert tokens[4].implicit is True

    def test_without_carry_markers_do_not_span(self):
        """Without carry the second line starts clean"""
        tokens = tokens_scan("**a\nb**")

        assert tokens == [S(), T("a"), S(False), BreakToken(), T("b**")]


class TestCodeAndMath:
    """Test code spans and inline math"""

    def test_code_span(self):
        """Backtick code keeps its content verbatim"""
        assert tokens_scan("use `x = *1*` here") == [
            T("use "), CodeToken(content="x = *1*"), T(" here")
        ]

    def test_double_backtick_span(self):
        """A longer run may contain single backticks"""
        assert tokens_scan("``a ` b``") == [CodeToken(content="a ` b")]

    def test_unclosed_backtick_is_literal(self):
        assert tokens_scan("`open") == [T("`open")]

    def test_inline_math(self):
        """Single-dollar math"""
        assert tokens_scan("so $x^2$ holds") == [T("so "), MathToken(content="x^2"), T(" holds")]

    def test_double_dollar_math(self):
        assert tokens_scan("$$a+b$$") == [MathToken(content="a+b")]

    def test_dollar_followed_by_space_is_literal(self):
        assert tokens_scan("$ 5 and $6") == [T("$ 5 and $6")]

    def test_code_mode(self):
        """Code content is never interpreted"""
        assert tokens_scan("**x**\n`y`", code=True) == [T("**x**"), BreakToken(), T("`y`")]


class TestReferences:
    """Test links, images and footnote references"""

    def test_inline_link(self):
        """[text](url), url is the first word of the target"""
        assert tokens_scan("see [docs](https://x.org/a \"title\")") == [
            T("see "), LinkToken(url="https://x.org/a", text="docs")
        ]

    def test_wiki_link(self):
        assert tokens_scan("[[Page]]") == [LinkToken(url="Page", text="Page")]

    def test_wiki_link_with_label(self):
        assert tokens_scan("[[Page#Part|the part]]") == [LinkToken(url="Page#Part", text="the part")]

    def test_image_with_dimensions_and_caption(self):
        """Alt suffix |WxH and quoted caption"""
        tokens = tokens_scan('![alt|200x100](img.png "A caption")')

        assert tokens == [
            ImageToken(url="img.png", alt="alt", caption="A caption", dimensions=Dimensions(200, 100))
        ]

    def test_image_caption_quote_styles(self):
        """Single quotes and backticks delimit captions too"""
        assert tokens_scan("![a](p.png 'one')")[0].caption == "one"
        assert tokens_scan("![a](p.png `two`)")[0].caption == "two"

    def test_wiki_image(self):
        assert tokens_scan("![[pic.png|300]]") == [
            ImageToken(url="pic.png", alt="pic.png", dimensions=Dimensions(300))
        ]

    def test_footnote_reference(self):
        assert tokens_scan("claim[^src].") == [T("claim"), FootnoteRefToken(id="src"), T(".")]

    def test_footnote_reference_after_bang(self):
        """A ! before [^id] is literal, not an image opener"""
        assert tokens_scan("Amazing![^a]") == [T("Amazing!"), FootnoteRefToken(id="a")]

    def test_unclosed_bracket_is_literal(self):
        """A failed reference keeps its bracket as text"""
        assert tokens_scan("[not a link") == [T("[not a link")]

    def test_bang_without_bracket(self):
        assert tokens_scan("wow!") == [T("wow!")]


class TestEscapes:
    """Test backslash escapes"""

    def test_escaped_markers(self):
        """Escaped punctuation is literal"""
        assert tokens_scan("\\*not\\* \\[x\\]") == [T("*not* [x]")]

    def test_backslash_before_letter(self):
        """A backslash before a non-punctuation character stays"""
        assert tokens_scan("a\\b") == [T("a\\b")]

    def test_scanner_class(self):
        """tokens_scan() is InlineScanner(...).scan()"""
        assert InlineScanner("*x*").scan() == tokens_scan("*x*")
