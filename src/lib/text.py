"""
Character-level helpers shared by the segmenter, scanner and renderer

Small pure functions: anchor-id recognition, image dimension suffixes, code
language aliases, heading slugs, markdown escaping, comment stripping and
pipe-table serialisation.
"""

import re
import string
import unicodedata
from typing import List, Optional, Tuple

from ..models.tokens import Dimensions


ANCHOR_CHARS = set(string.ascii_letters + string.digits + "-")

LANGUAGE_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "sh": "bash",
    "shell": "bash",
    "py": "python",
    "c++": "cpp",
    "cs": "csharp",
    "rb": "ruby",
    "kt": "kotlin",
    "toml": "ini",
    "html": "xml",
    "md": "markdown",
    "objc": "objectivec",
    "pl": "perl",
    "txt": "plaintext",
    "vb": "vbnet",
    "yml": "yaml",
    "rs": "rust",
}

# Languages the publishing surface highlights natively
SUPPORTED_LANGUAGES = {
    "javascript", "typescript", "bash", "python", "java", "c", "cpp",
    "csharp", "go", "ruby", "swift", "kotlin", "dart", "diff", "graphql",
    "ini", "json", "less", "lua", "makefile", "xml", "markdown",
    "objectivec", "perl", "php", "php-template", "plaintext", "python-repl",
    "r", "scss", "sql", "vbnet", "wasm", "yaml", "rust",
}

SUPERSCRIPT_DIGITS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")

# Characters that always start inline markup
_ESCAPED_ALWAYS = set("\\*_`$[")


def anchor_isValid(candidate: str) -> bool:
    """True when ``candidate`` is a non-empty run of letters, digits and hyphens"""
    return bool(candidate) and all(char in ANCHOR_CHARS for char in candidate)


def anchor_split(content: str) -> Tuple[str, Optional[str]]:
    """
    Split a trailing ``^identifier`` anchor off a piece of text

    The anchor must be the last whitespace-separated word of the text (or
    the whole text) and consist of letters, digits and hyphens only.

    Args:
        content: Text possibly ending with ``^identifier``

    Returns:
        (content without the anchor, anchor id without ``^``) or
        (content, None) when there is no anchor

    Example:
        >>> anchor_split("Some paragraph ^para-1")
        ('Some paragraph', 'para-1')
        >>> anchor_split("x^2")
        ('x^2', None)
    """
    stripped = content.rstrip()
    caret = stripped.rfind("^")
    if caret == -1:
        return content, None

    candidate = stripped[caret + 1:]
    if not anchor_isValid(candidate):
        return content, None
    if caret > 0 and not stripped[caret - 1].isspace():
        return content, None

    return stripped[:caret].rstrip(), candidate


def dimensions_parse(spec: str) -> Optional[Dimensions]:
    """
    Parse an image size suffix

    Args:
        spec: Text after the ``|`` of an image alt ("200x100", "200")

    Returns:
        Dimensions, or None when the width is not an integer

    Example:
        >>> dimensions_parse("200x100")
        Dimensions(width=200, height=100)
        >>> dimensions_parse("200")
        Dimensions(width=200, height=None)
    """
    parts = spec.strip().split("x")
    if len(parts) > 2 or not parts[0].isdigit():
        return None
    if len(parts) == 2 and parts[1].isdigit():
        return Dimensions(width=int(parts[0]), height=int(parts[1]))
    return Dimensions(width=int(parts[0]))


def dimensions_format(dimensions: Optional[Dimensions]) -> str:
    if dimensions is None:
        return ""
    if dimensions.height is None:
        return f"|{dimensions.width}"
    return f"|{dimensions.width}x{dimensions.height}"


def alt_splitDimensions(alt: str) -> Tuple[str, Optional[Dimensions]]:
    """Strip a trailing ``|WxH`` suffix from image alt text when it parses"""
    bar = alt.rfind("|")
    if bar == -1:
        return alt, None
    dimensions = dimensions_parse(alt[bar + 1:])
    if dimensions is None:
        return alt, None
    return alt[:bar], dimensions


def language_normalize(language: str) -> str:
    """Map a fence info-string language onto its canonical name"""
    language = language.strip().lower()
    return LANGUAGE_ALIASES.get(language, language)


def language_isSupported(language: str) -> bool:
    return language in SUPPORTED_LANGUAGES


def slug_generate(title: str) -> str:
    """
    Generate a URL-style slug from heading text

    Converts to lowercase ASCII, removes punctuation except hyphens and
    underscores, collapses whitespace to single hyphens and returns
    ``"untitled"`` when nothing remains.

    Example:
        >>> slug_generate("What's New?")
        'whats-new'
    """
    punctuation = string.punctuation.replace("-", "").replace("_", "")

    slug = unicodedata.normalize("NFKD", title)
    slug = slug.encode("ascii", "ignore").decode("utf-8", "ignore")
    slug = slug.casefold()
    slug = slug.translate(str.maketrans("", "", punctuation))

    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    slug = slug.strip("-")

    return slug if slug else "untitled"


def href_normalize(url: str) -> str:
    """
    Normalise a link target for the element tree

    In-document anchors (``#Some Heading``, ``#^block-id``) get spaces turned
    into hyphens and a leading ``^`` dropped; other targets get spaces
    percent-encoded.
    """
    if url.startswith("#"):
        target = url[1:]
        if target.startswith("^"):
            target = target[1:]
        return "#" + target.replace("%20", "-").replace(" ", "-")
    return url.replace(" ", "%20")


def superscript_make(number: int) -> str:
    return str(number).translate(SUPERSCRIPT_DIGITS)


def markdown_escape(text: str) -> str:
    """
    Escape literal text so the inline scanner reads it back unchanged

    Always escapes ``\\ * _ ` $ [``; escapes ``~`` and ``=`` only where they
    would form ``~~`` / ``==``, ``!`` only before ``[`` and ``^`` only where
    it could read as a block anchor.

    Example:
        >>> markdown_escape("a*b == c")
        'a\\\\*b \\\\=\\\\= c'
    """
    result = []
    for index, char in enumerate(text):
        following = text[index + 1] if index + 1 < len(text) else ""
        preceding = text[index - 1] if index > 0 else ""
        if char in _ESCAPED_ALWAYS:
            result.append("\\" + char)
        elif char in "~=" and (following == char or preceding == char):
            result.append("\\" + char)
        elif char == "!" and following == "[":
            result.append("\\!")
        elif char == "^" and (not preceding or preceding.isspace()):
            result.append("\\^")
        else:
            result.append(char)
    return "".join(result)


_BLOCK_START = re.compile(r"^([ \t]*)(?:([#>+\-])|(\d+)(\.[ \t]))")


def lines_escape(markdown: str) -> str:
    """
    Escape paragraph lines that would otherwise open a block construct

    A literal leading ``#``, ``>``, ``+`` or ``-`` gets a backslash, as does
    the dot of a leading ``1.`` list marker.

    Example:
        >>> lines_escape("intro\\n- not a list")
        'intro\\n\\\\- not a list'
    """
    def line_escape(line: str) -> str:
        match = _BLOCK_START.match(line)
        if match is None:
            return line
        if match.group(2):
            return match.group(1) + "\\" + line[match.end(1):]
        return match.group(1) + match.group(3) + "\\" + line[match.start(4):]

    return "\n".join(line_escape(line) for line in markdown.split("\n"))


def code_fence(content: str) -> str:
    """Return a backtick run longer than any run inside ``content``"""
    longest = max((len(run) for run in re.findall(r"`+", content)), default=0)
    return "`" * (longest + 1)


def comments_strip(text: str) -> str:
    """
    Remove ``%%comment%%`` spans

    An unterminated ``%%`` removes everything after it.

    Example:
        >>> comments_strip("keep %%drop%% this")
        'keep  this'
    """
    result = []
    pos = 0
    while pos < len(text):
        start = text.find("%%", pos)
        if start == -1:
            result.append(text[pos:])
            break
        result.append(text[pos:start])
        end = text.find("%%", start + 2)
        if end == -1:
            break
        pos = end + 2
    return "".join(result)


def table_markdown(rows: List[List[str]]) -> str:
    """
    Serialise table rows as a pipe table

    Args:
        rows: Header row followed by body rows

    Returns:
        Markdown table text, one line per row plus the divider, each line
        terminated by a newline
    """
    if not rows:
        return ""

    def row_format(cells: List[str]) -> str:
        return "|" + "|".join(f" {cell} " for cell in cells) + "|\n"

    lines = [row_format(rows[0]), "|" + "|".join(" --- " for _ in rows[0]) + "|\n"]
    lines.extend(row_format(row) for row in rows[1:])
    return "".join(lines)
