"""
Syntax highlighting for native code fences

Runs pygments over the fence content and turns each token into either a
plain Text node or a ``<span class=...>`` carrying the short pygments CSS
class, so the element tree stays free of inline styles and the joined text
equals the fence content exactly.
"""

from typing import Any, List, Tuple

from pygments import lex
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from ..models.elements import Node, Text, element


def lexer_get(language: str) -> Lexer:
    """Lexer for ``language``, plain text when pygments does not know it"""
    lexer: Lexer
    try:
        lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        lexer = TextLexer(stripnl=False, ensurenl=False)
    return lexer


def tokenType_class(token_type: Any) -> str:
    """Short CSS class of ``token_type`` (empty for plain text)"""
    while token_type not in STANDARD_TYPES:
        token_type = token_type.parent
    return STANDARD_TYPES[token_type]


def code_highlight(content: str, language: str) -> List[Node]:
    """
    Highlight ``content`` as ``language``

    Adjacent pieces with the same class are merged.

    Example:
        >>> code_highlight("x = 1\\n", "python")
        [Element(tag='span', attrs={'class': 'n'}, children=(Text(value='x'),)), Text(value=' '), ...]
    """
    pieces: List[Tuple[str, str]] = []
    for token_type, value in lex(content, lexer_get(language)):
        if not value:
            continue
        css_class = tokenType_class(token_type)
        if pieces and pieces[-1][0] == css_class:
            pieces[-1] = (css_class, pieces[-1][1] + value)
        else:
            pieces.append((css_class, value))

    return [
        element("span", {"class": css_class}, Text(value)) if css_class else Text(value)
        for css_class, value in pieces
    ]
