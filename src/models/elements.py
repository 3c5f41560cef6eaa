"""
Element tree value type

The Renderer builds its display output as an owned tree of immutable values
instead of mutating a DOM. ``Element`` carries a tag, attributes and an
ordered tuple of children; ``Text`` carries a string. Trees compare
structurally, which is what the round-trip property relies on.

Example:
    >>> tree = element("p", {}, Text("Hello "), element("strong", {}, Text("world")))
    >>> html_render(tree)
    '<p>Hello <strong>world</strong></p>'
    >>> text_content(tree)
    'Hello world'
"""

import html
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union


VOID_TAGS = {"br", "hr", "img"}

# Zero-width space used to keep hidden anchor paragraphs non-empty
ZERO_WIDTH = "\u200b"


@dataclass(frozen=True)
class Text:
    """Literal text node"""
    value: str


@dataclass(frozen=True)
class Element:
    """
    Tagged element node

    Attributes:
        tag: Element name (e.g. "p", "strong", "figure")
        attrs: Attribute mapping in insertion order
        children: Child nodes in document order
    """
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    def attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def with_children(self, children: List["Node"]) -> "Element":
        return replace(self, children=tuple(children))

    def with_attrs(self, **attrs: str) -> "Element":
        merged = dict(self.attrs)
        merged.update(attrs)
        return replace(self, attrs=merged)


Node = Union[Element, Text]


def element(tag: str, attrs: Optional[Dict[str, str]] = None, *children: Node) -> Element:
    """Build an Element from positional children"""
    return Element(tag, dict(attrs or {}), tuple(children))


def hidden_paragraph(css_class: str, name: Optional[str] = None) -> Element:
    """
    Build an invisible anchor paragraph

    Args:
        css_class: Class marking the paragraph's role ("md-break" or "link-block")
        name: Anchor name to attach, if any

    Returns:
        ``<p class=... name=...><span>&#8203;</span></p>`` as an Element
    """
    attrs = {"class": css_class}
    if name:
        attrs["name"] = name
    return element("p", attrs, element("span", {}, Text(ZERO_WIDTH)))


def text_content(node: Node) -> str:
    """Concatenate all text below ``node`` (br counts as a newline)"""
    if isinstance(node, Text):
        return node.value
    if node.tag == "br":
        return "\n"
    return "".join(text_content(child) for child in node.children)


def nodes_walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal"""
    yield node
    if isinstance(node, Element):
        for child in node.children:
            yield from nodes_walk(child)


def elements_find(node: Node, predicate: Callable[[Element], bool]) -> List[Element]:
    """Return every element below (and including) ``node`` matching ``predicate``"""
    return [n for n in nodes_walk(node) if isinstance(n, Element) and predicate(n)]


def hrefs_retarget(node: Node, mapping: Dict[str, str]) -> Node:
    """
    Rewrite in-document anchor hrefs

    Builds a new tree in which every ``<a href="#x">`` whose lowercased target
    appears in ``mapping`` points at ``#mapping[x]`` instead.

    Args:
        node: Root of the tree to rewrite
        mapping: Lowercased anchor -> replacement anchor (both without ``#``)

    Returns:
        The rewritten tree (``node`` itself when nothing changed)
    """
    if isinstance(node, Text) or not mapping:
        return node

    current = node
    href = node.attrs.get("href", "")
    if node.tag == "a" and href.startswith("#"):
        target = mapping.get(href[1:].lower())
        if target is not None:
            current = node.with_attrs(href=f"#{target}")

    children = [hrefs_retarget(child, mapping) for child in node.children]
    if any(new is not old for new, old in zip(children, node.children)):
        current = current.with_children(children)
    return current


def html_render(node: Node) -> str:
    """Serialise a tree to HTML"""
    if isinstance(node, Text):
        return html.escape(node.value, quote=False)

    attrs = "".join(
        f' {name}="{html.escape(value, quote=True)}"' for name, value in node.attrs.items()
    )
    if node.tag in VOID_TAGS:
        return f"<{node.tag}{attrs}>"

    inner = "".join(html_render(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"
