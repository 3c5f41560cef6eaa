"""
Footnote and table-of-contents resolution

Both structures are threaded through the Renderer: footnote numbers are
assigned when a reference is rendered, TOC entries when a heading is.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..models.blocks import FootnoteBlock
from ..models.elements import Element, Node, Text, element
from ..models.render import TOCNode
from .log import LOG, WARN
from .text import slug_generate


class FootnoteTable:
    """
    Footnote id -> display number, assigned in first-reference order

    Definitions are collected separately; a definition whose id is never
    referenced is never rendered.

    Example:
        >>> table = FootnoteTable()
        >>> table.number_get("b"), table.number_get("a"), table.number_get("b")
        (1, 2, 1)
    """

    def __init__(self) -> None:
        self.numbers: Dict[str, int] = {}
        self.definitions: Dict[str, FootnoteBlock] = {}

    def number_get(self, footnote_id: str) -> int:
        """Return the display number of ``footnote_id``, assigning the next one on first sight"""
        if footnote_id not in self.numbers:
            self.numbers[footnote_id] = len(self.numbers) + 1
            LOG(f"Footnote [^{footnote_id}] numbered {self.numbers[footnote_id]}", level=3)
        return self.numbers[footnote_id]

    def definition_add(self, block: FootnoteBlock) -> bool:
        """
        Record a footnote definition

        Returns:
            False when the id was already defined (the first definition wins)
        """
        footnote_id = block.id or ""
        if footnote_id in self.definitions:
            WARN(f"Duplicate footnote definition [^{footnote_id}] on line {block.line_start + 1} ignored")
            return False
        self.definitions[footnote_id] = block
        return True

    def definitions_pending(self, rendered: Set[str]) -> List[Tuple[int, FootnoteBlock]]:
        """
        Referenced definitions not rendered yet, by ascending display number

        Args:
            rendered: Ids of definitions already rendered
        """
        pending = [
            (self.numbers[footnote_id], block)
            for footnote_id, block in self.definitions.items()
            if footnote_id in self.numbers and footnote_id not in rendered
        ]
        return sorted(pending, key=lambda entry: entry[0])


class TOCBuilder:
    """
    Stack-based outline builder

    A heading of level L pops the stack until the top has a level below L,
    attaches to that top (or becomes a root) and is pushed. When the new
    heading skips levels below its parent, placeholder nodes fill the gap so
    the index path stays hierarchical.

    Example:
        >>> toc = TOCBuilder()
        >>> toc.heading_add(1, "Intro").anchor
        '1-intro'
        >>> toc.heading_add(3, "Deep Dive").anchor
        '1.1.1-deep-dive'
    """

    def __init__(self) -> None:
        self.roots: List[TOCNode] = []
        self.stack: List[TOCNode] = []

    def node_attach(self, node: TOCNode) -> None:
        siblings = self.stack[-1].children if self.stack else self.roots
        parent_number = self.stack[-1].number if self.stack else []
        siblings.append(node)
        node.number = parent_number + [len(siblings)]
        self.stack.append(node)

    def heading_add(self, level: int, text: str) -> TOCNode:
        """
        Register a heading

        Args:
            level: Heading level (1..6)
            text: Plain heading text

        Returns:
            The new node, with ``anchor`` set to ``{index-path}-{slug}``
        """
        while self.stack and self.stack[-1].level >= level:
            self.stack.pop()

        if self.stack:
            for gap_level in range(self.stack[-1].level + 1, level):
                self.node_attach(TOCNode(level=gap_level))

        node = TOCNode(level=level, text=text)
        self.node_attach(node)
        node.anchor = "{}-{}".format(".".join(str(part) for part in node.number), slug_generate(text))
        return node

    def nodes_walk(self, nodes: Optional[Iterable[TOCNode]] = None, depth: int = 0) -> Iterator[Tuple[TOCNode, int]]:
        """Pre-order traversal yielding (node, depth), placeholders included"""
        for node in self.roots if nodes is None else nodes:
            yield node, depth
            yield from self.nodes_walk(node.children, depth + 1)

    def anchors_map(self) -> Dict[str, str]:
        """Lowercased slug of each heading -> its display anchor (first wins)"""
        mapping: Dict[str, str] = {}
        for node, _ in self.nodes_walk():
            if node.text is not None:
                mapping.setdefault(slug_generate(node.text), node.anchor)
                mapping.setdefault(node.text.replace(" ", "-").lower(), node.anchor)
        return mapping

    def markdown_render(self, numbering: str = "numeric", title: str = "Table of Contents") -> str:
        """
        Render the outline as markdown

        Args:
            numbering: "numeric" (``1.2.``) or "bulleted" (``-``)
            title: Heading line of the TOC

        Returns:
            ``# {title}`` followed by one indented line per heading
        """
        lines = [f"# {title}"]
        for node, depth in self.nodes_walk():
            if node.text is None:
                continue
            indent = "  " * depth
            bullet = ".".join(str(part) for part in node.number) + "." if numbering == "numeric" else "-"
            lines.append(f"{indent}{bullet} [{node.text}](#{node.anchor})")
        return "\n".join(lines) + "\n"

    def element_render(self, title: str = "Table of Contents") -> Optional[Element]:
        """Render the outline as ``pre.toc > code``, or None when there are no headings"""
        if not self.roots:
            return None
        children: List[Node] = [element("strong", {}, Text(title)), Text("\n")]
        for node, depth in self.nodes_walk():
            if node.text is None:
                continue
            children.append(
                element(
                    "span",
                    {},
                    Text("\t" * depth + ".".join(str(part) for part in node.number) + ". "),
                    element("a", {"href": f"#{node.anchor}"}, Text(node.text)),
                    Text("\n"),
                )
            )
        return element(
            "pre",
            {"class": "toc", "data-code-block-mode": "0"},
            element("code", {}, *children),
        )
