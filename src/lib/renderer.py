"""
Renderer for mdpress documents

Walks the block sequence once, in document order, building two parallel
artifacts per block:

- an element tree (immutable ``Element``/``Text`` values)
- canonical markdown that parses back to the same tree

Each block kind has a handler in the ``handlers`` dispatch table. Handlers
compute their output locally and commit it through ``output_add``, so a
handler that raises leaves no partial output behind; the failure is logged
and recorded as a RenderIssue.

Code fences, tables, math and callouts can be handed to an ImageRasterizer
instead of being rendered natively. A failed rasterization falls back to the
native form; a block with neither is dropped and reported.

Example:
    >>> blocks = blocks_segment("# Title\\n\\nSee [^1].\\n\\n[^1]: A note.")
    >>> result = asyncio.run(Renderer(blocks).render())
    >>> result.document.title, result.footnotes
    ('Title', {'1': 1})
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from ..config.settings import RenderSettings, appsettings
from ..models.blocks import (
    Block,
    BlockKind,
    BreakBlock,
    CalloutBlock,
    CodeBlock,
    ContentBlock,
    FootnoteBlock,
    HeadingBlock,
    HorizontalRuleBlock,
    IndentedCodeBlock,
    ListBlock,
    MathBlock,
    QuoteBlock,
    QuoteKind,
    TableBlock,
)
from ..models.elements import (
    Element,
    Node,
    Text,
    element,
    hidden_paragraph,
    hrefs_retarget,
    text_content,
)
from ..models.render import DocumentParts, ImageRef, RenderIssue, RenderResult
from ..models.tokens import (
    BreakToken,
    CodeToken,
    FootnoteRefToken,
    ImageToken,
    LinkToken,
    MathToken,
    PairedToken,
    TextToken,
    Token,
    TokenKind,
)
from .collaborators import HostBuffer, ImageRasterizer, ImageSize, buffer_staged
from .highlight import code_highlight
from .log import LOG, WARN
from .resolver import FootnoteTable, TOCBuilder
from .scanner import tokens_scan
from .text import (
    code_fence,
    dimensions_format,
    href_normalize,
    language_isSupported,
    language_normalize,
    lines_escape,
    markdown_escape,
    slug_generate,
    superscript_make,
    table_markdown,
)


INLINE_TAGS: Dict[TokenKind, str] = {
    TokenKind.STRONG: "strong",
    TokenKind.EM: "em",
    TokenKind.STRIKE: "del",
    TokenKind.MARK: "mark",
}

DEFAULT_MARKERS: Dict[TokenKind, str] = {
    TokenKind.STRONG: "**",
    TokenKind.EM: "*",
    TokenKind.STRIKE: "~~",
    TokenKind.MARK: "==",
}

WIDGET_ALT = "Code Block Widget"

BlockHandler = Callable[[Any], Awaitable[None]]
InlineHandler = Callable[[Any], Tuple[Node, str]]


def caption_quote(caption: str) -> str:
    """`` "caption"`` suffix for an image target, using a quote the caption lacks"""
    if not caption:
        return ""
    quote = next((char for char in "\"'`" if char not in caption), '"')
    return f" {quote}{caption}{quote}"


def inlineMath_markdown(content: str) -> str:
    """Write inline math as ``$..$`` when it reads back unchanged, else ``$$..$$``"""
    if (
        content
        and not content[0].isspace()
        and not content[-1].isspace()
        and "$" not in content
        and "\\" not in content
    ):
        return f"${content}$"
    return f"$${content}$$"


def boundary_escape(markdown: str, previous: Optional[Token], following: Optional[Token]) -> str:
    """
    Escape the edges of escaped text that would join a neighbouring token

    A ``:`` right after a footnote reference would read as a definition
    (``[^1]: ...``), and a ``!`` right before a link or footnote reference
    would read as an image.
    """
    if isinstance(previous, FootnoteRefToken) and markdown.startswith(":"):
        markdown = "\\" + markdown
    if isinstance(following, (LinkToken, FootnoteRefToken)) and markdown.endswith("!"):
        markdown = markdown[:-1] + "\\!"
    return markdown


def fence_markdown(block: CodeBlock) -> str:
    """Re-serialise a fenced code block, choosing a fence the content cannot close"""
    fence_char = "~" if "`" in block.caption else "`"
    longest = max(
        (
            len(line.strip())
            for line in block.content.split("\n")
            if line.strip() and not line.strip().strip(fence_char)
        ),
        default=0,
    )
    fence = fence_char * max(3, longest + 1)
    info = block.language
    if block.to_png:
        info += "!"
    if block.use_light_theme:
        info += "*"
    if block.caption:
        info += " " + block.caption
    return f"{fence}{info}\n{block.content}{fence}"


class Renderer:
    """
    Block-to-element renderer

    Attributes:
        blocks: Segmented document
        settings: Render configuration
        rasterizer: Image collaborator, None to render everything natively
        host: Host buffer staged around each rasterization, if any
        footnotes: Footnote numbering and buffered definitions
        toc: Heading outline
        document: Title / subtitle / main image decomposition
        issues: Non-fatal per-block problems
        nodes: Top-level elements rendered so far
        chunks: Canonical markdown, one entry per rendered block
        body_chunks: The subset of ``chunks`` that forms ``document.content``
    """

    def __init__(
        self,
        blocks: List[Block],
        settings: Optional[RenderSettings] = None,
        rasterizer: Optional[ImageRasterizer] = None,
        host: Optional[HostBuffer] = None,
    ) -> None:
        self.blocks = blocks
        self.settings = settings if settings is not None else appsettings
        self.rasterizer = rasterizer
        self.host = host

        self.footnotes = FootnoteTable()
        self.toc = TOCBuilder()
        self.document = DocumentParts()
        self.issues: List[RenderIssue] = []

        self.nodes: List[Node] = []
        self.chunks: List[str] = []
        self.body_chunks: List[str] = []
        self.body_started = False

        # Hidden break paragraphs of the current blank-line run, None when
        # no run is pending
        self.breaks_pending: Optional[int] = None
        self.separator_pending = False

        self.handlers: Dict[BlockKind, BlockHandler] = {
            BlockKind.CONTENT: self.content_render,
            BlockKind.HEADING: self.heading_render,
            BlockKind.LIST: self.list_render,
            BlockKind.HORIZONTAL_RULE: self.rule_render,
            BlockKind.CODE_BLOCK: self.codeBlock_render,
            BlockKind.CODE: self.indentedCode_render,
            BlockKind.TABLE: self.table_render,
            BlockKind.QUOTE: self.quote_render,
            BlockKind.CALLOUT: self.callout_render,
            BlockKind.FOOTNOTE: self.footnote_collect,
            BlockKind.MATH: self.math_render,
            BlockKind.BREAK: self.break_render,
        }

        self.inline_handlers: Dict[TokenKind, InlineHandler] = {
            TokenKind.TEXT: self.text_inline,
            TokenKind.CODE: self.code_inline,
            TokenKind.MATH: self.math_inline,
            TokenKind.LINK: self.link_inline,
            TokenKind.IMAGE: self.image_inline,
            TokenKind.FOOTNOTE_REF: self.footnoteRef_inline,
            TokenKind.BREAK: self.break_inline,
        }

    async def render(self) -> RenderResult:
        """
        Render every block, then the footnotes

        Returns:
            RenderResult with the element tree, canonical markdown, document
            parts, TOC and issues
        """
        for block in self.blocks:
            handler = self.handlers[block.kind]
            try:
                await handler(block)
            except Exception as e:
                WARN(
                    f"Skipping {block.kind.value} block at lines "
                    f"{block.line_start + 1}-{block.line_end + 1}: {e}"
                )
                self.issue_add("handler", block, str(e))

        self.footnotes_render()

        mapping = self.toc.anchors_map()
        for number in self.footnotes.numbers.values():
            mapping.pop(f"fn-{number}", None)
        tree = element("article", {}, *[hrefs_retarget(node, mapping) for node in self.nodes])

        toc_markdown = ""
        toc_element = None
        if self.settings.create_toc and self.toc.roots:
            toc_markdown = self.toc.markdown_render(self.settings.toc_numbering, self.settings.toc_title)
            toc_element = self.toc.element_render(self.settings.toc_title)

        self.document.content = "\n".join(self.body_chunks)
        LOG(
            f"Rendered {len(self.blocks)} blocks, {len(self.footnotes.numbers)} footnotes, "
            f"{len(self.issues)} issues",
            level=2,
        )
        return RenderResult(
            element_tree=tree,
            canonical_markdown="\n".join(self.chunks),
            document=self.document,
            toc=self.toc.roots,
            toc_markdown=toc_markdown,
            toc_element=toc_element,
            footnotes=dict(self.footnotes.numbers),
            issues=self.issues,
        )

    # ------------------------------------------------------------------
    # Output bookkeeping
    # ------------------------------------------------------------------

    def issue_add(self, kind: str, block: Block, message: str) -> None:
        self.issues.append(
            RenderIssue(kind=kind, line_start=block.line_start, line_end=block.line_end, message=message)
        )

    def separator_take(self) -> Optional[str]:
        """
        Canonical text of the pending blank-line run, consuming it

        A run that produced ``k`` hidden break paragraphs is written as
        ``2k`` blank lines, or a single one when ``k`` is 0.
        """
        if self.breaks_pending is None and not self.separator_pending:
            return None
        breaks = self.breaks_pending or 0
        self.breaks_pending = None
        self.separator_pending = False
        if not breaks and not self.chunks:
            return None
        return "\n" * (2 * breaks - 1) if breaks else ""

    def chunk_add(self, markdown: str, body: bool = True) -> None:
        separator = self.separator_take()
        if separator is not None:
            self.chunks.append(separator)
            if self.body_chunks:
                self.body_chunks.append(separator)
        self.chunks.append(markdown)
        if body:
            self.body_chunks.append(markdown)

    def anchor_attach(self, anchor: str) -> None:
        """Reuse a trailing hidden break paragraph as the anchor, or add one"""
        last = self.nodes[-1] if self.nodes else None
        if isinstance(last, Element) and last.attr("class") == "md-break":
            self.nodes[-1] = hidden_paragraph("link-block", anchor)
        else:
            self.nodes.append(hidden_paragraph("link-block", anchor))

    def output_add(self, block: Block, nodes: List[Node], markdown: str, body: bool = True) -> None:
        """Commit one block's elements and canonical markdown"""
        if block.id and not isinstance(block, HeadingBlock):
            self.anchor_attach(block.id)
            markdown += f"\n^{block.id}"
        self.nodes.extend(nodes)
        self.chunk_add(markdown, body)

    # ------------------------------------------------------------------
    # Inline rendering
    # ------------------------------------------------------------------

    def inline_render(self, tokens: List[Token]) -> Tuple[List[Node], str]:
        """
        Build element nodes and canonical markdown from inline tokens

        Paired tokens nest; markers synthesised by the scanner (implicit)
        shape the tree but are not written back.
        """
        root: List[Node] = []
        children = root
        stack: List[Tuple[PairedToken, List[Node]]] = []
        markdown: List[str] = []

        written = [not (isinstance(token, PairedToken) and token.implicit) for token in tokens]
        previous: Optional[Token] = None

        for position, token in enumerate(tokens):
            if isinstance(token, TextToken):
                following = next(
                    (tokens[index] for index in range(position + 1, len(tokens)) if written[index]), None
                )
                node, text = self.text_inline(token)
                children.append(node)
                markdown.append(boundary_escape(text, previous, following))
                previous = token
                continue
            if written[position]:
                previous = token

            if isinstance(token, PairedToken):
                if not token.implicit:
                    markdown.append(token.marker or DEFAULT_MARKERS[token.kind])
                if token.opening:
                    stack.append((token, children))
                    children = []
                elif stack:
                    opener, parent = stack.pop()
                    parent.append(element(INLINE_TAGS[opener.kind], {}, *children))
                    children = parent
                continue

            node, text = self.inline_handlers[token.kind](token)
            children.append(node)
            markdown.append(text)

        while stack:
            opener, parent = stack.pop()
            parent.append(element(INLINE_TAGS[opener.kind], {}, *children))
            children = parent

        return root, "".join(markdown)

    def text_inline(self, token: TextToken) -> Tuple[Node, str]:
        return Text(token.text), markdown_escape(token.text)

    def code_inline(self, token: CodeToken) -> Tuple[Node, str]:
        fence = code_fence(token.content)
        return element("code", {}, Text(token.content)), f"{fence}{token.content}{fence}"

    def math_inline(self, token: MathToken) -> Tuple[Node, str]:
        children = [Text(token.content)] if token.content else []
        return element("span", {"class": "math-inline"}, *children), inlineMath_markdown(token.content)

    def link_inline(self, token: LinkToken) -> Tuple[Node, str]:
        children = [Text(token.text)] if token.text else []
        node = element("a", {"href": href_normalize(token.url)}, *children)
        return node, f"[{token.text}]({token.url.replace(' ', '%20')})"

    def image_inline(self, token: ImageToken) -> Tuple[Node, str]:
        url = token.url.replace(" ", "%20")
        attrs = {"src": url, "alt": token.alt}
        if token.dimensions is not None:
            attrs["data-width"] = str(token.dimensions.width)
            if token.dimensions.height is not None:
                attrs["data-height"] = str(token.dimensions.height)

        markdown = f"![{token.alt}{dimensions_format(token.dimensions)}]({url}{caption_quote(token.caption)})"
        return self.figure_build(attrs, token.caption), markdown

    def footnoteRef_inline(self, token: FootnoteRefToken) -> Tuple[Node, str]:
        number = self.footnotes.number_get(token.id)
        link = element(
            "a",
            {"class": "footnote-ref", "href": f"#fn-{number}"},
            Text(superscript_make(number)),
        )
        return element("sup", {}, link), f"[^{number}]"

    def break_inline(self, token: BreakToken) -> Tuple[Node, str]:
        return element("br"), "\n"

    def figure_build(self, img_attrs: Dict[str, str], caption: str) -> Element:
        children: List[Node] = [element("img", img_attrs)]
        if caption:
            caption_nodes, _ = self.inline_render(tokens_scan(caption))
            children.append(element("figcaption", {}, *caption_nodes))
        return element("figure", {}, *children)

    # ------------------------------------------------------------------
    # Rasterized widgets
    # ------------------------------------------------------------------

    def style_hook(self, dark: bool) -> Dict[str, str]:
        return {
            "theme": "dark" if dark else "light",
            "font_family": self.settings.general_font_family,
            "code_font_family": self.settings.code_font_family,
        }

    async def widget_rasterize(
        self, block: Block, kind: str, source: Element, caption: str, dark: bool
    ) -> Optional[Tuple[Element, str]]:
        """
        Hand ``source`` to the rasterizer

        Returns:
            (figure element, canonical image markdown), or None when there
            is no rasterizer or it failed
        """
        asset_path = (
            f"/{self.settings.asset_directory}/{kind}-widget-{block.line_start}-{block.line_end}.png"
        )
        if self.rasterizer is None:
            LOG(f"No rasterizer configured, {asset_path} not produced", level=2)
            return None

        excerpt = self.host.range_get(block.line_start, block.line_end) if self.host is not None else ""
        target_width = self.settings.target_width if self.settings.custom_width else None
        size: Optional[ImageSize]
        try:
            async with buffer_staged(self.host, excerpt):
                size = await self.rasterizer.image_render(
                    source,
                    asset_path,
                    target_width,
                    self.settings.image_scale,
                    self.settings.smoothing,
                    self.style_hook(dark),
                )
        except Exception as e:
            WARN(f"Rasterizing {asset_path} failed: {e}")
            return None
        if size is None:
            WARN(f"Rasterizer produced no image for {asset_path}")
            return None

        LOG(f"Rasterized {asset_path} at {size.width}x{size.height}", level=2)
        attrs = {
            "src": asset_path,
            "alt": WIDGET_ALT,
            "data-width": str(size.width),
            "data-height": str(size.height),
            "data-widget": "true",
        }
        markdown = f"![{WIDGET_ALT}]({asset_path}{caption_quote(caption)})"
        return self.figure_build(attrs, caption), markdown

    async def widget_render(
        self,
        block: Block,
        kind: str,
        native: Element,
        markdown: str,
        rasterize: bool,
        fallback: bool = True,
        caption: str = "",
        dark: bool = False,
    ) -> None:
        """
        Emit a block that can be rasterized

        Args:
            block: Block being rendered
            kind: Asset name prefix (code language, callout name, table, math)
            native: Native element, also the rasterizer's input
            markdown: Canonical markdown of the native form
            rasterize: Try the rasterizer first
            fallback: The native form may be emitted
            caption: Caption of the rasterized figure
            dark: Rasterize with the dark theme
        """
        if rasterize or not fallback:
            widget = await self.widget_rasterize(block, kind, native, caption, dark)
            if widget is not None:
                figure, image_markdown = widget
                self.output_add(block, [figure], image_markdown)
                self.body_started = True
                return

        if not fallback:
            WARN(
                f"Dropping {block.kind.value} block at lines {block.line_start + 1}-{block.line_end + 1}: "
                "no rasterized image and no native form"
            )
            self.issue_add("unrenderable", block, f"{kind} block has no rasterized or native form")
            return

        self.output_add(block, [native], markdown)
        self.body_started = True

    # ------------------------------------------------------------------
    # Block handlers
    # ------------------------------------------------------------------

    async def content_render(self, block: ContentBlock) -> None:
        """
        Paragraph text; top-level images become figures of their own

        A content block holding nothing but one image, met before any body
        content, is the document's main image.
        """
        tokens = tokens_scan(block.content)
        nodes, markdown = self.inline_render(tokens)

        output: List[Node] = []
        paragraph: List[Node] = []

        def paragraph_flush() -> None:
            if any(
                not (isinstance(node, Text) and not node.value.strip())
                and not (isinstance(node, Element) and node.tag == "br")
                for node in paragraph
            ):
                output.append(element("p", {}, *paragraph))
            paragraph.clear()

        for node in nodes:
            if isinstance(node, Element) and node.tag == "figure":
                paragraph_flush()
                output.append(node)
            else:
                paragraph.append(node)
        paragraph_flush()

        body = True
        is_image_only = len(output) == 1 and isinstance(output[0], Element) and output[0].tag == "figure"
        if self.settings.split_title and not self.body_started and is_image_only and self.document.main_image is None:
            image = next(token for token in tokens if isinstance(token, ImageToken))
            self.document.main_image = ImageRef(
                url=image.url,
                alt=image.alt,
                caption=image.caption,
                width=image.dimensions.width if image.dimensions else None,
                height=image.dimensions.height if image.dimensions else None,
            )
            body = False
        elif output:
            self.body_started = True

        self.output_add(block, output, lines_escape(markdown), body=body)

    def heading_classify(self, block: HeadingBlock) -> str:
        if not self.settings.split_title or self.body_started:
            return "body"
        if self.document.title is None and block.level == 1:
            return "title"
        if self.document.title is not None and self.document.subtitle is None:
            return "subtitle"
        return "body"

    async def heading_render(self, block: HeadingBlock) -> None:
        nodes, markdown = self.inline_render(tokens_scan(block.content))
        text = "".join(text_content(node) for node in nodes)

        role = self.heading_classify(block)
        attrs: Dict[str, str] = {}
        if role == "title":
            self.document.title = text
            attrs["class"] = "md-title"
            anchor = block.id or slug_generate(text)
        elif role == "subtitle":
            self.document.subtitle = text
            attrs["class"] = "md-subtitle"
            anchor = block.id or slug_generate(text)
        else:
            node = self.toc.heading_add(block.level, text)
            if block.id:
                node.anchor = block.id
            anchor = node.anchor
            self.body_started = True
        attrs["id"] = anchor
        attrs["name"] = anchor

        heading_markdown = "#" * block.level + " " + markdown
        if block.id:
            heading_markdown += f" ^{block.id}"
        LOG(f"Heading h{block.level} '{text}' ({role}) -> #{anchor}", level=3)
        self.output_add(block, [element(f"h{block.level}", attrs, *nodes)], heading_markdown, body=role == "body")

    async def list_render(self, block: ListBlock) -> None:
        items: List[Node] = []
        lines: List[str] = []
        for index, item in enumerate(block.items(), start=1):
            nodes, markdown = self.inline_render(tokens_scan(item))
            markdown = lines_escape(markdown)
            items.append(element("li", {}, *nodes))
            lines.append(f"{index}. {markdown}" if block.ordered else f"- {markdown}")

        self.output_add(block, [element("ol" if block.ordered else "ul", {}, *items)], "\n".join(lines))
        self.body_started = True

    async def rule_render(self, block: HorizontalRuleBlock) -> None:
        self.output_add(block, [element("hr")], "---")

    async def quote_render(self, block: QuoteBlock) -> None:
        pull = block.quote_kind is QuoteKind.PULLQUOTE
        nodes, markdown = self.inline_render(tokens_scan(block.content, carry=True))
        css_class = "graf--pullquote" if pull else "graf--blockquote"
        prefix = ">> " if pull else "> "

        quote_markdown = "\n".join(prefix + line for line in markdown.split("\n"))
        self.output_add(block, [element("blockquote", {"class": css_class}, *nodes)], quote_markdown)
        self.body_started = True

    async def callout_render(self, block: CalloutBlock) -> None:
        if block.title:
            title_nodes, title_markdown = self.inline_render(tokens_scan(block.title))
        else:
            title_nodes, title_markdown = [Text(block.name.capitalize())], ""

        children: List[Node] = [
            element("p", {"class": "callout-title"}, element("strong", {}, *title_nodes))
        ]
        lines = [f"> [!{block.name}]" + (f" {title_markdown}" if title_markdown else "")]
        if block.content:
            body_nodes, body_markdown = self.inline_render(tokens_scan(block.content, carry=True))
            children.append(element("div", {"class": "callout-content"}, *body_nodes))
            lines.extend("> " + line for line in body_markdown.split("\n"))

        native = element("blockquote", {"class": "callout", "data-callout": block.name.lower()}, *children)
        await self.widget_render(
            block,
            block.name,
            native,
            "\n".join(lines),
            rasterize=self.settings.convert_callout_to_png,
            dark=self.settings.use_dark_theme,
        )

    async def codeBlock_render(self, block: CodeBlock) -> None:
        """
        Fenced code

        Natively a ``pre`` carrying the code block mode (2 supported
        language, 1 unsupported language, 0 none) and the normalised
        language. Rasterized when the language is set and either
        unsupported or ``convert_code_to_png`` differs from the ``!`` flag.
        """
        language = language_normalize(block.language)
        supported = language_isSupported(language)

        attrs = {"data-code-block-mode": "2" if supported else ("1" if language else "0")}
        code_attrs: Dict[str, str] = {}
        if language:
            attrs["data-code-block-lang"] = language
            code_attrs["class"] = language
        if language and self.settings.highlight_code:
            code_nodes = code_highlight(block.content, language)
        else:
            code_nodes = [Text(block.content)] if block.content else []
        native = element("pre", attrs, element("code", code_attrs, *code_nodes))

        rasterize = bool(language) and (not supported or self.settings.convert_code_to_png != block.to_png)
        caption = block.caption
        if not caption and self.settings.use_code_block_language_for_caption:
            caption = block.language
        await self.widget_render(
            block,
            block.language or "code",
            native,
            fence_markdown(block),
            rasterize=rasterize,
            caption=caption,
            dark=self.settings.use_dark_theme and not block.use_light_theme,
        )

    async def indentedCode_render(self, block: IndentedCodeBlock) -> None:
        children = [Text(block.content)] if block.content else []
        self.output_add(block, [element("pre", {}, element("code", {}, *children))], "\t" + block.content)
        self.body_started = True

    async def table_render(self, block: TableBlock) -> None:
        rendered = [[self.inline_render(tokens_scan(cell)) for cell in row] for row in block.body]

        header = element("tr", {}, *[element("th", {}, *nodes) for nodes, _ in rendered[0]])
        rows = [element("tr", {}, *[element("td", {}, *nodes) for nodes, _ in row]) for row in rendered[1:]]
        native = element("table", {}, element("thead", {}, header), element("tbody", {}, *rows))
        markdown = table_markdown([[cell for _, cell in row] for row in rendered]).rstrip("\n")

        await self.widget_render(
            block,
            "table",
            native,
            markdown,
            rasterize=self.settings.convert_table_to_png,
            fallback=self.settings.native_tables,
            dark=self.settings.use_dark_theme,
        )

    async def math_render(self, block: MathBlock) -> None:
        children = [Text(block.content)] if block.content else []
        native = element("div", {"class": "math"}, element("code", {}, *children))
        await self.widget_render(
            block,
            "math",
            native,
            f"$$\n{block.content}\n$$",
            rasterize=self.settings.convert_math_to_png,
            fallback=self.settings.native_math,
            dark=self.settings.use_dark_theme,
        )

    async def break_render(self, block: BreakBlock) -> None:
        """Every second blank line of the run adds a hidden anchor paragraph"""
        added = 0
        for index in range(1, block.count + 1):
            if index % 2 == 0:
                self.nodes.append(hidden_paragraph("md-break"))
                added += 1
        self.breaks_pending = (self.breaks_pending or 0) + added

    async def footnote_collect(self, block: FootnoteBlock) -> None:
        self.footnotes.definition_add(block)
        self.separator_pending = True

    # ------------------------------------------------------------------
    # Footnotes
    # ------------------------------------------------------------------

    def footnotes_render(self) -> None:
        """
        Render referenced definitions after an ``hr``, by display number

        Footnotes are taken one at a time so that references met inside a
        footnote body are numbered (and rendered) too.
        """
        rendered: Set[str] = set()
        nodes: List[Node] = []
        chunks: List[str] = []

        while True:
            pending = self.footnotes.definitions_pending(rendered)
            if not pending:
                break
            number, block = pending[0]
            rendered.add(block.id or "")
            try:
                body_nodes, body_markdown = self.inline_render(tokens_scan(block.content, carry=True))
            except Exception as e:
                WARN(f"Skipping footnote [^{block.id}] at line {block.line_start + 1}: {e}")
                self.issue_add("handler", block, str(e))
                continue

            anchor = f"fn-{number}"
            nodes.append(
                element(
                    "p",
                    {"id": anchor, "name": anchor},
                    element("strong", {}, Text(f"{number}. ")),
                    element("span", {"class": "footnote-text"}, *body_nodes),
                )
            )
            chunks.append(f"[^{number}]: " + "\n  ".join(body_markdown.split("\n")))

        separator = self.separator_take()
        if separator is None and nodes and self.chunks:
            separator = ""
        if separator is not None:
            self.chunks.append(separator)
            if self.body_chunks:
                self.body_chunks.append(separator)
        if not nodes:
            return

        self.nodes.append(element("hr"))
        self.nodes.extend(nodes)
        self.chunks.extend(chunks)
        self.body_chunks.extend(chunks)
