"""
Block segmenter for mdpress markdown

Splits a document into an ordered sequence of line-range-scoped blocks.

The segmenter makes a single forward pass over the lines while holding a
pending paragraph buffer. Each line is tested in a fixed priority order:

1. Blank line (a run of blanks becomes one BreakBlock)
2. Pipe table (header row followed by a ``---`` divider row)
3. Indented code (leading tab or four spaces)
4. Constructs keyed on the first non-space character: code fence, heading,
   horizontal rule, list item, footnote definition, anchor line, quote
5. Running text, which is scanned for ``$$...$$`` / ``$...$`` math

Anything else joins the paragraph buffer, which is flushed as a ContentBlock
whenever another construct starts or the document ends.

Example:
    >>> blocks = blocks_segment("# Title\\n\\n- one\\n- two")
    >>> [block.kind.value for block in blocks]
    ['heading', 'break', 'list']
    >>> blocks[2].content
    'one\\ntwo'
"""

import re
from typing import Callable, List, Optional, Tuple

from ..models.blocks import (
    Block,
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
from .log import LOG
from .text import anchor_isValid, anchor_split


FENCE_INFO_STOP = re.compile(r"[^A-Za-z0-9#+-]")
ORDERED_ITEM = re.compile(r"(\d+)\. ")
FOOTNOTE_DEFINITION = re.compile(r"\[\^([^\]]+)\]:")
CALLOUT_MARKER = re.compile(r"\[!([^\]]+)\](.*)$")


def marker_strip(text: str, marker: str) -> str:
    """Remove a quote marker and at most one following space"""
    text = text[len(marker):]
    return text[1:] if text.startswith(" ") else text


class BlockSegmenter:
    """
    Line-oriented block scanner

    Attributes:
        lines: Source lines (``\\r\\n`` normalised)
        blocks: Blocks emitted so far
        index: Index of the line under examination
        buffer: Pending paragraph lines
        buffer_start: Line index of the first buffered line
        buffer_end: Line index of the last buffered line
    """

    def __init__(self, text: str) -> None:
        self.text = text.replace("\r\n", "\n")
        self.lines: List[str] = self.text.split("\n") if self.text else []
        self.blocks: List[Block] = []
        self.index = 0
        self.buffer: List[str] = []
        self.buffer_start = 0
        self.buffer_end = 0

        self.line_consumers: List[Callable[[str, str], bool]] = [
            self.fence_consume,
            self.heading_consume,
            self.rule_consume,
            self.list_consume,
            self.footnote_consume,
            self.anchor_consume,
            self.quote_consume,
        ]

    def segment(self) -> List[Block]:
        """
        Run the segmentation pass

        Returns:
            Blocks in document order
        """
        while self.index < len(self.lines):
            line = self.lines[self.index]

            if not line.strip():
                self.break_consume()
                continue
            if self.table_consume(line):
                continue
            if self.indentedCode_consume(line):
                continue

            stripped = line.lstrip()
            if any(consume(line, stripped) for consume in self.line_consumers):
                continue

            self.text_consume(line)

        self.buffer_flush()
        LOG(f"Segmented {len(self.lines)} lines into {len(self.blocks)} blocks", level=3)
        return self.blocks

    # ------------------------------------------------------------------
    # Paragraph buffer
    # ------------------------------------------------------------------

    def buffer_add(self, text: str, line_index: int) -> None:
        if not self.buffer:
            self.buffer_start = line_index
        self.buffer.append(text)
        self.buffer_end = line_index

    def buffer_flush(self) -> None:
        """Emit the pending paragraph (if any) as a ContentBlock"""
        if not self.buffer:
            return
        content, anchor = anchor_split("\n".join(self.buffer))
        self.blocks.append(
            ContentBlock(
                line_start=self.buffer_start,
                line_end=self.buffer_end,
                content=content,
                id=anchor,
            )
        )
        self.buffer = []

    def block_emit(self, block: Block, next_index: int) -> bool:
        """Flush the paragraph, append ``block`` and move to ``next_index``"""
        self.buffer_flush()
        self.blocks.append(block)
        self.index = next_index
        return True

    # ------------------------------------------------------------------
    # Line-level constructs
    # ------------------------------------------------------------------

    def break_consume(self) -> None:
        start = self.index
        end = start
        while end + 1 < len(self.lines) and not self.lines[end + 1].strip():
            end += 1
        self.block_emit(
            BreakBlock(line_start=start, line_end=end, count=end - start + 1), end + 1
        )

    def tableRow_split(self, line: str, direct: bool) -> Optional[List[str]]:
        """
        Split a table row into stripped cells

        Direct tables (leading pipe) must also close with a pipe; a row that
        breaks that rule is not part of the table.
        """
        if "|" not in line:
            return None
        cells = line.split("|")
        if direct:
            if cells[0].strip() or cells[-1].strip() or len(cells) < 3:
                return None
            cells = cells[1:-1]
        return [cell.strip() for cell in cells]

    def table_consume(self, line: str) -> bool:
        """
        Recognise a pipe table

        The line after the header must be a divider whose cells are made of
        dashes only. On any mismatch the line is left to the remaining tests.
        """
        if "|" not in line or self.index + 1 >= len(self.lines):
            return False

        direct = not line.split("|")[0].strip()
        header = self.tableRow_split(line, direct)
        divider = self.tableRow_split(self.lines[self.index + 1], direct)
        if header is None or not divider:
            return False
        if any(not cell or cell.strip("-") for cell in divider):
            return False

        width = max(len(header), len(divider))
        header.extend([""] * (width - len(header)))
        body = [header]

        row_index = self.index + 2
        while row_index < len(self.lines):
            row = self.tableRow_split(self.lines[row_index], direct)
            if row is None:
                break
            row = row[:width]
            row.extend([""] * (width - len(row)))
            body.append(row)
            row_index += 1

        return self.block_emit(
            TableBlock(line_start=self.index, line_end=row_index - 1, body=body), row_index
        )

    def indentedCode_consume(self, line: str) -> bool:
        if line.startswith("\t"):
            content = line[1:]
        elif line.startswith("    "):
            content = line[4:]
        else:
            return False
        return self.block_emit(
            IndentedCodeBlock(line_start=self.index, line_end=self.index, content=content),
            self.index + 1,
        )

    def fence_consume(self, line: str, stripped: str) -> bool:
        """
        Recognise a fenced code block

        The info string after the fence holds the language, optional ``!``
        (rasterize) and ``*`` (light theme) flags and a caption. The block
        runs to a line holding only a fence of the same character that is at
        least as long as the opener, or to the end of the document.
        """
        fence_char = stripped[0]
        if fence_char not in "`~":
            return False
        run = len(stripped) - len(stripped.lstrip(fence_char))
        if run < 3:
            return False
        info = stripped[run:]
        if fence_char == "`" and "`" in info:
            return False

        language, caption, to_png, use_light_theme = info.strip(), "", False, False
        match = FENCE_INFO_STOP.search(info)
        if match:
            language = info[: match.start()]
            rest = info[match.start():]
            for _ in range(2):
                if rest.startswith("!") and not to_png:
                    to_png = True
                elif rest.startswith("*") and not use_light_theme:
                    use_light_theme = True
                else:
                    break
                rest = rest[1:]
            caption = rest.strip()

        content = []
        close_index = len(self.lines) - 1
        for candidate in range(self.index + 1, len(self.lines)):
            closing = self.lines[candidate].strip()
            if closing and not closing.strip(fence_char) and len(closing) >= run:
                close_index = candidate
                break
            content.append(self.lines[candidate] + "\n")

        block = CodeBlock(
            line_start=self.index,
            line_end=close_index,
            content="".join(content),
            language=language,
            caption=caption,
            to_png=to_png,
            use_light_theme=use_light_theme,
        )
        return self.block_emit(block, close_index + 1)

    def heading_consume(self, line: str, stripped: str) -> bool:
        if not line.startswith("#"):
            return False
        level = len(line) - len(line.lstrip("#"))
        if level > 6 or line[level: level + 1] != " ":
            return False
        content, anchor = anchor_split(line[level + 1:])
        block = HeadingBlock(
            line_start=self.index,
            line_end=self.index,
            content=content.strip(),
            id=anchor,
            level=level,
        )
        return self.block_emit(block, self.index + 1)

    def rule_consume(self, line: str, stripped: str) -> bool:
        """
        Recognise a horizontal rule

        Three or more of the same ``-``, ``*`` or ``_`` with nothing else on
        the line; spaces between the markers are allowed (``- - -``).
        """
        marker = stripped[0]
        if marker not in "-*_":
            return False
        compact = "".join(stripped.split())
        if len(compact) < 3 or compact.strip(marker):
            return False
        return self.block_emit(
            HorizontalRuleBlock(line_start=self.index, line_end=self.index), self.index + 1
        )

    def list_consume(self, line: str, stripped: str) -> bool:
        """
        Recognise a list item and merge it into a preceding list

        Consecutive items of the same ordinality form one ListBlock whose
        content is the newline-joined item texts. A trailing ``^id`` on an
        item is removed; the first item's id becomes the list's id.
        """
        if stripped[0] in "-*+" and stripped[1:2] == " ":
            ordered = False
            item = stripped[2:]
        else:
            match = ORDERED_ITEM.match(stripped)
            if not match:
                return False
            ordered = True
            item = stripped[match.end():]

        self.buffer_flush()
        item, anchor = anchor_split(item)

        previous = self.blocks[-1] if self.blocks else None
        if isinstance(previous, ListBlock) and previous.ordered == ordered:
            previous.content += "\n" + item
            previous.line_end = self.index
        else:
            self.blocks.append(
                ListBlock(
                    line_start=self.index,
                    line_end=self.index,
                    content=item,
                    id=anchor,
                    ordered=ordered,
                )
            )
        self.index += 1
        return True

    def footnote_consume(self, line: str, stripped: str) -> bool:
        """
        Recognise a footnote definition ``[^id]: text``

        Following lines indented by two spaces continue the definition.
        """
        match = FOOTNOTE_DEFINITION.match(stripped)
        if not match:
            return False

        parts = [stripped[match.end():].strip()]
        end = self.index
        while (
            end + 1 < len(self.lines)
            and self.lines[end + 1].startswith("  ")
            and self.lines[end + 1].strip()
        ):
            end += 1
            parts.append(self.lines[end].strip())

        block = FootnoteBlock(
            line_start=self.index,
            line_end=end,
            content="\n".join(parts),
            id=match.group(1),
        )
        return self.block_emit(block, end + 1)

    def anchor_consume(self, line: str, stripped: str) -> bool:
        """Attach a lone ``^id`` line to the previous non-break block"""
        if not line.startswith("^") or not anchor_isValid(line[1:].rstrip()):
            return False

        self.buffer_flush()
        for block in reversed(self.blocks):
            if not isinstance(block, BreakBlock):
                block.id = line[1:].rstrip()
                self.index += 1
                return True
        return False

    def quote_consume(self, line: str, stripped: str) -> bool:
        """
        Recognise a blockquote, pullquote or callout

        ``>>`` opens a pullquote continued by ``>>`` lines; ``>`` opens a
        blockquote continued by ``>`` lines. A blockquote whose first line
        starts with ``[!name]`` is a callout whose content is the following
        lines.
        """
        if not stripped.startswith(">"):
            return False

        pull = stripped.startswith(">>")
        marker = ">>" if pull else ">"
        parts = [marker_strip(stripped, marker)]

        end = self.index
        while end + 1 < len(self.lines):
            following = self.lines[end + 1].lstrip()
            if not following.startswith(marker) or (not pull and following.startswith(">>")):
                break
            end += 1
            parts.append(marker_strip(following, marker))

        if pull:
            block: Block = QuoteBlock(
                line_start=self.index,
                line_end=end,
                content="\n".join(parts),
                quote_kind=QuoteKind.PULLQUOTE,
            )
            return self.block_emit(block, end + 1)

        callout = CALLOUT_MARKER.match(parts[0].lstrip())
        if callout:
            block = CalloutBlock(
                line_start=self.index,
                line_end=end,
                content="\n".join(parts[1:]),
                name=callout.group(1),
                title=callout.group(2).strip(),
            )
        else:
            block = QuoteBlock(
                line_start=self.index,
                line_end=end,
                content="\n".join(parts),
                quote_kind=QuoteKind.BLOCKQUOTE,
            )
        return self.block_emit(block, end + 1)

    # ------------------------------------------------------------------
    # Running text and math
    # ------------------------------------------------------------------

    def codeSpan_end(self, text: str, pos: int) -> Tuple[int, bool]:
        """
        Find the end of a backtick run starting at ``pos``

        Returns:
            (index after the matching closing run or after the opening run,
             whether a closing run was found)
        """
        run = len(text[pos:]) - len(text[pos:].lstrip("`"))
        search = pos + run
        while True:
            close = text.find("`" * run, search)
            if close == -1:
                return pos + run, False
            close_run = len(text[close:]) - len(text[close:].lstrip("`"))
            if close_run == run:
                return close + run, True
            search = close + close_run

    def inlineMath_end(self, text: str, pos: int) -> int:
        """
        Index of the ``$`` closing single-dollar math opened at ``pos``

        The opener needs a non-space character after it and the closer a
        non-space character before it; -1 when there is no closer.
        """
        if pos + 1 >= len(text) or text[pos + 1].isspace():
            return -1
        cursor = pos + 1
        while cursor < len(text):
            if text[cursor] == "\\":
                cursor += 2
                continue
            if text[cursor] == "$" and not text[cursor - 1].isspace():
                return cursor
            cursor += 1
        return -1

    def displayMath_end(self, line_index: int, pos: int) -> Tuple[int, int, str]:
        """
        Locate the ``$$`` closing display math opened before ``pos``

        Returns:
            (line index of the closer, index after the closer, math content);
            an unterminated span runs to the end of the document.
        """
        parts = []
        current = line_index
        start = pos
        while current < len(self.lines):
            text = self.lines[current]
            close = text.find("$$", start)
            if close != -1:
                parts.append(text[start:close])
                return current, close + 2, "\n".join(parts).strip("\n")
            parts.append(text[start:])
            current += 1
            start = 0
        last = len(self.lines) - 1
        return last, len(self.lines[last]), "\n".join(parts).strip("\n")

    def text_consume(self, line: str) -> None:
        """
        Add running text to the paragraph, splitting out math spans

        Text before a math span is flushed as a paragraph, the span becomes a
        MathBlock and scanning continues after it (possibly on a later line
        for multi-line ``$$`` math). Code spans are skipped whole.
        """
        line_index = self.index
        text = line
        pending: List[str] = []
        pos = 0
        math_seen = False

        while pos < len(text):
            char = text[pos]

            if char == "\\":
                pending.append(text[pos: pos + 2])
                pos += 2
                continue

            if char == "`":
                end, _ = self.codeSpan_end(text, pos)
                pending.append(text[pos:end])
                pos = end
                continue

            if char != "$":
                pending.append(char)
                pos += 1
                continue

            if text.startswith("$$", pos):
                end_line, end_pos, content = self.displayMath_end(line_index, pos + 2)
            else:
                close = self.inlineMath_end(text, pos)
                if close == -1:
                    pending.append(char)
                    pos += 1
                    continue
                end_line, end_pos, content = line_index, close + 1, text[pos + 1: close]

            before = "".join(pending)
            if before.strip():
                self.buffer_add(before, line_index)
            self.buffer_flush()
            self.blocks.append(
                MathBlock(line_start=line_index, line_end=end_line, content=content)
            )

            math_seen = True
            pending = []
            line_index = end_line
            text = self.lines[end_line]
            pos = end_pos

        remainder = "".join(pending)
        if math_seen:
            remainder = remainder.lstrip()
        if remainder.strip():
            self.buffer_add(remainder, line_index)
        self.index = line_index + 1


def blocks_segment(text: str) -> List[Block]:
    """
    Segment a document into blocks

    Args:
        text: Full markdown document

    Returns:
        Blocks in document order
    """
    return BlockSegmenter(text).segment()
