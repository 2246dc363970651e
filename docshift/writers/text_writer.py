"""
Writer for plain text output.
"""

from typing import Callable, Dict, Iterable, List

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.node import Node
from docshift.nodes.math import MathKinds, MathProps
from docshift.nodes.std import Kinds, Props
from docshift.writers.base import OutputWriter, RenderContext, WriterRegistry

BlockHandler = Callable[[Node, RenderContext], List[str]]
InlineHandler = Callable[[Node, RenderContext], str]

PAGE_BREAK = "\f"


@WriterRegistry.register
class TextWriter(OutputWriter):
    """
    Writer for plain text.

    Structure survives only as whitespace: blocks are separated by blank
    lines, list items get "- " or "1. " markers, tables become padded rows
    joined with " | ", and page breaks are written as form feeds. Inline
    formatting is dropped.
    """

    def __init__(self):
        self._blocks: Dict[str, BlockHandler] = {
            Kinds.DOCUMENT: self._container,
            Kinds.DIV: self._container,
            Kinds.FIGURE: self._container,
            Kinds.DEFINITION_LIST: self._container,
            Kinds.PARAGRAPH: self._paragraph,
            Kinds.CAPTION: self._paragraph,
            Kinds.DEFINITION_TERM: self._paragraph,
            Kinds.DEFINITION_DESC: self._indented,
            Kinds.HEADING: self._heading,
            Kinds.CODE_BLOCK: self._code_block,
            Kinds.BLOCKQUOTE: self._blockquote,
            Kinds.LIST: self._list,
            Kinds.TABLE: self._table,
            Kinds.HORIZONTAL_RULE: self._rule,
            Kinds.FOOTNOTE_DEF: self._footnote_def,
            MathKinds.DISPLAY: self._display_math,
        }
        self._inlines: Dict[str, InlineHandler] = {
            Kinds.TEXT: lambda node, ctx: node.props.get_str(Props.CONTENT) or "",
            Kinds.CODE: lambda node, ctx: node.props.get_str(Props.CONTENT) or "",
            Kinds.EMPHASIS: self._style,
            Kinds.STRONG: self._style,
            Kinds.UNDERLINE: self._style,
            Kinds.STRIKEOUT: self._style,
            Kinds.SUBSCRIPT: self._style,
            Kinds.SUPERSCRIPT: self._style,
            Kinds.SMALL_CAPS: self._style,
            Kinds.SPAN: self._inline_children,
            Kinds.QUOTED: lambda node, ctx: f'"{self._inline_children(node, ctx)}"',
            Kinds.LINK: self._link,
            Kinds.IMAGE: self._image,
            Kinds.LINE_BREAK: lambda node, ctx: "\n",
            Kinds.SOFT_BREAK: lambda node, ctx: " ",
            Kinds.FOOTNOTE_REF: lambda node, ctx: f"[{node.props.get_str(Props.LABEL) or '?'}]",
            MathKinds.INLINE: self._inline_math,
        }

    @classmethod
    def get_format_name(cls) -> str:
        return "text"

    @classmethod
    def get_extension(cls) -> str:
        return ".txt"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".txt", ".text"]

    @classmethod
    def get_default_options(cls):
        return {"column_separator": " | "}

    def emit(self, doc: Document, options=None) -> ConversionResult[bytes]:
        ctx = self._context(doc, options)
        blocks = self._render_block(doc.content, ctx)
        text = "\n\n".join(blocks)
        if text:
            text += "\n"
        return ctx.result(text.encode("utf-8"))

    # -------------------------------
    # Dispatch
    # -------------------------------
    def _render_block(self, node: Node, ctx: RenderContext) -> List[str]:
        handler = self._blocks.get(node.kind)
        if handler is not None:
            return handler(node, ctx)
        if node.kind in self._inlines:
            content = self._render_inline(node, ctx)
            return [content] if content else []
        content = ctx.fallback_text(node)
        return [content] if content is not None else []

    def _render_blocks(self, nodes: Iterable[Node], ctx: RenderContext) -> List[str]:
        """Render a block sequence; runs of stray inline nodes form one block."""
        blocks: List[str] = []
        inline_run: List[str] = []
        for child in nodes:
            if child.kind in self._inlines:
                inline_run.append(self._render_inline(child, ctx))
                continue
            if inline_run:
                blocks.append("".join(inline_run))
                inline_run = []
            blocks.extend(self._render_block(child, ctx))
        if inline_run:
            blocks.append("".join(inline_run))
        return [block for block in blocks if block]

    def _render_inline(self, node: Node, ctx: RenderContext) -> str:
        handler = self._inlines.get(node.kind)
        if handler is not None:
            return handler(node, ctx)
        if node.kind in self._blocks:
            return " ".join(self._render_block(node, ctx))
        return ctx.fallback_text(node) or ""

    def _inline_children(self, node: Node, ctx: RenderContext) -> str:
        return "".join(self._render_inline(child, ctx) for child in node.children)

    # -------------------------------
    # Block handlers
    # -------------------------------
    def _container(self, node: Node, ctx: RenderContext) -> List[str]:
        return self._render_blocks(node.children, ctx)

    def _paragraph(self, node: Node, ctx: RenderContext) -> List[str]:
        content = self._inline_children(node, ctx)
        return [content] if content else []

    def _heading(self, node: Node, ctx: RenderContext) -> List[str]:
        ctx.warn_once("heading", FidelityWarning.simplified(
            "heading", "Heading levels are not representable in plain text", Severity.INFO,
        ))
        return self._paragraph(node, ctx)

    def _indented(self, node: Node, ctx: RenderContext) -> List[str]:
        body = "\n".join(self._render_blocks(node.children, ctx))
        return ["\n".join("    " + line if line else line for line in body.split("\n"))] if body else []

    def _code_block(self, node: Node, ctx: RenderContext) -> List[str]:
        return [node.props.get_str(Props.CONTENT) or ""]

    def _blockquote(self, node: Node, ctx: RenderContext) -> List[str]:
        body = "\n\n".join(self._render_blocks(node.children, ctx))
        if not body:
            return []
        return ["\n".join(("> " + line).rstrip() for line in body.split("\n"))]

    def _list(self, node: Node, ctx: RenderContext) -> List[str]:
        ordered = bool(node.props.get_bool(Props.ORDERED))
        start = node.props.get_int(Props.START)
        number = start if start is not None else 1

        lines: List[str] = []
        for item in node.children:
            marker = f"{number}. " if ordered else "- "
            number += 1
            content = item.children if item.kind == Kinds.LIST_ITEM else [item]
            item_lines = "\n".join(self._render_blocks(content, ctx)).split("\n")
            lines.append(marker + item_lines[0])
            indent = " " * len(marker)
            lines.extend(indent + line if line else line for line in item_lines[1:])
        return ["\n".join(lines)] if lines else []

    def _table(self, node: Node, ctx: RenderContext) -> List[str]:
        ctx.warn_once("table", FidelityWarning.simplified(
            "table", "Table written as aligned text rows", Severity.MINOR,
        ))
        rows = [
            [" ".join(self._render_blocks(cell.children, ctx)).replace("\n", " ") for cell in row.children]
            for row in node.children
        ]
        if not rows:
            return []
        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]
        col_widths = [max(len(row[i]) for row in rows) for i in range(width)]
        separator = ctx.extra.get("column_separator", " | ")
        lines = [
            separator.join(cell.ljust(col_widths[i]) for i, cell in enumerate(row)).rstrip()
            for row in rows
        ]
        return ["\n".join(lines)]

    def _rule(self, node: Node, ctx: RenderContext) -> List[str]:
        if node.props.get_bool(Props.LAYOUT_PAGE_BREAK):
            return [PAGE_BREAK]
        return ["---"]

    def _footnote_def(self, node: Node, ctx: RenderContext) -> List[str]:
        label = node.props.get_str(Props.LABEL) or "?"
        body = " ".join(self._render_blocks(node.children, ctx))
        return [f"[{label}] {body}".rstrip()]

    def _display_math(self, node: Node, ctx: RenderContext) -> List[str]:
        content = self._inline_math(node, ctx)
        return [content] if content else []

    # -------------------------------
    # Inline handlers
    # -------------------------------
    def _style(self, node: Node, ctx: RenderContext) -> str:
        ctx.warn_once("inline styles", FidelityWarning.simplified(
            "inline styles", "Inline formatting is not representable in plain text", Severity.INFO,
        ))
        return self._inline_children(node, ctx)

    def _link(self, node: Node, ctx: RenderContext) -> str:
        label = self._inline_children(node, ctx)
        url = node.props.get_str(Props.URL)
        if not url or url == label:
            return label or (url or "")
        return f"{label} <{url}>" if label else url

    def _image(self, node: Node, ctx: RenderContext) -> str:
        alt = node.props.get_str(Props.ALT)
        return f"[Image: {alt}]" if alt else "[Image]"

    def _inline_math(self, node: Node, ctx: RenderContext) -> str:
        source = node.props.get_str(MathProps.SOURCE)
        if source is None:
            return ctx.fallback_text(node) or ""
        ctx.warn_once("math", FidelityWarning.simplified(
            "math", "Math written as its source text", Severity.INFO,
        ))
        return source
