"""
Writer for text with ANSI terminal styling.
"""

from typing import List

from docshift.core.node import Node
from docshift.nodes.std import Kinds
from docshift.writers.base import RenderContext, WriterRegistry
from docshift.writers.text_writer import TextWriter

# kind -> (SGR code that sets the style, SGR code that clears it)
SGR_STYLES = {
    Kinds.STRONG: ("1", "22"),
    Kinds.EMPHASIS: ("3", "23"),
    Kinds.UNDERLINE: ("4", "24"),
    Kinds.STRIKEOUT: ("9", "29"),
}


@WriterRegistry.register
class AnsiWriter(TextWriter):
    """
    Writer for terminal output.

    Same layout as the plain text writer, with strong, emphasis, underline
    and strikeout rendered as SGR escape sequences and headings in bold.
    """

    @classmethod
    def get_format_name(cls) -> str:
        return "ansi"

    @classmethod
    def get_extension(cls) -> str:
        return ".ans"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".ans", ".ansi"]

    def _heading(self, node: Node, ctx: RenderContext) -> List[str]:
        content = self._sgr(Kinds.STRONG, node, ctx)
        return [content] if content else []

    def _style(self, node: Node, ctx: RenderContext) -> str:
        if node.kind in SGR_STYLES:
            return self._sgr(str(node.kind), node, ctx)
        return super()._style(node, ctx)

    def _sgr(self, kind: str, node: Node, ctx: RenderContext) -> str:
        # A style already active further out is not switched again, so the
        # inner clear code cannot cut the outer span short
        active = ctx.state.setdefault("active_styles", [])
        already_active = kind in active
        active.append(kind)
        try:
            content = self._inline_children(node, ctx)
        finally:
            active.pop()
        if already_active or not content:
            return content
        on, off = SGR_STYLES[kind]
        return f"\x1b[{on}m{content}\x1b[{off}m"
