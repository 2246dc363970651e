"""
Standard node kinds, property keys and helper constructors.

This is the shared vocabulary most readers and writers agree on. Other
domains (see docshift.nodes.math) add their own kinds under a namespace
prefix without touching this module.
"""

from typing import Iterable, Optional

from docshift.core.node import Node


class Kinds:
    """Standard node kind constants."""

    # Block-level
    DOCUMENT = "document"
    PARAGRAPH = "paragraph"
    HEADING = "heading"              # use the `level` property
    CODE_BLOCK = "code_block"
    BLOCKQUOTE = "blockquote"
    LIST = "list"                    # use the `ordered` property
    LIST_ITEM = "list_item"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"        # `header` property marks header cells
    FIGURE = "figure"
    CAPTION = "caption"
    HORIZONTAL_RULE = "horizontal_rule"
    DIV = "div"
    RAW_BLOCK = "raw_block"
    DEFINITION_LIST = "definition_list"
    DEFINITION_TERM = "definition_term"
    DEFINITION_DESC = "definition_desc"
    FOOTNOTE_DEF = "footnote_def"

    # Inline
    TEXT = "text"                    # text lives in the `content` property
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKEOUT = "strikeout"
    UNDERLINE = "underline"
    SUBSCRIPT = "subscript"
    SUPERSCRIPT = "superscript"
    SMALL_CAPS = "small_caps"
    CODE = "code"
    LINK = "link"
    IMAGE = "image"
    LINE_BREAK = "line_break"
    SOFT_BREAK = "soft_break"
    SPAN = "span"
    RAW_INLINE = "raw_inline"
    FOOTNOTE_REF = "footnote_ref"
    QUOTED = "quoted"


class Props:
    """Standard property key constants."""

    # Semantic
    LEVEL = "level"
    ORDERED = "ordered"
    START = "start"
    LANGUAGE = "language"
    URL = "url"
    TITLE = "title"
    ALT = "alt"
    CONTENT = "content"
    RESOURCE_ID = "resource"
    ID = "id"
    CLASSES = "classes"
    FORMAT = "format"
    LABEL = "label"
    HEADER = "header"
    ALIGN = "align"
    COLSPAN = "colspan"
    ROWSPAN = "rowspan"

    # Presentational
    STYLE_FONT = "style:font"
    STYLE_SIZE = "style:size"
    STYLE_COLOR = "style:color"
    STYLE_ALIGN = "style:align"

    # Layout
    LAYOUT_PAGE_BREAK = "layout:page_break"

    # Format-specific prefixes
    HTML_PREFIX = "html:"
    LATEX_PREFIX = "latex:"
    DOCX_PREFIX = "docx:"


# Inline wrappers in the order they are applied, innermost first
STYLE_WRAP_ORDER = (Kinds.STRIKEOUT, Kinds.UNDERLINE, Kinds.EMPHASIS, Kinds.STRONG)


def text(content: str) -> Node:
    return Node.text(content)


def paragraph(children: Iterable[Node] = ()) -> Node:
    return Node(Kinds.PARAGRAPH, children=children)


def heading(level: int, children: Iterable[Node] = ()) -> Node:
    return Node(Kinds.HEADING, children=children).prop(Props.LEVEL, level)


def code_block(code: str, language: Optional[str] = None) -> Node:
    node = Node(Kinds.CODE_BLOCK).prop(Props.CONTENT, code)
    if language:
        node = node.prop(Props.LANGUAGE, language)
    return node


def link(url: str, children: Iterable[Node] = ()) -> Node:
    return Node(Kinds.LINK, children=children).prop(Props.URL, url)


def image(url: Optional[str] = None, alt: Optional[str] = None, resource: Optional[str] = None) -> Node:
    """Create an image pointing at a URL, an embedded resource, or both."""
    node = Node(Kinds.IMAGE)
    if url is not None:
        node = node.prop(Props.URL, url)
    if alt is not None:
        node = node.prop(Props.ALT, alt)
    if resource is not None:
        node = node.prop(Props.RESOURCE_ID, str(resource))
    return node


def bullet_list(items: Iterable[Node]) -> Node:
    return Node(Kinds.LIST, children=items).prop(Props.ORDERED, False)


def ordered_list(items: Iterable[Node], start: int = 1) -> Node:
    node = Node(Kinds.LIST, children=items).prop(Props.ORDERED, True)
    if start != 1:
        node = node.prop(Props.START, start)
    return node


def list_item(children: Iterable[Node]) -> Node:
    return Node(Kinds.LIST_ITEM, children=children)


def blockquote(children: Iterable[Node]) -> Node:
    return Node(Kinds.BLOCKQUOTE, children=children)


def emphasis(children: Iterable[Node]) -> Node:
    return Node(Kinds.EMPHASIS, children=children)


def strong(children: Iterable[Node]) -> Node:
    return Node(Kinds.STRONG, children=children)


def table_cell(children: Iterable[Node], header: bool = False) -> Node:
    return Node(Kinds.TABLE_CELL, children=children).prop(Props.HEADER, header)


def table_row(cells: Iterable[Node]) -> Node:
    return Node(Kinds.TABLE_ROW, children=cells)


def table(rows: Iterable[Node]) -> Node:
    return Node(Kinds.TABLE, children=rows)


def horizontal_rule() -> Node:
    return Node(Kinds.HORIZONTAL_RULE)


def page_break() -> Node:
    """A horizontal rule flagged as a page/section boundary."""
    return Node(Kinds.HORIZONTAL_RULE).prop(Props.LAYOUT_PAGE_BREAK, True)


def line_break() -> Node:
    return Node(Kinds.LINE_BREAK)


def document(children: Iterable[Node] = ()) -> Node:
    return Node(Kinds.DOCUMENT, children=children)


def wrap_inline(node: Node, bold: bool = False, italic: bool = False,
                underline: bool = False, strikethrough: bool = False) -> Node:
    """
    Wrap an inline node in style nodes.

    Wrappers are applied innermost to outermost in a fixed order
    (strikeout, underline, emphasis, strong) so the same set of styles
    always produces the same nesting, whatever order they were set in.
    """
    flags = {
        Kinds.STRIKEOUT: strikethrough,
        Kinds.UNDERLINE: underline,
        Kinds.EMPHASIS: italic,
        Kinds.STRONG: bold,
    }
    for kind in STYLE_WRAP_ORDER:
        if flags[kind]:
            node = Node(kind, children=[node])
    return node
