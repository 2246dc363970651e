"""
Math node kinds.

Math is an extension domain: its kinds are namespaced with "math:" and are
unknown to most writers, which fall back to emitting their text.
"""

from docshift.core.node import Node


class MathKinds:
    INLINE = "math_inline"
    DISPLAY = "math_display"

    # Structure
    FRACTION = "math:fraction"
    ROOT = "math:root"
    SUB = "math:sub"
    SUP = "math:sup"
    SUBSUP = "math:subsup"
    UNDER = "math:under"
    OVER = "math:over"
    UNDEROVER = "math:underover"

    # Containers
    MATRIX = "math:matrix"
    MATRIX_ROW = "math:matrix_row"
    MATRIX_CELL = "math:matrix_cell"
    FENCED = "math:fenced"

    # Tokens
    OPERATOR = "math:operator"
    IDENTIFIER = "math:identifier"
    NUMBER = "math:number"
    TEXT = "math:text"


class MathProps:
    FORMAT = "math:format"    # latex, mathml, asciimath
    SOURCE = "math:source"    # raw math source text
    ROOT_INDEX = "math:root_index"
    OPEN_DELIM = "math:open"
    CLOSE_DELIM = "math:close"


def inline_math(source: str, fmt: str = "latex") -> Node:
    return Node(MathKinds.INLINE).prop(MathProps.FORMAT, fmt).prop(MathProps.SOURCE, source)


def display_math(source: str, fmt: str = "latex") -> Node:
    return Node(MathKinds.DISPLAY).prop(MathProps.FORMAT, fmt).prop(MathProps.SOURCE, source)


def fraction(numerator: Node, denominator: Node) -> Node:
    return Node(MathKinds.FRACTION, children=[numerator, denominator])
