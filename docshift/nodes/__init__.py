"""
Node vocabularies: named kinds and property keys per domain.
"""

from docshift.nodes.std import Kinds, Props, STYLE_WRAP_ORDER
from docshift.nodes.math import MathKinds, MathProps

__all__ = ["Kinds", "Props", "STYLE_WRAP_ORDER", "MathKinds", "MathProps"]
