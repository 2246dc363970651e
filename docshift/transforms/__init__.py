"""
Document transforms: rewrite a Document between reading and writing.
"""

from docshift.transforms.base import Transform, TransformRegistry, replace_content
from docshift.transforms.standard import (
    DropSourceInfo,
    MergeText,
    Pipeline,
    ShiftHeadings,
    StripEmpty,
    UnwrapSingleChild,
    map_nodes,
    walk,
)

__all__ = [
    "Transform",
    "TransformRegistry",
    "replace_content",
    "ShiftHeadings",
    "StripEmpty",
    "MergeText",
    "UnwrapSingleChild",
    "DropSourceInfo",
    "Pipeline",
    "walk",
    "map_nodes",
]
