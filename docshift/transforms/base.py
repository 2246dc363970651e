"""
Base classes for document transforms.

A transform rewrites a Document's content tree (headings shifted, empty
nodes removed, ...). Transforms are registered by name so they can be
chosen from the command line.

To add a new transform:

1. Create a new class inheriting from Transform
2. Implement get_name() and transform()
3. Register it with the @TransformRegistry.register decorator
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

from docshift.core.document import Document
from docshift.core.errors import TransformFailed
from docshift.core.node import Node

LOGGER = logging.getLogger(__name__)


class Transform(ABC):
    """
    Abstract base class for document transforms.

    Subclasses must implement:
    - get_name(): Return unique transform identifier
    - transform(doc): Return the transformed document

    A transform never partially applies: it builds a new content tree and
    only returns a document once the whole tree was built. The input
    document is left unchanged. Source info and resources are carried over
    untouched unless the transform is specifically about them.
    """

    @classmethod
    @abstractmethod
    def get_name(cls) -> str:
        """
        Return unique identifier for this transform.

        Examples: 'shift-headings', 'strip-empty'
        """
        pass

    @classmethod
    def get_description(cls) -> str:
        """Return human-readable description of this transform."""
        return (cls.__doc__ or f"Transform: {cls.get_name()}").strip().splitlines()[0]

    @classmethod
    def from_argument(cls, argument: Optional[str]) -> "Transform":
        """
        Create the transform from a command-line argument.

        The default accepts no argument. Override for parameterized
        transforms (e.g. 'shift-headings:1').
        """
        if argument is not None:
            raise TransformFailed(f"'{cls.get_name()}' takes no argument")
        return cls()

    @abstractmethod
    def transform(self, doc: Document) -> Document:
        """
        Transform the document.

        Args:
            doc: The document to transform (not modified)

        Returns:
            A new Document with the transformed content

        Raises:
            TransformFailed: If the document cannot be transformed
        """
        pass

    def __call__(self, doc: Document) -> Document:
        return self.transform(doc)


def replace_content(doc: Document, content: Node) -> Document:
    """A document like `doc` with new content; resources and source carried over."""
    new_doc = Document(
        content=content,
        metadata=doc.metadata.copy(),
        source=doc.source,
        id_generator=doc.id_generator,
    )
    new_doc.resources = dict(doc.resources)
    return new_doc


class TransformRegistry:
    """
    Registry for managing document transforms.

    Provides methods for:
    - Registering transforms
    - Creating a transform from its name (and optional argument)
    - Listing all transforms
    """

    _transforms: Dict[str, Type[Transform]] = {}

    @classmethod
    def register(cls, transform_class: Type[Transform]) -> Type[Transform]:
        """
        Register a transform class with the registry.

        Can be used as a decorator:
            @TransformRegistry.register
            class MyTransform(Transform):
                ...
        """
        name = transform_class.get_name()
        cls._transforms[name] = transform_class
        return transform_class

    @classmethod
    def get_transform(cls, name: str) -> Optional[Type[Transform]]:
        """Get a transform class by name. Returns None if not found."""
        return cls._transforms.get(name)

    @classmethod
    def create(cls, spec: str) -> Transform:
        """
        Create a transform from 'name' or 'name:argument'.

        Raises:
            TransformFailed: If the name is unknown or the argument invalid
        """
        name, sep, argument = spec.partition(":")
        transform_cls = cls.get_transform(name.strip())
        if transform_cls is None:
            known = ", ".join(sorted(cls._transforms))
            raise TransformFailed(f"unknown transform '{name}' (known: {known})")
        return transform_cls.from_argument(argument if sep else None)

    @classmethod
    def list_transforms(cls) -> List[Dict]:
        """Get list of transform info for display."""
        return [
            {
                "name": transform_cls.get_name(),
                "description": transform_cls.get_description(),
            }
            for transform_cls in cls._transforms.values()
        ]
