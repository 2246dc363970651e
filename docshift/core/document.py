"""
Unified document model for representing parsed documents.

This module provides a format-agnostic representation of documents that can be
created from any input format and written to any output format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.core.resource import IdGenerator, Resource, ResourceId, default_generator

DOCUMENT_KIND = "document"


@dataclass
class SourceInfo:
    """Information about the source format, kept for roundtrip fidelity."""
    format: str
    metadata: Properties = field(default_factory=Properties)


class Document:
    """
    A format-agnostic document representation.

    This class serves as the intermediary between input readers and output
    writers. Input readers convert their specific format to this
    representation, and output writers convert from this representation to
    their target format.

    A Document owns its content tree and its resource table. Resources are
    referenced from node properties by ResourceId; a reference to a removed
    resource simply fails to resolve (see resource()).
    """

    def __init__(
        self,
        content: Optional[Node] = None,
        metadata: Optional[Properties] = None,
        source: Optional[SourceInfo] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.content = content if content is not None else Node(DOCUMENT_KIND)
        self.resources: Dict[ResourceId, Resource] = {}
        self.metadata = metadata if metadata is not None else Properties()
        self.source = source
        self._ids = id_generator or default_generator()

    @property
    def id_generator(self) -> IdGenerator:
        return self._ids

    def with_content(self, content: Node) -> "Document":
        """Set the root content node."""
        self.content = content
        return self

    def with_metadata(self, metadata: Properties) -> "Document":
        """Set document metadata."""
        self.metadata = metadata
        return self

    def with_source(self, source: SourceInfo) -> "Document":
        """Set source format info."""
        self.source = source
        return self

    def embed(self, resource: Resource) -> ResourceId:
        """Add a resource under a freshly generated identifier and return it."""
        resource_id = self._ids.next_id()
        self.resources[resource_id] = resource
        return resource_id

    def insert_resource(self, resource_id: ResourceId, resource: Resource) -> None:
        """
        Store a resource under an existing identifier.

        Only meant for readers restoring a serialized document whose ids were
        minted by an earlier process.
        """
        self.resources[resource_id] = resource

    def resource(self, resource_id: ResourceId) -> Optional[Resource]:
        """Get a resource by ID. Returns None for unknown or removed ids."""
        return self.resources.get(resource_id)

    def resource_by_name(self, value: str) -> Optional[Resource]:
        """Resolve a resource from the string form stored in node properties."""
        return self.resources.get(ResourceId.from_string(value))

    def remove_resource(self, resource_id: ResourceId) -> Optional[Resource]:
        """Drop a resource from the table. Node references to it become orphans."""
        return self.resources.pop(resource_id, None)

    def iter_resources(self) -> Iterator[Tuple[ResourceId, str, bytes]]:
        """Yield (id, mime type, data) for every embedded resource."""
        for resource_id, resource in self.resources.items():
            yield resource_id, resource.mime_type, resource.data

    def copy(self) -> "Document":
        """Return an independent copy sharing only the id generator."""
        clone = Document(
            content=self.content.copy(),
            metadata=self.metadata.copy(),
            source=SourceInfo(self.source.format, self.source.metadata.copy()) if self.source else None,
            id_generator=self._ids,
        )
        clone.resources = {rid: res.copy() for rid, res in self.resources.items()}
        return clone

    def __repr__(self) -> str:
        source = self.source.format if self.source else None
        return (
            f"Document(children={len(self.content.children)}, "
            f"resources={len(self.resources)}, source={source!r})"
        )
