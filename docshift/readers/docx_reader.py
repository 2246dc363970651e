"""
Reader for Microsoft Word .docx files.
"""

import io
import logging
import lzma
import re
import struct
import zipfile
import zlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.exceptions import PythonDocxError
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml import parse_xml
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph

from docshift.core.document import Document
from docshift.core.errors import InvalidInput
from docshift.core.fidelity import (
    ConversionResult,
    FidelityWarning,
    ResourceFailed,
    Severity,
)
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.core.resource import Resource
from docshift.nodes.std import (
    Kinds,
    Props,
    bullet_list,
    heading,
    image,
    line_break,
    link,
    list_item,
    ordered_list,
    page_break,
    paragraph,
    table,
    table_cell,
    table_row,
    wrap_inline,
)
from docshift.readers.base import InputReader, ReaderRegistry

LOGGER = logging.getLogger(__name__)

HEADING_STYLE = re.compile(r"^Heading (\d)$")

ALIGNMENTS = {
    WD_ALIGN_PARAGRAPH.LEFT: "left",
    WD_ALIGN_PARAGRAPH.CENTER: "center",
    WD_ALIGN_PARAGRAPH.RIGHT: "right",
    WD_ALIGN_PARAGRAPH.JUSTIFY: "justify",
}

CORE_PROPERTIES = ("title", "author", "subject", "keywords", "category", "comments")

PAGE_GEOMETRY = (
    "page_width",
    "page_height",
    "left_margin",
    "right_margin",
    "top_margin",
    "bottom_margin",
)

# What a damaged package can raise from zipfile, zlib, lxml or python-docx
PACKAGE_ERRORS = (
    PackageNotFoundError,
    PythonDocxError,
    zipfile.BadZipFile,
    zlib.error,
    lzma.LZMAError,
    struct.error,
    EOFError,
    OSError,
    NotImplementedError,
    RuntimeError,
    KeyError,
    ValueError,
    SyntaxError,
)


@dataclass
class _ReadState:
    """Per-call state, kept off the reader instance."""
    doc: Document
    embed: bool
    footnote_ids: Dict[int, str] = field(default_factory=dict)
    warnings: List[FidelityWarning] = field(default_factory=list)
    lost: Set[str] = field(default_factory=set)

    def lose(self, feature: str, message: str) -> None:
        # One warning per feature, not per occurrence
        if feature in self.lost:
            return
        self.lost.add(feature)
        self.warnings.append(FidelityWarning.feature_lost(feature, message, Severity.MINOR))

    def simplify(self, feature: str, message: str) -> None:
        if feature in self.lost:
            return
        self.lost.add(feature)
        self.warnings.append(FidelityWarning.simplified(feature, message, Severity.MINOR))


@ReaderRegistry.register
class DocxReader(InputReader):
    """
    Reader for Microsoft Word .docx files (Open XML format).

    Headings come from "Heading N" / "Title" paragraph styles, lists from
    "List Bullet" / "List Number" styles or paragraph numbering. Inline
    images are embedded as resources and footnotes are collected at the end
    of the document as footnote definitions.
    """

    @classmethod
    def get_format_name(cls) -> str:
        return "docx"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".docx"]

    @classmethod
    def get_priority(cls) -> int:
        return 100  # Highest priority for .docx files

    def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
        opts, _ = self._options(options)
        try:
            source = DocxDocument(io.BytesIO(data))
        except PACKAGE_ERRORS as e:
            raise InvalidInput(f"not a readable .docx package: {e}") from e

        # Parts are loaded lazily, so damage can still surface while converting
        try:
            return self._convert(source, opts)
        except PACKAGE_ERRORS as e:
            raise InvalidInput(f"damaged .docx package: {e}") from e

    def _convert(self, source, opts) -> ConversionResult[Document]:
        doc = Document()
        state = _ReadState(doc=doc, embed=opts.embed_resources)

        # Extract footnotes first so references can be linked
        footnotes = self._extract_footnotes(source, state)
        self._check_unsupported_parts(source, state)

        blocks = self._convert_body(source, state)
        blocks.extend(footnotes)
        doc.content = Node(Kinds.DOCUMENT, children=blocks)
        doc.metadata = self._core_properties(source)

        doc.source = self._source_info(opts, self._layout_metadata(source))
        LOGGER.debug("docx: %d blocks, %d resources", len(blocks), len(doc.resources))
        return ConversionResult.with_warnings(doc, state.warnings)

    def _layout_metadata(self, source) -> Properties:
        """Page geometry of the first section, in EMU."""
        layout = Properties()
        if not source.sections:
            return layout
        section = source.sections[0]
        for name in PAGE_GEOMETRY:
            value = getattr(section, name)
            if value is not None:
                layout.set(name, int(value))
        return layout

    def _core_properties(self, source) -> Properties:
        metadata = Properties()
        core = source.core_properties
        for name in CORE_PROPERTIES:
            value = getattr(core, name, None)
            if value:
                metadata.set(name, value)
        return metadata

    def _check_unsupported_parts(self, source, state: _ReadState) -> None:
        reltypes = {rel.reltype for rel in source.part.rels.values()}
        if RT.COMMENTS in reltypes:
            state.lose("comments", "Document comments are not carried over")
        for section in source.sections:
            parts = (section.header, section.footer)
            if any(not part.is_linked_to_previous and any(p.text.strip() for p in part.paragraphs)
                   for part in parts):
                state.lose("headers and footers", "Page headers and footers are not carried over")
                break

    # -------------------------------
    # Footnotes
    # -------------------------------
    def _extract_footnotes(self, source, state: _ReadState) -> List[Node]:
        """Collect footnote bodies as footnote_def nodes, numbered from 1."""
        footnotes_part = None
        for rel in source.part.rels.values():
            if rel.reltype == RT.FOOTNOTES and not rel.is_external:
                footnotes_part = rel.target_part
                break
        if footnotes_part is None:
            return []

        footnotes_xml = getattr(footnotes_part, "element", None)
        if footnotes_xml is None:
            footnotes_xml = parse_xml(footnotes_part.blob)

        defs = []
        for footnote_elem in footnotes_xml.findall(qn("w:footnote")):
            # Skip separator and continuation separator footnotes
            if footnote_elem.get(qn("w:type")) in ("separator", "continuationSeparator"):
                continue
            try:
                original_id = int(footnote_elem.get(qn("w:id")))
            except (TypeError, ValueError):
                LOGGER.debug("docx: footnote without a usable id skipped")
                continue

            paragraphs = []
            for para_elem in footnote_elem.iter(qn("w:p")):
                content = "".join(t.text or "" for t in para_elem.iter(qn("w:t")))
                if content:
                    paragraphs.append(paragraph([Node.text(content)]))
            if not paragraphs:
                continue

            label = str(len(defs) + 1)
            state.footnote_ids[original_id] = label
            defs.append(Node(Kinds.FOOTNOTE_DEF, children=paragraphs).prop(Props.LABEL, label))

        if defs:
            state.warnings.append(FidelityWarning.simplified(
                "footnote formatting",
                "Footnote bodies were read as plain text",
                Severity.INFO,
            ))
        return defs

    # -------------------------------
    # Body
    # -------------------------------
    def _convert_body(self, source, state: _ReadState) -> List[Node]:
        blocks: List[Node] = []
        pending_items: List[Node] = []
        pending_ordered = False

        def flush_list():
            nonlocal pending_items
            if pending_items:
                blocks.append(ordered_list(pending_items) if pending_ordered else bullet_list(pending_items))
                pending_items = []

        # Paragraphs and tables in document order
        for child in source.element.body.iterchildren():
            if child.tag == qn("w:tbl"):
                flush_list()
                blocks.append(self._convert_table(Table(child, source), state))
                continue
            if child.tag != qn("w:p"):
                continue

            src_para = Paragraph(child, source)
            inlines = self._convert_inlines(src_para, state)
            list_kind = self._list_kind(src_para, state)

            if list_kind is not None:
                if pending_items and list_kind != pending_ordered:
                    flush_list()
                pending_ordered = list_kind
                pending_items.append(list_item([paragraph(inlines)]))
            else:
                flush_list()
                block = self._convert_paragraph(src_para, inlines)
                if block is not None:
                    blocks.append(block)

            if child.xpath(".//w:br[@w:type='page']"):
                flush_list()
                blocks.append(page_break())
        flush_list()
        return blocks

    def _convert_paragraph(self, src_para, inlines: List[Node]) -> Optional[Node]:
        style_name = src_para.style.name if src_para.style is not None else ""

        match = HEADING_STYLE.match(style_name)
        if match:
            level = min(max(int(match.group(1)), 1), 6)
            return heading(level, inlines)
        if style_name == "Title":
            return heading(1, inlines)
        if not inlines:
            return None

        node = paragraph(inlines)
        align = ALIGNMENTS.get(src_para.alignment)
        if align is not None:
            node = node.prop(Props.STYLE_ALIGN, align)
        return node

    def _list_kind(self, src_para, state: _ReadState) -> Optional[bool]:
        """Return True for numbered, False for bulleted, None when not a list item."""
        style_name = src_para.style.name if src_para.style is not None else ""
        num_pr = src_para._element.find(f"{qn('w:pPr')}/{qn('w:numPr')}")

        if style_name.startswith("List Number"):
            ordered = True
        elif style_name.startswith("List Bullet") or num_pr is not None:
            ordered = False
        else:
            return None

        if num_pr is not None:
            ilvl = num_pr.find(qn("w:ilvl"))
            if ilvl is not None and ilvl.get(qn("w:val")) not in (None, "0"):
                state.simplify("nested lists", "Nested list levels were flattened")
        return ordered

    def _convert_table(self, src_table, state: _ReadState) -> Node:
        rows = []
        for row_index, src_row in enumerate(src_table.rows):
            seen = set()
            cells = []
            for src_cell in src_row.cells:
                # Merged cells come back once per grid column
                if id(src_cell._tc) in seen:
                    state.lose("merged cells", "Merged table cells were split back to single cells")
                    continue
                seen.add(id(src_cell._tc))
                content = []
                for cell_para in src_cell.paragraphs:
                    inlines = self._convert_inlines(cell_para, state)
                    if inlines:
                        content.append(paragraph(inlines))
                cells.append(table_cell(content, header=row_index == 0))
            rows.append(table_row(cells))
        return table(rows)

    # -------------------------------
    # Inline content
    # -------------------------------
    def _convert_inlines(self, src_para, state: _ReadState) -> List[Node]:
        nodes: List[Node] = []
        for item in src_para.iter_inner_content():
            if isinstance(item, Hyperlink):
                children = [node for run in item.runs for node in self._convert_run(run, state)]
                url = self._hyperlink_url(src_para, item, state)
                if url:
                    nodes.append(link(url, children))
                else:
                    nodes.extend(children)
            else:
                nodes.extend(self._convert_run(item, state))
        return nodes

    def _hyperlink_url(self, src_para, item, state: _ReadState) -> str:
        r_id = item._hyperlink.rId
        if r_id and src_para.part.rels.get(r_id) is None:
            state.lose("hyperlink", "Hyperlink targets that could not be resolved were dropped")
            return ""
        return item.url

    def _convert_run(self, src_run, state: _ReadState) -> List[Node]:
        nodes: List[Node] = []
        run_xml = src_run._element

        for ref in run_xml.findall(qn("w:footnoteReference")):
            try:
                label = state.footnote_ids.get(int(ref.get(qn("w:id"))))
            except (TypeError, ValueError):
                label = None
            if label is not None:
                nodes.append(Node(Kinds.FOOTNOTE_REF).prop(Props.LABEL, label))

        for blip in run_xml.xpath(".//a:blip"):
            nodes.append(self._convert_image(src_run, blip.get(qn("r:embed")), state))

        font = src_run.font
        if font.name or font.size or (font.color is not None and font.color.type is not None):
            state.lose("fonts and colors", "Font faces, sizes and colors are not carried over")

        pieces = src_run.text.split("\n")
        for index, piece in enumerate(pieces):
            if index > 0:
                nodes.append(line_break())
            if not piece:
                continue
            node = Node.text(piece)
            if font.superscript:
                node = Node(Kinds.SUPERSCRIPT, children=[node])
            elif font.subscript:
                node = Node(Kinds.SUBSCRIPT, children=[node])
            if font.small_caps:
                node = Node(Kinds.SMALL_CAPS, children=[node])
            nodes.append(wrap_inline(
                node,
                bold=bool(font.bold),
                italic=bool(font.italic),
                underline=bool(font.underline),
                strikethrough=bool(font.strike),
            ))
        return nodes

    def _convert_image(self, src_run, rel_id: Optional[str], state: _ReadState) -> Node:
        descr = src_run._element.xpath(".//wp:docPr/@descr")
        alt = descr[0] if descr else None

        part = src_run.part.related_parts.get(rel_id) if rel_id else None
        if part is None:
            state.warnings.append(FidelityWarning(
                Severity.MINOR,
                ResourceFailed(str(rel_id)),
                "Image relationship could not be resolved",
            ))
            return image(alt=alt or "")

        filename = part.partname.filename
        if not state.embed:
            state.lose("embedded images", "Images were not embedded (embedding disabled)")
            return image(url=filename, alt=alt)

        resource = Resource(part.content_type, part.blob, name=filename)
        resource_id = state.doc.embed(resource)
        return image(alt=alt, resource=str(resource_id))
