"""
Writer for Microsoft Word .docx files.
"""

import io
import logging
import re
from typing import Any, Dict, List, Optional

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.opc.constants import CONTENT_TYPE as CT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.opc.part import Part
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, RGBColor
from lxml import etree

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult, FidelityWarning, ResourceFailed, Severity
from docshift.core.node import Node
from docshift.nodes.std import Kinds, Props
from docshift.writers.base import OutputWriter, RenderContext, WriterRegistry

LOGGER = logging.getLogger(__name__)

ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
}

# Inline kind -> run font attribute it switches on
RUN_FLAGS = {
    Kinds.STRONG: "bold",
    Kinds.EMPHASIS: "italic",
    Kinds.UNDERLINE: "underline",
    Kinds.STRIKEOUT: "strike",
    Kinds.SUPERSCRIPT: "superscript",
    Kinds.SUBSCRIPT: "subscript",
    Kinds.SMALL_CAPS: "small_caps",
}

CONTAINER_KINDS = frozenset({Kinds.DOCUMENT, Kinds.DIV, Kinds.FIGURE, Kinds.DEFINITION_LIST})
INLINE_KINDS = frozenset(RUN_FLAGS) | {
    Kinds.TEXT, Kinds.CODE, Kinds.LINK, Kinds.IMAGE, Kinds.LINE_BREAK,
    Kinds.SOFT_BREAK, Kinds.SPAN, Kinds.QUOTED, Kinds.FOOTNOTE_REF,
}

CORE_PROPERTIES = ("title", "author", "subject", "keywords", "category", "comments")

# Word caps core property values at this many characters
CORE_PROPERTY_LIMIT = 255

# Characters XML 1.0 does not allow; lxml refuses to store them
XML_ILLEGAL = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

CODE_FONT = "Courier New"

FOOTNOTES_XML = (
    '<w:footnotes xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
    '<w:footnote w:type="separator" w:id="-1"><w:p><w:r><w:separator/></w:r></w:p></w:footnote>'
    '<w:footnote w:type="continuationSeparator" w:id="0"><w:p><w:r><w:continuationSeparator/></w:r></w:p></w:footnote>'
    '</w:footnotes>'
)


@WriterRegistry.register
class DocxWriter(OutputWriter):
    """Writer for Microsoft Word .docx files (Open XML format)."""

    @classmethod
    def get_format_name(cls) -> str:
        return "docx"

    @classmethod
    def get_extension(cls) -> str:
        return ".docx"

    @classmethod
    def is_binary(cls) -> bool:
        return True

    @classmethod
    def get_default_options(cls) -> Dict[str, Any]:
        return {
            "configure_styles": True,
            "table_style": "Table Grid",
        }

    def emit(self, doc: Document, options=None) -> ConversionResult[bytes]:
        """
        Write the document as .docx bytes.

        Options:
            configure_styles: Apply the default heading/body style sizes
            table_style: Word table style applied to tables
        """
        ctx = self._context(doc, options)

        # Create new document
        new_doc = DocxDocument()
        if ctx.extra.get("configure_styles", True):
            self._configure_styles(new_doc)
        self._apply_layout(new_doc, ctx)

        # Footnote bodies are numbered up front so references can point at them
        footnotes = [node for node in doc.content.walk() if node.kind == Kinds.FOOTNOTE_DEF]
        ctx.state["footnote_ids"] = {
            node.props.get_str(Props.LABEL) or str(index): index
            for index, node in enumerate(footnotes, start=1)
        }

        self._add_block(new_doc, doc.content, ctx)
        if footnotes:
            self._add_footnotes(new_doc, footnotes, ctx)
        self._set_core_properties(new_doc, doc, ctx)

        buffer = io.BytesIO()
        new_doc.save(buffer)
        return ctx.result(buffer.getvalue())

    def exportable_resources(self, doc: Document):
        # Images are embedded in the package
        return []

    def _configure_styles(self, docx_doc) -> None:
        """Configure heading and body styles."""
        styles = docx_doc.styles

        def style_config(style_name, size, rgb, bold=True, space_after=6):
            try:
                s = styles[style_name]
            except KeyError:
                return
            s.font.size = Pt(size)
            s.font.color.rgb = RGBColor(*rgb)
            s.font.bold = bold
            s.paragraph_format.space_after = Pt(space_after)

        style_config("Heading 1", 16, (0x2F, 0x54, 0x96), space_after=6)
        style_config("Heading 2", 13, (0x44, 0x72, 0xC4), space_after=4)
        style_config("Heading 3", 12, (0x1F, 0x37, 0x63), space_after=4)
        style_config("Heading 4", 11, (0x2F, 0x54, 0x96), space_after=4)

        try:
            normal = styles["Normal"]
        except KeyError:
            return
        normal.font.size = Pt(11)
        normal.paragraph_format.space_after = Pt(6)
        normal.paragraph_format.line_spacing = 1.15

    def _apply_layout(self, docx_doc, ctx: RenderContext) -> None:
        layout = self._source_metadata(ctx)
        if layout is None:
            return
        section = docx_doc.sections[0]
        for name in ("page_width", "page_height", "left_margin", "right_margin", "top_margin", "bottom_margin"):
            value = layout.get_int(name)
            if value is None:
                continue
            try:
                setattr(section, name, Emu(value))
            except ValueError:
                ctx.warn_once("page geometry", FidelityWarning.simplified(
                    "page geometry", f"Page setting {name}={value} is out of range; kept Word's default", Severity.MINOR,
                ))

    def _set_core_properties(self, docx_doc, doc: Document, ctx: RenderContext) -> None:
        core = docx_doc.core_properties
        for name in CORE_PROPERTIES:
            value = doc.metadata.get_str(name)
            if not value:
                continue
            value = self._xml_text(value, ctx)
            if len(value) > CORE_PROPERTY_LIMIT:
                ctx.warn(FidelityWarning.simplified(
                    name, f"Document {name} was cut to {CORE_PROPERTY_LIMIT} characters", Severity.MINOR,
                ))
                value = value[:CORE_PROPERTY_LIMIT]
            setattr(core, name, value)

    def _xml_text(self, text: str, ctx: RenderContext) -> str:
        """Drop characters that cannot be stored in the package XML."""
        if XML_ILLEGAL.search(text) is None:
            return text
        ctx.warn_once("control characters", FidelityWarning.simplified(
            "control characters", "Characters not allowed in Word XML were removed", Severity.MINOR,
        ))
        return XML_ILLEGAL.sub("", text)

    # -------------------------------
    # Blocks
    # -------------------------------
    def _add_block(self, container, node: Node, ctx: RenderContext, list_level: int = 0) -> None:
        kind = node.kind
        if kind in CONTAINER_KINDS:
            for child in node.children:
                self._add_block(container, child, ctx, list_level)
        elif kind == Kinds.PARAGRAPH or kind == Kinds.CAPTION or kind == Kinds.DEFINITION_TERM:
            self._add_paragraph(container, node.children, ctx, align=node.props.get_str(Props.STYLE_ALIGN))
        elif kind == Kinds.HEADING:
            level = min(max(node.props.get_int(Props.LEVEL) or 1, 1), 9)
            self._add_paragraph(container, node.children, ctx, style=f"Heading {level}")
        elif kind == Kinds.CODE_BLOCK:
            para = container.add_paragraph()
            self._add_run(para, node.props.get_str(Props.CONTENT) or "", {"code": True}, ctx)
        elif kind == Kinds.BLOCKQUOTE or kind == Kinds.DEFINITION_DESC:
            for child in node.children:
                if child.kind == Kinds.PARAGRAPH:
                    self._add_paragraph(container, child.children, ctx, style="Quote")
                else:
                    self._add_block(container, child, ctx, list_level)
        elif kind == Kinds.LIST:
            self._add_list(container, node, ctx, list_level)
        elif kind == Kinds.TABLE:
            self._add_table(container, node, ctx)
        elif kind == Kinds.HORIZONTAL_RULE:
            if node.props.get_bool(Props.LAYOUT_PAGE_BREAK) and hasattr(container, "add_page_break"):
                container.add_page_break()
            else:
                ctx.warn_once("horizontal rule", FidelityWarning.simplified(
                    "horizontal rule", "Rule written as a centered separator line", Severity.INFO,
                ))
                para = container.add_paragraph("* * *")
                para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        elif kind == Kinds.FOOTNOTE_DEF:
            # Written to the footnotes part
            return
        elif kind in INLINE_KINDS:
            self._add_paragraph(container, [node], ctx)
        else:
            content = ctx.fallback_text(node)
            if content is not None:
                container.add_paragraph(self._xml_text(content, ctx))

    def _add_paragraph(self, container, inlines: List[Node], ctx: RenderContext,
                       style: Optional[str] = None, align: Optional[str] = None):
        para = container.add_paragraph()
        if style is not None:
            try:
                para.style = style
            except KeyError:
                ctx.warn_once(("style", style), FidelityWarning.simplified(
                    style, f"Style '{style}' is not available; used Normal", Severity.MINOR,
                ))
        if align in ALIGNMENTS:
            para.alignment = ALIGNMENTS[align]
        for child in inlines:
            self._add_inline(para, child, ctx, {})
        return para

    def _add_list(self, container, node: Node, ctx: RenderContext, list_level: int) -> None:
        ordered = bool(node.props.get_bool(Props.ORDERED))
        start = node.props.get_int(Props.START)
        if ordered and start not in (None, 1):
            ctx.warn_once("list start", FidelityWarning.simplified(
                "list start", "Numbered lists restart at 1", Severity.MINOR,
            ))
        base = "List Number" if ordered else "List Bullet"
        # Word ships "List Bullet", "List Bullet 2", "List Bullet 3"
        style = base if list_level == 0 else f"{base} {min(list_level + 1, 3)}"
        if list_level >= 3:
            ctx.warn_once("deep lists", FidelityWarning.simplified(
                "nested lists", "Lists nested more than three deep are flattened", Severity.MINOR,
            ))

        for item in node.children:
            content = item.children if item.kind == Kinds.LIST_ITEM else [item]
            for child in content:
                if child.kind == Kinds.PARAGRAPH:
                    self._add_paragraph(container, child.children, ctx, style=style)
                elif child.kind == Kinds.LIST:
                    self._add_list(container, child, ctx, list_level + 1)
                elif child.kind in INLINE_KINDS:
                    self._add_paragraph(container, [child], ctx, style=style)
                else:
                    self._add_block(container, child, ctx, list_level + 1)

    def _add_table(self, container, node: Node, ctx: RenderContext) -> None:
        rows = [row for row in node.children if row.kind == Kinds.TABLE_ROW]
        if not rows:
            return
        width = max(len(row.children) for row in rows)
        if width == 0:
            return
        if any(len(row.children) != width for row in rows):
            ctx.warn_once("ragged table", FidelityWarning.simplified(
                "ragged table rows", "Short rows were padded with empty cells", Severity.MINOR,
            ))

        docx_table = container.add_table(rows=len(rows), cols=width)
        try:
            docx_table.style = ctx.extra.get("table_style", "Table Grid")
        except KeyError:
            pass

        for row_index, row in enumerate(rows):
            for col_index, cell in enumerate(row.children):
                target = docx_table.cell(row_index, col_index)
                first = target.paragraphs[0]
                blocks = cell.children
                if blocks and all(child.kind in INLINE_KINDS for child in blocks):
                    blocks = [Node(Kinds.PARAGRAPH, children=blocks)]
                for index, block in enumerate(blocks):
                    if index == 0 and block.kind == Kinds.PARAGRAPH:
                        for child in block.children:
                            self._add_inline(first, child, ctx, {})
                    elif block.kind == Kinds.TABLE:
                        ctx.warn_once("nested table", FidelityWarning.simplified(
                            "nested table", "Nested tables were written as text", Severity.MINOR,
                        ))
                        target.add_paragraph(self._xml_text(block.text_content(), ctx))
                    else:
                        self._add_block(target, block, ctx)

    # -------------------------------
    # Inlines
    # -------------------------------
    def _add_inline(self, para, node: Node, ctx: RenderContext, fmt: Dict[str, bool], hyperlink=None) -> None:
        kind = node.kind
        if kind == Kinds.TEXT:
            self._add_run(para, node.props.get_str(Props.CONTENT) or "", fmt, ctx, hyperlink)
        elif kind in RUN_FLAGS:
            inner = {**fmt, RUN_FLAGS[kind]: True}
            for child in node.children:
                self._add_inline(para, child, ctx, inner, hyperlink)
        elif kind == Kinds.CODE:
            self._add_run(para, node.props.get_str(Props.CONTENT) or "", {**fmt, "code": True}, ctx, hyperlink)
        elif kind == Kinds.SPAN:
            for child in node.children:
                self._add_inline(para, child, ctx, fmt, hyperlink)
        elif kind == Kinds.QUOTED:
            self._add_run(para, "“", fmt, ctx, hyperlink)
            for child in node.children:
                self._add_inline(para, child, ctx, fmt, hyperlink)
            self._add_run(para, "”", fmt, ctx, hyperlink)
        elif kind == Kinds.LINK:
            self._add_link(para, node, ctx, fmt)
        elif kind == Kinds.IMAGE:
            self._add_image(para, node, ctx)
        elif kind == Kinds.LINE_BREAK:
            self._add_run(para, "\n", fmt, ctx, hyperlink)
        elif kind == Kinds.SOFT_BREAK:
            self._add_run(para, " ", fmt, ctx, hyperlink)
        elif kind == Kinds.FOOTNOTE_REF:
            self._add_footnote_reference(para, node, ctx)
        else:
            content = ctx.fallback_text(node)
            if content is not None:
                self._add_run(para, content, fmt, ctx, hyperlink)

    def _add_run(self, para, text: str, fmt: Dict[str, bool], ctx: RenderContext, hyperlink=None):
        run = para.add_run(self._xml_text(text, ctx))
        for attr, value in fmt.items():
            if attr == "code":
                run.font.name = CODE_FONT
            elif value:
                setattr(run.font, attr, True)
        if hyperlink is not None:
            # add_run appends to the paragraph; move the run into the link
            hyperlink.append(run._r)
        return run

    def _add_link(self, para, node: Node, ctx: RenderContext, fmt: Dict[str, bool]) -> None:
        url = node.props.get_str(Props.URL)
        if not url:
            for child in node.children:
                self._add_inline(para, child, ctx, fmt)
            return
        url = self._xml_text(url, ctx)
        r_id = para.part.relate_to(url, RT.HYPERLINK, is_external=True)
        hyperlink = OxmlElement("w:hyperlink")
        hyperlink.set(qn("r:id"), r_id)
        para._p.append(hyperlink)
        children = node.children or [Node.text(url)]
        for child in children:
            self._add_inline(para, child, ctx, fmt, hyperlink)

    def _add_image(self, para, node: Node, ctx: RenderContext) -> None:
        alt = node.props.get_str(Props.ALT) or ""
        resource_ref = node.props.get_str(Props.RESOURCE_ID)
        if resource_ref is None:
            ctx.warn_once("external images", FidelityWarning.feature_lost(
                "external images", "Images without embedded data were written as their alt text", Severity.MINOR,
            ))
            self._add_run(para, f"[Image: {alt}]" if alt else "[Image]", {}, ctx)
            return

        resource = ctx.doc.resource_by_name(resource_ref)
        if resource is None:
            ctx.warn(FidelityWarning(
                Severity.MINOR,
                ResourceFailed(resource_ref),
                "Image refers to a resource that is not in the document",
            ))
            self._add_run(para, f"[Image: {alt}]" if alt else "[Image]", {}, ctx)
            return

        run = para.add_run()
        try:
            inline_shape = run.add_picture(io.BytesIO(resource.data))
        except UnrecognizedImageError:
            ctx.warn(FidelityWarning(
                Severity.MINOR,
                ResourceFailed(resource_ref),
                f"Resource is not an image Word can embed ({resource.mime_type})",
            ))
            run.text = self._xml_text(f"[Image: {alt}]" if alt else "[Image]", ctx)
            return
        if alt:
            inline_shape._inline.docPr.set("descr", self._xml_text(alt, ctx))

    # -------------------------------
    # Footnotes
    # -------------------------------
    def _add_footnote_reference(self, para, node: Node, ctx: RenderContext) -> None:
        label = node.props.get_str(Props.LABEL) or ""
        footnote_id = ctx.state["footnote_ids"].get(label)
        if footnote_id is None:
            ctx.warn_once(("footnote", label), FidelityWarning.simplified(
                "footnote reference", f"Footnote '{label}' has no definition; written as text", Severity.MINOR,
            ))
            self._add_run(para, f"[{label}]", {}, ctx)
            return
        run = para.add_run()
        run.font.superscript = True
        footnote_ref = OxmlElement("w:footnoteReference")
        footnote_ref.set(qn("w:id"), str(footnote_id))
        run._r.append(footnote_ref)

    def _add_footnotes(self, docx_doc, footnotes: List[Node], ctx: RenderContext) -> None:
        """Add a footnotes part holding every footnote definition."""
        for rel in docx_doc.part.rels.values():
            if rel.reltype == RT.FOOTNOTES:
                ctx.warn(FidelityWarning.feature_lost(
                    "footnotes", "Template already has a footnotes part; footnotes dropped", Severity.MAJOR,
                ))
                return

        footnotes_xml = parse_xml(FOOTNOTES_XML)
        for footnote_id, node in enumerate(footnotes, start=1):
            footnote_elem = OxmlElement("w:footnote")
            footnote_elem.set(qn("w:id"), str(footnote_id))

            paragraphs = [child.text_content() for child in node.children] or [node.text_content()]
            for content in paragraphs:
                para_elem = OxmlElement("w:p")
                run_elem = OxmlElement("w:r")
                text_elem = OxmlElement("w:t")
                text_elem.set(qn("xml:space"), "preserve")
                text_elem.text = self._xml_text(content, ctx)
                run_elem.append(text_elem)
                para_elem.append(run_elem)
                footnote_elem.append(para_elem)
            footnotes_xml.append(footnote_elem)

        if any(k.kind != Kinds.PARAGRAPH and k.kind != Kinds.TEXT for n in footnotes for k in n.children):
            ctx.warn_once("footnote formatting", FidelityWarning.simplified(
                "footnote formatting", "Footnote bodies were written as plain text", Severity.MINOR,
            ))

        xml_bytes = etree.tostring(footnotes_xml, encoding="UTF-8", xml_declaration=True, standalone=True)
        package = docx_doc.part.package
        footnotes_part = Part(PackURI("/word/footnotes.xml"), CT.WML_FOOTNOTES, xml_bytes, package)
        docx_doc.part.relate_to(footnotes_part, RT.FOOTNOTES)
        LOGGER.debug("docx: wrote %d footnotes", len(footnotes))
