"""
Word report for a finished analysis.

Builds the exported .docx from one AnalysisResponse and an optional chart
bitmap.  The section order is fixed:

    Title + date
    1. Quantitative Summary
    2. Narrative Analysis
    3. Statistical Distribution   (chart only when a bitmap is supplied)
    4. Annotation Table           (starts on a new page)

Equal inputs with an equal report date give byte-identical files: core
properties are derived from the date and the zip container is re-packed
with fixed entry timestamps.
"""
from __future__ import annotations

import io
import logging
import re
import zipfile
from datetime import date, datetime, time
from typing import Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt

from hp_engine.config import settings
from hp_engine.exceptions import ExportError
from hp_engine.models.analysis import AnalysisResponse
from hp_engine.utils.helpers import format_ratio_percentage

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

TABLE_HEADERS = ("Seg #", "Text (Shahmukhi)", "Tense/Cat", "Reasoning")

# Earliest timestamp a zip entry can carry
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

# C0 controls other than tab, newline and carriage return are not allowed in XML
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class ReportAssembler:
    """Assembles and serializes the analysis report."""

    def __init__(
        self,
        title: Optional[str] = None,
        script_font: Optional[str] = None,
    ) -> None:
        self.title = title or settings.REPORT_TITLE
        self.script_font = script_font or settings.REPORT_SCRIPT_FONT

    def build(
        self,
        analysis: AnalysisResponse,
        chart_png: Optional[bytes] = None,
        report_date: Optional[date] = None,
    ) -> bytes:
        """
        Build the report and return the .docx bytes.

        Raises:
            ExportError: any failure while building or serializing; no
                         partial document is returned.
        """
        report_date = report_date or date.today()
        try:
            doc = Document()
            self._prepare(doc, report_date)
            self._add_title(doc, report_date)
            self._add_summary(doc, analysis)
            self._add_narrative(doc, analysis)
            self._add_chart(doc, chart_png)
            self._add_annotation_table(doc, analysis)

            buf = io.BytesIO()
            doc.save(buf)
            blob = _repack(buf.getvalue())
        except Exception as exc:
            logger.error("Report assembly failed: %s", exc, exc_info=True)
            raise ExportError() from exc

        logger.info(
            "Report built: %d segments, chart %s, %d bytes",
            len(analysis.sentences),
            "embedded" if chart_png else "omitted",
            len(blob),
        )
        return blob

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _prepare(self, doc, report_date: date) -> None:
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        stamp = datetime.combine(report_date, time.min)
        core = doc.core_properties
        core.title = self.title
        core.author = settings.REPORT_AUTHOR
        core.last_modified_by = settings.REPORT_AUTHOR
        core.created = stamp
        core.modified = stamp
        core.revision = 1

        sect_pr = doc.sections[0]._sectPr
        sect_pr.insert_element_before(
            OxmlElement("w:bidi"),
            "w:rtlGutter", "w:docGrid", "w:printerSettings", "w:sectPrChange",
        )

    def _add_title(self, doc, report_date: date) -> None:
        title = doc.add_heading(self.title, level=1)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER

        p = doc.add_paragraph(f"Date: {report_date.strftime('%d %B %Y')}")
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.paragraph_format.space_after = Pt(15)

    def _add_summary(self, doc, analysis: AnalysisResponse) -> None:
        summary = analysis.summary
        doc.add_heading("1. Quantitative Summary", level=2)
        _add_bullet(doc, str(summary.total_sentences), "Total Segments:")
        _add_bullet(doc, str(summary.hp_count), "HP Instances:")
        _add_bullet(
            doc,
            format_ratio_percentage(summary.tense_switch_ratio, summary.total_sentences),
            "Tense Dynamics:",
        )

    def _add_narrative(self, doc, analysis: AnalysisResponse) -> None:
        doc.add_heading("2. Narrative Analysis", level=2)
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.LEFT
        p.paragraph_format.space_after = Pt(20)
        run = p.add_run(_xml_safe(analysis.qualitative_analysis))
        _set_script_font(run, self.script_font)

    def _add_chart(self, doc, chart_png: Optional[bytes]) -> None:
        # Heading stays even when there is no chart to show
        doc.add_heading("3. Statistical Distribution", level=2)
        if not chart_png:
            return
        doc.add_picture(
            io.BytesIO(chart_png),
            width=Inches(settings.REPORT_CHART_WIDTH_INCHES),
            height=Inches(settings.REPORT_CHART_HEIGHT_INCHES),
        )
        doc.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _add_annotation_table(self, doc, analysis: AnalysisResponse) -> None:
        heading = doc.add_heading("4. Annotation Table", level=2)
        heading.paragraph_format.page_break_before = True

        table = doc.add_table(rows=1, cols=len(TABLE_HEADERS))
        table.style = "Table Grid"
        _set_full_width(table)

        for cell, label in zip(table.rows[0].cells, TABLE_HEADERS):
            cell.paragraphs[0].add_run(label).bold = True

        for idx, segment in enumerate(analysis.sentences, start=1):
            num_cell, text_cell, tense_cell, reason_cell = table.add_row().cells

            num_cell.paragraphs[0].add_run(str(idx))

            text_p = text_cell.paragraphs[0]
            text_p.alignment = WD_ALIGN_PARAGRAPH.RIGHT
            text_run = text_p.add_run(_xml_safe(segment.original_text))
            _set_script_font(text_run, self.script_font)
            text_run.font.rtl = True

            tense_p = tense_cell.paragraphs[0]
            tense_run = tense_p.add_run(segment.inferred_tense.value)
            tense_run.font.size = Pt(8)
            tense_run.add_break()
            tense_p.add_run(segment.hp_category.value).font.size = Pt(8)

            reason_run = reason_cell.paragraphs[0].add_run(_xml_safe(segment.reasoning))
            reason_run.italic = True
            reason_run.font.size = Pt(7)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _add_bullet(doc, text: str, bold_prefix: str):
    p = doc.add_paragraph(style="List Bullet")
    run = p.add_run(bold_prefix)
    run.bold = True
    p.add_run(f" {text}")
    return p


def _xml_safe(text: str) -> str:
    """Drop characters that cannot be written into a .docx part."""
    return _XML_ILLEGAL.sub("", text)


def _set_script_font(run, font_name: str) -> None:
    """Apply *font_name* to the Latin and complex-script slots of a run."""
    run.font.name = font_name
    run._element.rPr.rFonts.set(qn("w:cs"), font_name)


def _set_full_width(table) -> None:
    """Stretch a table to 100 % of the text block."""
    tbl_w = table._tbl.tblPr.find(qn("w:tblW"))
    if tbl_w is None:
        tbl_w = OxmlElement("w:tblW")
        table._tbl.tblPr.append(tbl_w)
    tbl_w.set(qn("w:type"), "pct")
    tbl_w.set(qn("w:w"), "5000")


def _repack(blob: bytes) -> bytes:
    """Rewrite a zip container with fixed entry timestamps and attributes."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(blob)) as src, zipfile.ZipFile(
        out, "w", zipfile.ZIP_DEFLATED
    ) as dst:
        for item in src.infolist():
            info = zipfile.ZipInfo(item.filename, date_time=_ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            dst.writestr(info, src.read(item.filename))
    return out.getvalue()
