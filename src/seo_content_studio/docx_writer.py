"""
Word document export for generated articles.

This module writes a GeneratedArticle to .docx with:
- Title and SEO metadata table
- Optional keyword density table
- Key takeaways, markdown body (headings, lists, bold runs) and FAQ
- Media and internal linking suggestions
- Poppins font throughout with consistent spacing
"""

import re
from pathlib import Path
from typing import Optional, Union

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt
from docx.text.paragraph import Paragraph

from .keyword_metrics import DensityStatus, KeywordMetrics
from .models import FAQItem, GeneratedArticle, InternalLinkSuggestion, MediaSuggestion


# Control characters that XML 1.0 does not allow
_INVALID_XML_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_BULLET_RE = re.compile(r"^\s*[-*+]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*|__(.+?)__")
_RULE_RE = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")


def sanitize_for_xml(text: str) -> str:
    """
    Remove invalid XML characters so Word opens the file without repair.

    Args:
        text: Input text that may contain control characters.

    Returns:
        Sanitized text safe for XML/DOCX.
    """
    if not text:
        return text
    return _INVALID_XML_CHARS_RE.sub("", text)


def set_cell_shading(cell, color: str) -> None:
    """Set background color/shading for a table cell."""
    tc_pr = cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:fill"), color)
    tc_pr.append(shd)


def add_markdown_runs(paragraph: Paragraph, text: str, font_name: str = "Poppins") -> None:
    """
    Write inline markdown into a paragraph, turning **bold** spans into bold runs.

    Args:
        paragraph: The paragraph to add text to.
        text: Text with optional **bold** or __bold__ spans.
        font_name: Font to use for all runs.
    """
    text = sanitize_for_xml(text)
    pos = 0
    for match in _BOLD_RE.finditer(text):
        if match.start() > pos:
            run = paragraph.add_run(text[pos:match.start()])
            run.font.name = font_name
        run = paragraph.add_run(match.group(1) or match.group(2))
        run.font.name = font_name
        run.font.bold = True
        pos = match.end()
    if pos < len(text):
        run = paragraph.add_run(text[pos:])
        run.font.name = font_name


class ArticleDocxWriter:
    """
    Writes generated articles to a Word document.

    One writer builds one document; create a new writer per file.
    """

    FONT_NAME = "Poppins"

    def __init__(self):
        self.doc = Document()
        self._setup_styles()

    def _setup_styles(self) -> None:
        """Configure document styles with Poppins font and consistent spacing."""
        body_size = Pt(11)
        line_spacing = 1.15

        normal_style = self.doc.styles["Normal"]
        normal_style.font.name = self.FONT_NAME
        normal_style.font.size = body_size
        normal_style.paragraph_format.space_before = Pt(6)
        normal_style.paragraph_format.space_after = Pt(6)
        normal_style.paragraph_format.line_spacing = line_spacing

        # East Asian fallback, needed for the font to stick in Word
        normal_style.element.get_or_add_rPr().get_or_add_rFonts().set(
            qn("w:eastAsia"), self.FONT_NAME
        )

        if "Title" in self.doc.styles:
            title_style = self.doc.styles["Title"]
            title_style.font.name = self.FONT_NAME
            title_style.font.size = Pt(26)
            title_style.font.bold = True
            title_style.paragraph_format.space_after = Pt(12)

        heading_sizes = {
            "Heading 1": Pt(20),
            "Heading 2": Pt(16),
            "Heading 3": Pt(14),
            "Heading 4": Pt(12),
            "Heading 5": Pt(11),
            "Heading 6": Pt(11),
        }
        for style_name, font_size in heading_sizes.items():
            if style_name in self.doc.styles:
                style = self.doc.styles[style_name]
                style.font.name = self.FONT_NAME
                style.font.size = font_size
                style.font.bold = True
                style.paragraph_format.line_spacing = 1.1

        for list_style_name in ["List Bullet", "List Number"]:
            if list_style_name in self.doc.styles:
                list_style = self.doc.styles[list_style_name]
                list_style.font.name = self.FONT_NAME
                list_style.font.size = body_size
                list_style.paragraph_format.space_before = Pt(2)
                list_style.paragraph_format.space_after = Pt(2)

        if "Table Grid" in self.doc.styles:
            table_style = self.doc.styles["Table Grid"]
            table_style.font.name = self.FONT_NAME
            table_style.font.size = Pt(10)

    def write(
        self,
        article: GeneratedArticle,
        output_path: Union[str, Path],
        keyword: Optional[str] = None,
        metrics: Optional[KeywordMetrics] = None,
        status: Optional[DensityStatus] = None,
    ) -> Path:
        """
        Write the article to a Word document.

        Args:
            article: Generated article.
            output_path: Path for the output file (.docx is enforced).
            keyword: Keyword the metrics were computed for.
            metrics: Optional density figures to include.
            status: Optional density status shown next to the figures.

        Returns:
            Path to the created document.
        """
        output_path = Path(output_path)
        if output_path.suffix.lower() != ".docx":
            output_path = output_path.with_suffix(".docx")

        content = article.article_content

        title_para = self.doc.add_paragraph(style="Title")
        title_para.add_run(sanitize_for_xml(content.h1_title))

        self._add_metadata_table(article)
        if metrics is not None:
            self._add_metrics_table(keyword or article.seo_metadata.primary_keyword_focus, metrics, status)

        if content.snippet_bait.strip():
            self.doc.add_heading("Key Takeaways", level=2)
            self._add_markdown(content.snippet_bait)

        self._add_markdown(content.body_markdown)

        if content.faq_section:
            self._add_faq_section(content.faq_section)
        if article.media_suggestions:
            self._add_media_section(article.media_suggestions)
        if article.internal_linking_suggestions:
            self._add_links_section(article.internal_linking_suggestions)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.doc.save(str(output_path))
        return output_path

    def _add_table(self, headers: list[str], rows: list[list[str]], widths: list[float]) -> None:
        table = self.doc.add_table(rows=1, cols=len(headers))
        table.style = "Table Grid"
        table.alignment = WD_TABLE_ALIGNMENT.LEFT
        for i, width in enumerate(widths):
            table.columns[i].width = Inches(width)

        header_cells = table.rows[0].cells
        for i, header in enumerate(headers):
            header_cells[i].text = header
            for paragraph in header_cells[i].paragraphs:
                for run in paragraph.runs:
                    run.font.bold = True
            set_cell_shading(header_cells[i], "D9D9D9")

        for values in rows:
            cells = table.add_row().cells
            for i, value in enumerate(values):
                cells[i].text = sanitize_for_xml(value)

        self.doc.add_paragraph()

    def _add_metadata_table(self, article: GeneratedArticle) -> None:
        meta = article.seo_metadata
        self.doc.add_heading("SEO Metadata", level=2)
        self._add_table(
            ["Element", "Value"],
            [
                ["Meta Title", meta.meta_title],
                ["Meta Description", meta.meta_description],
                ["URL Slug", meta.url_slug_suggestion],
                ["Primary Keyword", meta.primary_keyword_focus],
            ],
            [1.6, 5.0],
        )

    def _add_metrics_table(
        self,
        keyword: str,
        metrics: KeywordMetrics,
        status: Optional[DensityStatus],
    ) -> None:
        self.doc.add_heading("Keyword Density", level=2)
        density = f"{metrics.density_percent:.2f}%"
        if status is not None:
            density = f"{density} ({status.value})"
        self._add_table(
            ["Keyword", "Total Words", "Occurrences", "Density"],
            [[keyword, str(metrics.total_words), str(metrics.occurrence_count), density]],
            [2.6, 1.3, 1.3, 1.4],
        )

    def _add_markdown(self, text: str) -> None:
        """Add a markdown block line by line: headings, lists, rules and paragraphs."""
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or _RULE_RE.match(line):
                continue

            heading = _HEADING_RE.match(line)
            if heading:
                level = len(heading.group(1))
                para = self.doc.add_heading(level=level)
                add_markdown_runs(para, heading.group(2), self.FONT_NAME)
                continue

            bullet = _BULLET_RE.match(raw_line)
            if bullet:
                para = self.doc.add_paragraph(style="List Bullet")
                add_markdown_runs(para, bullet.group(1), self.FONT_NAME)
                continue

            numbered = _NUMBERED_RE.match(raw_line)
            if numbered:
                para = self.doc.add_paragraph(style="List Number")
                add_markdown_runs(para, numbered.group(1), self.FONT_NAME)
                continue

            para = self.doc.add_paragraph()
            add_markdown_runs(para, line.lstrip("> "), self.FONT_NAME)

    def _add_faq_section(self, faq_items: list[FAQItem]) -> None:
        self.doc.add_heading("Frequently Asked Questions", level=2)
        for item in faq_items:
            q_para = self.doc.add_paragraph()
            add_markdown_runs(q_para, item.question, self.FONT_NAME)
            for run in q_para.runs:
                run.font.bold = True

            a_para = self.doc.add_paragraph()
            add_markdown_runs(a_para, item.answer, self.FONT_NAME)

    def _add_media_section(self, suggestions: list[MediaSuggestion]) -> None:
        self.doc.add_heading("Media Suggestions", level=2)
        self._add_table(
            ["Placement", "Image Prompt", "Alt Text"],
            [[s.placement, s.image_prompt, s.alt_text] for s in suggestions],
            [1.5, 3.2, 2.0],
        )

    def _add_links_section(self, suggestions: list[InternalLinkSuggestion]) -> None:
        self.doc.add_heading("Internal Linking Suggestions", level=2)
        self._add_table(
            ["Anchor Text", "Target Page", "Reason"],
            [[s.anchor_text, s.target_page_context, s.reason] for s in suggestions],
            [1.8, 2.0, 2.9],
        )


def write_article_docx(
    article: GeneratedArticle,
    output_path: Union[str, Path],
    keyword: Optional[str] = None,
    metrics: Optional[KeywordMetrics] = None,
    status: Optional[DensityStatus] = None,
) -> Path:
    """
    Convenience function to write an article to docx.

    Args:
        article: Article to write.
        output_path: Output file path.
        keyword: Keyword the metrics belong to.
        metrics: Optional density figures.
        status: Optional density status.

    Returns:
        Path to created document.
    """
    writer = ArticleDocxWriter()
    return writer.write(article, output_path, keyword=keyword, metrics=metrics, status=status)
