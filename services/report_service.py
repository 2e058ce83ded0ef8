# services/report_service.py
import logging
from typing import Iterable, Optional

from docx import Document
from docx.shared import Cm, Pt, RGBColor

from models.highlight_models import Annotation, ReviewGroup, StudentSummary
from services.aggregator import Aggregator

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 100


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """長いテキストを先頭 length 文字に切り詰める。"""
    return text[:length] + ("..." if len(text) > length else "")


class ReportService:
    """
    教師向けのレビューレポート（箇所別・学生別）をWord (.docx) 形式で書き出すサービスクラス。
    """

    def __init__(self, aggregator: Aggregator) -> None:
        self.aggregator = aggregator

    def export_docx(self, file_path: str, title: str, reading_guidance: str = "", pages: Optional[Iterable[int]] = None) -> None:
        """レビューレポートをWord文書として保存する。

        Args:
            file_path (str): 出力先のパス。
            title (str): レッスンのタイトル。
            reading_guidance (str): 読解の指示。空の場合は省略する。
            pages (Optional[Iterable[int]]): 対象ページ。Noneの場合はハイライトのある全ページ。
        """
        doc = Document()
        section = doc.sections[0]
        section.page_width, section.page_height = Cm(21.0), Cm(29.7)  # A4
        section.left_margin, section.right_margin = Cm(2.0), Cm(2.0)

        style = doc.styles['Normal']
        style.font.size = Pt(10.5)

        doc.add_heading(title, level=0)
        if reading_guidance:
            doc.add_paragraph(f"読解の指示: {reading_guidance}")

        target_pages = self.aggregator.store.pages() if pages is None else pages
        doc.add_heading("箇所別", level=1)
        groups = self.aggregator.group_pages(target_pages)
        if not groups:
            doc.add_paragraph("ハイライトはまだありません。")
        for group in groups:
            self._write_group(doc, group)

        doc.add_heading("学生別", level=1)
        for summary in self.aggregator.group_by_student():
            self._write_student(doc, summary)

        doc.save(file_path)
        logger.info("レビューレポートを保存しました: %s", file_path)

    def _write_group(self, doc: Document, group: ReviewGroup) -> None:
        doc.add_heading(f"p.{group.page_number}「{excerpt(group.representative_text)}」", level=2)
        doc.add_paragraph(f"{len(group.member_highlights)}件のハイライト / {group.student_count}人の学生")
        for annotation in group.member_annotations:
            self._write_annotation(doc, annotation)

    def _write_student(self, doc: Document, summary: StudentSummary) -> None:
        doc.add_heading(summary.student_name, level=2)
        doc.add_paragraph(f"{summary.highlight_count}件のハイライト・{summary.annotation_count}件の注釈")
        highlights = {h.id: h for h in summary.highlights}
        for index, annotation in enumerate(summary.annotations, start=1):
            highlight = highlights.get(annotation.highlight_id)
            quoted = excerpt(highlight.text) if highlight else "Text not found"
            doc.add_paragraph(f"注釈 #{index}「{quoted}」", style='List Number')
            self._write_annotation(doc, annotation, with_name=False)

    @staticmethod
    def _write_annotation(doc: Document, annotation: Annotation, with_name: bool = True) -> None:
        paragraph = doc.add_paragraph()
        if with_name:
            name_run = paragraph.add_run(f"{annotation.student_name}（{annotation.created_at:%Y-%m-%d}）: ")
            name_run.bold = True
        paragraph.add_run(annotation.text)
        if annotation.teacher_feedback:
            feedback = doc.add_paragraph()
            run = feedback.add_run(f"教師からのフィードバック: {annotation.teacher_feedback}")
            run.italic = True
            run.font.color.rgb = RGBColor(0x19, 0x76, 0xD2)
