from __future__ import annotations
import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

from PyQt6.QtWidgets import QFileDialog, QMessageBox

from utils.pdf_utils import PDFUtils

if TYPE_CHECKING:
    from ..main_window import MainWindow

logger = logging.getLogger(__name__)


class ExportHandler:
    """
    レビュー結果を外部ファイル形式（Word, PDF）にエクスポートする機能を提供します。
    """
    def __init__(self, main_window: MainWindow) -> None:
        """
        ExportHandlerのコンストラクタ。

        Args:
            main_window (MainWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: MainWindow = main_window

    def _ask_save_path(self, caption: str, extension: str, file_filter: str) -> str:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        default_name = f"review_{self.main.lesson.lesson_id}_{timestamp}{extension}"
        initial_path = os.path.join(os.path.expanduser("~"), default_name)
        file_path, _ = QFileDialog.getSaveFileName(self.main, caption, initial_path, file_filter)
        if file_path and not file_path.lower().endswith(extension):
            file_path += extension
        return file_path

    def save_report_as_word(self) -> None:
        """
        箇所別・学生別のレビューレポートをWord (.docx) 形式で保存する。
        ファイルダイアログを表示し、ユーザーに出力先を指定させます。
        """
        file_path = self._ask_save_path("レポートをWord形式で保存", ".docx", "Word Documents (*.docx)")
        if not file_path:
            return
        lesson = self.main.lesson
        try:
            self.main.report_service.export_docx(file_path, lesson.title, lesson.reading_guidance)
            QMessageBox.information(self.main, "保存完了", f"レポートをWord形式で保存しました。\n{file_path}")
        except Exception as exc:
            logger.error("レポートの保存に失敗しました: %s", file_path, exc_info=True)
            QMessageBox.critical(self.main, "保存エラー", f"Wordファイルの保存に失敗しました。\n{exc}")

    def save_annotated_pdf(self) -> None:
        """
        ハイライトをPDF注釈として書き込んだPDFを保存する。
        """
        handle = self.main.session.handle
        if handle is None:
            QMessageBox.warning(self.main, "PDF出力", "ローカルのPDFファイルが開かれていません。")
            return
        file_path = self._ask_save_path("ハイライト付きPDFを保存", ".pdf", "PDF Files (*.pdf)")
        if not file_path:
            return
        store = self.main.store
        try:
            written = PDFUtils.export_highlights_to_pdf(
                handle.path, file_path, store.highlights(), store.annotations()
            )
            QMessageBox.information(self.main, "保存完了", f"{written}件のハイライトを書き込みました。\n{file_path}")
        except Exception as exc:
            logger.error("PDFの保存に失敗しました: %s", file_path, exc_info=True)
            QMessageBox.critical(self.main, "保存エラー", f"PDFファイルの保存に失敗しました。\n{exc}")
