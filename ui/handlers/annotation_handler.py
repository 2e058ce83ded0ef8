from __future__ import annotations
import logging
from typing import TYPE_CHECKING, List, Optional

from PyQt6.QtWidgets import QDialog, QMessageBox

from models.errors import ValidationError
from models.geometry_models import Point, Rect
from models.highlight_models import Highlight
from ui.dialogs.annotation_dialog import AnnotationDialog
from utils import coordinate_utils

if TYPE_CHECKING:
    from ..main_window import MainWindow
    from ..widgets.pdf_display import PDFDisplayLabel

logger = logging.getLogger(__name__)

ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"


class AnnotationHandler:
    """
    ページ上のハイライトと注釈の操作を行うハンドラクラス。

    学生モードではドラッグで選択した範囲からハイライトを作成して注釈を提出し、
    教師モードではハイライトをクリックして該当する箇所の注釈を確認し、フィードバックを返します。
    """
    def __init__(self, main_window: MainWindow) -> None:
        """
        AnnotationHandlerのコンストラクタ。

        Args:
            main_window (MainWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: MainWindow = main_window
        self.selected_highlight_id: Optional[str] = None

        for label in self.main.page_labels:
            label.selection_finished.connect(self.on_selection_finished)
            label.clicked.connect(self.on_page_clicked)
        self.main.annotation_panel.highlight_selected.connect(self.select_highlight)
        self.main.annotation_panel.feedback_submitted.connect(self.on_feedback_submitted)
        self.main.student_panel.highlight_selected.connect(self.show_highlight)

    @property
    def is_student(self) -> bool:
        return self.main.role == ROLE_STUDENT

    def _label_for_page(self, page_number: int) -> Optional[PDFDisplayLabel]:
        for label in self.main.page_labels:
            if label.page_number == page_number:
                return label
        return None

    # --- ハイライトの作成 ---
    def on_selection_finished(self, page_number: int, screen_rect: Rect) -> None:
        """
        ページ上で範囲が選択されたときに呼び出されるスロット。

        選択範囲のテキストを抽出してハイライトを作成し、続けて注釈ダイアログを開きます。
        ダイアログがキャンセルされた場合、作成したハイライトは取り消されます。
        """
        if not self.is_student:
            self.main.statusBar().showMessage("ハイライトは学生モードでのみ作成できます。", 5000)
            return
        document = self.main.session.document
        label = self._label_for_page(page_number)
        # 新しい表示状態の画像が届くまでは、選択範囲をページ座標に戻せない
        if document is None or label is None or not label.accepts_input():
            return

        state = self.main.controller.state
        page_rect = coordinate_utils.rect_to_page_space(screen_rect, state.scale, state.rotation, label.page_size)
        text = self.main.renderer.extract_text(document, page_number, clip=page_rect)

        result = self.main.annotation_service.create_highlight(
            self.main.student, page_number, text, screen_rect, state, label.page_size
        )
        if isinstance(result, ValidationError):
            self.main.statusBar().showMessage(result.message, 5000)
            return

        self.select_highlight(result.id)
        self.main.refresh_review()
        if not self.open_annotation_dialog(result, is_new=True):
            self.main.annotation_service.delete_highlight(result.id)
            self.clear_selection()
            self.main.refresh_review()

    # --- ハイライトのクリック ---
    def on_page_clicked(self, page_number: int, screen_point: Point) -> None:
        """ページがクリックされたときに、その位置のハイライトを選択する。"""
        label = self._label_for_page(page_number)
        if label is None or not label.accepts_input():
            return
        highlight = self.main.overlay_renderer.hit_test(
            screen_point, page_number, self.main.controller.state, label.page_size
        )
        if highlight is None:
            self.clear_selection()
            return
        self.select_highlight(highlight.id)
        if self.is_student:
            self.open_annotation_dialog(highlight)

    def select_highlight(self, highlight_id: str) -> None:
        self.selected_highlight_id = highlight_id
        for label in self.main.page_labels:
            label.set_selected_highlight(highlight_id)

    def clear_selection(self) -> None:
        self.selected_highlight_id = None
        for label in self.main.page_labels:
            label.set_selected_highlight(None)

    def show_highlight(self, highlight_id: str, page_number: int) -> None:
        """一覧で選ばれたハイライトのページへ移動して選択状態にする。"""
        self.main.pdf_handler.go_to_page(page_number)
        self.select_highlight(highlight_id)

    # --- 注釈 ---
    def open_annotation_dialog(self, highlight: Highlight, is_new: bool = False) -> bool:
        """
        注釈ダイアログを開き、入力された注釈を提出する。

        検証エラーの場合はダイアログを閉じずにエラーを表示し、再入力を待ちます。

        Returns:
            bool: 注釈を提出した場合はTrue。
        """
        store = self.main.store
        can_delete = not is_new and highlight.student_id == self.main.student.student_id
        dialog = AnnotationDialog(
            self.main, highlight, store.annotations_of(highlight.id), can_delete, self.main.lesson.help_text
        )
        while True:
            code = dialog.exec()
            if code == AnnotationDialog.DELETE_REQUESTED:
                self.delete_highlight(highlight.id)
                return False
            if code != QDialog.DialogCode.Accepted.value:
                return False
            result = self.main.annotation_service.submit_annotation(
                highlight, dialog.annotation_text(), self.main.student
            )
            if isinstance(result, ValidationError):
                dialog.show_validation_error(result)
                continue
            self.main.statusBar().showMessage("注釈を提出しました。", 3000)
            self.main.refresh_review()
            return True

    def delete_highlight(self, highlight_id: str) -> None:
        """ハイライトを削除する。付いていた注釈もあわせて削除される。"""
        highlight = self.main.store.get(highlight_id)
        if highlight is None:
            return
        count = len(self.main.store.annotations_of(highlight_id))
        if count:
            reply = QMessageBox.question(
                self.main, "ハイライトの削除",
                f"このハイライトに付いている{count}件の注釈も削除されます。よろしいですか？",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        self.main.annotation_service.delete_highlight(highlight_id)
        if self.selected_highlight_id == highlight_id:
            self.clear_selection()
        self.main.refresh_review()

    # --- 教師のフィードバック ---
    def on_feedback_submitted(self, annotation_ids: List[str], feedback: str) -> None:
        """注釈パネルから送られたフィードバックを、1件または箇所の全注釈に記録する。"""
        service = self.main.annotation_service
        if len(annotation_ids) == 1:
            result = service.leave_feedback(annotation_ids[0], feedback)
        else:
            result = service.leave_feedback_to_group(annotation_ids, feedback)
        if isinstance(result, ValidationError):
            self.main.annotation_panel.show_message(result.message, error=True)
            return
        self.main.annotation_panel.clear_feedback_input()
        self.main.refresh_review()
        self.main.annotation_panel.show_message("フィードバックを記録しました。")
