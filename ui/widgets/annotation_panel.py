from typing import Iterable, List, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QFont
from PyQt6.QtWidgets import (QHBoxLayout, QLabel, QLineEdit, QPushButton, QTreeWidget,
                             QTreeWidgetItem, QVBoxLayout, QWidget)

from models.highlight_models import Annotation, ReviewGroup
from services.report_service import excerpt

# QTreeWidgetItem.data に格納する値の種類
ITEM_KIND_ROLE = Qt.ItemDataRole.UserRole
ITEM_ID_ROLE = Qt.ItemDataRole.UserRole + 1
ITEM_ANNOTATIONS_ROLE = Qt.ItemDataRole.UserRole + 2


class AnnotationPanel(QWidget):
    """
    表示中のページのハイライトを「箇所」ごとにまとめて一覧表示するパネル。

    グループを選ぶとそのグループの全注釈へ、注釈を選ぶとその注釈だけへ、
    教師のフィードバックを送ることができます。

    Signals:
        highlight_selected (pyqtSignal): ハイライト（グループの代表または注釈の対象）が選ばれた際にIDを送信します。
        feedback_submitted (pyqtSignal): (注釈IDのリスト, フィードバック本文) を送信します。
    """
    highlight_selected = pyqtSignal(str)
    feedback_submitted = pyqtSignal(list, str)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        # --- 属性の型定義 ---
        self.tree: QTreeWidget
        self.feedback_edit: QLineEdit
        self.feedback_button: QPushButton
        self.status_label: QLabel
        self.feedback_enabled: bool = True

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)

        self.tree = QTreeWidget()
        self.tree.setHeaderHidden(True)
        self.tree.setWordWrap(True)
        self.tree.itemSelectionChanged.connect(self._on_selection_changed)
        layout.addWidget(self.tree)

        feedback_layout = QHBoxLayout()
        self.feedback_edit = QLineEdit()
        self.feedback_edit.setPlaceholderText("フィードバックを入力...")
        self.feedback_edit.returnPressed.connect(self._submit_feedback)
        self.feedback_button = QPushButton("送信")
        self.feedback_button.clicked.connect(self._submit_feedback)
        feedback_layout.addWidget(self.feedback_edit)
        feedback_layout.addWidget(self.feedback_button)
        layout.addLayout(feedback_layout)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

    def set_feedback_enabled(self, enabled: bool) -> None:
        """フィードバック入力の表示を切り替える（学生モードでは非表示）。"""
        self.feedback_enabled = enabled
        self.feedback_edit.setVisible(enabled)
        self.feedback_button.setVisible(enabled)

    def set_groups(self, groups: Iterable[ReviewGroup]) -> None:
        """グループの一覧を表示し直す。"""
        self.tree.clear()
        self.status_label.setText("")
        groups = list(groups)
        if not groups:
            placeholder = QTreeWidgetItem(["このページにはまだハイライトがありません。"])
            placeholder.setFlags(Qt.ItemFlag.NoItemFlags)
            self.tree.addTopLevelItem(placeholder)
            return

        for group in groups:
            title = f"p.{group.page_number}「{excerpt(group.representative_text, 40)}」"
            summary = f"{len(group.member_highlights)}件のハイライト・{group.student_count}人"
            group_item = QTreeWidgetItem([f"{title}\n{summary}"])
            group_item.setData(0, ITEM_KIND_ROLE, "group")
            group_item.setData(0, ITEM_ID_ROLE, group.member_highlights[0].id)
            group_item.setData(0, ITEM_ANNOTATIONS_ROLE, [a.id for a in group.member_annotations])
            font = QFont(group_item.font(0))
            font.setBold(True)
            group_item.setFont(0, font)
            for annotation in group.member_annotations:
                group_item.addChild(self._annotation_item(annotation))
            self.tree.addTopLevelItem(group_item)
            group_item.setExpanded(True)

    @staticmethod
    def _annotation_item(annotation: Annotation) -> QTreeWidgetItem:
        lines = [f"{annotation.student_name}: {annotation.text}"]
        if annotation.teacher_feedback:
            lines.append(f"→ {annotation.teacher_feedback}")
        item = QTreeWidgetItem(["\n".join(lines)])
        item.setData(0, ITEM_KIND_ROLE, "annotation")
        item.setData(0, ITEM_ID_ROLE, annotation.highlight_id)
        item.setData(0, ITEM_ANNOTATIONS_ROLE, [annotation.id])
        item.setToolTip(0, f"{annotation.created_at:%Y-%m-%d %H:%M}")
        if annotation.teacher_feedback:
            item.setForeground(0, QBrush(QColor("#1976d2")))
        return item

    def selected_annotation_ids(self) -> List[str]:
        items = self.tree.selectedItems()
        if not items:
            return []
        return list(items[0].data(0, ITEM_ANNOTATIONS_ROLE) or [])

    def show_message(self, message: str, error: bool = False) -> None:
        self.status_label.setStyleSheet("color: #d32f2f;" if error else "")
        self.status_label.setText(message)

    def _on_selection_changed(self) -> None:
        items = self.tree.selectedItems()
        if items and items[0].data(0, ITEM_ID_ROLE):
            self.highlight_selected.emit(items[0].data(0, ITEM_ID_ROLE))

    def _submit_feedback(self) -> None:
        ids = self.selected_annotation_ids()
        if not ids:
            self.show_message("フィードバックを送る箇所または注釈を選択してください。", error=True)
            return
        self.feedback_submitted.emit(ids, self.feedback_edit.text())

    def clear_feedback_input(self) -> None:
        self.feedback_edit.clear()
