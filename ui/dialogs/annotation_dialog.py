# ui/dialogs/annotation_dialog.py
"""
ハイライトに注釈を付けるためのダイアログウィンドウを提供します。

このモジュールには、選択された箇所の引用とこれまでの注釈を表示し、
新しい注釈の本文を入力させる AnnotationDialog クラスが含まれています。
"""
from __future__ import annotations
from typing import Iterable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QLabel, QListWidget, QPushButton,
    QTextEdit, QVBoxLayout, QWidget
)

from models.errors import ValidationError
from models.highlight_models import Annotation, Highlight


class AnnotationDialog(QDialog):
    """
    注釈の入力を行うモーダルダイアログ。

    引用文、既存の注釈の一覧、本文入力欄、検証エラーの表示欄、
    そして提出・キャンセル・ハイライト削除のボタンで構成されます。
    検証はダイアログの外（AnnotationService）で行い、結果の ValidationError を
    show_validation_error で受け取ってダイアログ内に表示します。
    """
    # done() に渡す結果コード。Accepted/Rejected 以外の値
    DELETE_REQUESTED = 2

    def __init__(
        self,
        parent: Optional[QWidget],
        highlight: Highlight,
        annotations: Iterable[Annotation] = (),
        can_delete: bool = False,
        help_text: str = ""
    ) -> None:
        """
        AnnotationDialogのコンストラクタ。

        Args:
            parent (Optional[QWidget]): 親ウィジェット。通常はMainWindow。
            highlight (Highlight): 注釈を付けるハイライト。
            annotations (Iterable[Annotation]): ハイライトに既に付いている注釈。
            can_delete (bool): ハイライト削除ボタンを表示するかどうか。
            help_text (str): 入力欄に表示するヒント。空の場合は既定の文言。
        """
        super().__init__(parent)
        self.setWindowTitle("注釈を追加")
        self.setModal(True)
        self.setWindowModality(Qt.WindowModality.WindowModal)
        self.resize(480, 420)

        self.highlight = highlight

        # UIコンポーネントの型ヒント
        self.quote_label: QLabel
        self.history_list: QListWidget
        self.text_edit: QTextEdit
        self.error_label: QLabel
        self.button_box: QDialogButtonBox

        layout = QVBoxLayout(self)

        self.quote_label = QLabel(f"p.{highlight.page_number}（{highlight.student_name}）\n「{highlight.text}」")
        self.quote_label.setWordWrap(True)
        self.quote_label.setStyleSheet(f"background-color: {highlight.color}; padding: 6px; border-radius: 4px;")
        layout.addWidget(self.quote_label)

        annotations = list(annotations)
        if annotations:
            layout.addWidget(QLabel("これまでの注釈"))
            self.history_list = QListWidget()
            for annotation in annotations:
                line = f"{annotation.student_name}: {annotation.text}"
                if annotation.teacher_feedback:
                    line += f"\n  教師: {annotation.teacher_feedback}"
                self.history_list.addItem(line)
            layout.addWidget(self.history_list)

        layout.addWidget(QLabel("注釈"))
        self.text_edit = QTextEdit()
        self.text_edit.setAcceptRichText(False)
        self.text_edit.setPlaceholderText(help_text or "この箇所についての考えや質問を入力...")
        layout.addWidget(self.text_edit)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #d32f2f;")
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        layout.addWidget(self.error_label)

        self.button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        self.button_box.button(QDialogButtonBox.StandardButton.Ok).setText("提出")
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        if can_delete:
            delete_button = QPushButton("ハイライトを削除")
            self.button_box.addButton(delete_button, QDialogButtonBox.ButtonRole.DestructiveRole)
            delete_button.clicked.connect(lambda: self.done(self.DELETE_REQUESTED))
        layout.addWidget(self.button_box)

    def annotation_text(self) -> str:
        """
        入力された注釈の本文を返す。

        Returns:
            str: 入力された本文（前後の空白はそのまま）。
        """
        return self.text_edit.toPlainText()

    def show_validation_error(self, error: ValidationError) -> None:
        """検証エラーをダイアログ内に表示する。"""
        self.error_label.setText(error.message)
        self.error_label.show()
        self.text_edit.setFocus()
