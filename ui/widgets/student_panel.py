from typing import Iterable, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QTreeWidget, QTreeWidgetItem, QVBoxLayout, QWidget

from models.highlight_models import StudentSummary
from services.report_service import excerpt


class StudentPanel(QWidget):
    """
    学生ごとのハイライト数・注釈数と注釈の一覧を表示するパネル。

    Signals:
        highlight_selected (pyqtSignal): 一覧から選ばれたハイライトの (ID, ページ番号) を送信します。
    """
    highlight_selected = pyqtSignal(str, int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)

        self.tree = QTreeWidget()
        self.tree.setHeaderHidden(True)
        self.tree.setWordWrap(True)
        self.tree.itemActivated.connect(self._on_item_activated)
        layout.addWidget(self.tree)

    def set_summaries(self, summaries: Iterable[StudentSummary]) -> None:
        self.tree.clear()
        for summary in summaries:
            student_item = QTreeWidgetItem([
                f"{summary.student_name}（ハイライト {summary.highlight_count}・注釈 {summary.annotation_count}）"
            ])
            for highlight in summary.highlights:
                notes = [a for a in summary.annotations if a.highlight_id == highlight.id]
                lines = [f"p.{highlight.page_number}「{excerpt(highlight.text, 40)}」"]
                lines.extend(f"  {a.text}" for a in notes)
                child = QTreeWidgetItem(["\n".join(lines)])
                child.setData(0, Qt.ItemDataRole.UserRole, highlight.id)
                child.setData(0, Qt.ItemDataRole.UserRole + 1, highlight.page_number)
                student_item.addChild(child)
            self.tree.addTopLevelItem(student_item)

    def _on_item_activated(self, item: QTreeWidgetItem, _column: int) -> None:
        highlight_id = item.data(0, Qt.ItemDataRole.UserRole)
        if highlight_id:
            self.highlight_selected.emit(highlight_id, item.data(0, Qt.ItemDataRole.UserRole + 1))
