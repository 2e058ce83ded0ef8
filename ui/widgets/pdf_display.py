from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from PyQt6.QtCore import Qt, QPoint, QPointF, QRect, QRectF, pyqtSignal
from PyQt6.QtGui import (QColor, QFont, QMouseEvent, QPainter, QPaintEvent, QPen, QPixmap)
from PyQt6.QtWidgets import QLabel, QSizePolicy, QWidget

from models.geometry_models import Point, Rect, Size
from models.view_models import DrawOp, LabelOp, PageBitmap, RectOp
from utils.pdf_utils import PDFUtils


@dataclass
class OverlayStyle:
    """
    ページ表示ウィジェットのオーバーレイ描画設定をカプセル化するデータクラス。
    """
    font_family: str = "Sans Serif"
    selection_color: QColor = field(default_factory=lambda: QColor(33, 150, 243, 60))
    selection_border_color: QColor = field(default_factory=lambda: QColor("#2196f3"))
    selected_border_color: QColor = field(default_factory=lambda: QColor("#ff9800"))
    count_background_color: QColor = field(default_factory=lambda: QColor(255, 255, 255, 220))
    error_text_color: QColor = field(default_factory=lambda: QColor("#d32f2f"))
    background_color: QColor = field(default_factory=lambda: QColor(Qt.GlobalColor.white))
    # ドラッグ量がこれ未満の場合は選択ではなくクリックとして扱う
    click_threshold: int = 4

    def label_font(self, font_size: float) -> QFont:
        font = QFont(self.font_family)
        font.setPointSizeF(max(1.0, font_size))
        return font


class PDFDisplayLabel(QLabel):
    """
    1ページ分の画像を表示し、その上にハイライトのオーバーレイを描画するラベル。

    見開き表示では左右のページごとに1つずつ配置されます。ドラッグによる範囲選択と
    クリックを検出し、画面座標のままシグナルで通知します（ページ固有座標への変換は
    ハンドラ側で行います）。

    Signals:
        selection_finished (pyqtSignal): 範囲選択が確定した際に (ページ番号, 画面上のRect) を送信します。
        clicked (pyqtSignal): クリックされた際に (ページ番号, 画面上のPoint) を送信します。
    """
    selection_finished = pyqtSignal(int, object)
    clicked = pyqtSignal(int, object)

    def __init__(self, slot: int = 0, parent: Optional[QWidget] = None, style: Optional[OverlayStyle] = None) -> None:
        """
        PDFDisplayLabelのコンストラクタ。

        Args:
            slot (int): 表示枠（0: 左/単一ページ、1: 見開きの右ページ）。
            parent (Optional[QWidget]): 親ウィジェット。
            style (Optional[OverlayStyle]): オーバーレイの描画設定。
        """
        super().__init__(parent)
        self.slot = slot
        self.style = style or OverlayStyle()
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)

        # --- 状態変数の型定義 ---
        self.page_number: Optional[int] = None
        self.page_size: Optional[Size] = None
        self.draw_ops: List[DrawOp] = []
        self.selected_highlight_id: Optional[str] = None
        self.error_message: Optional[str] = None
        # 新しいページ画像を待っている間は、表示中の画像と表示状態が一致しない
        self.pending: bool = False
        self._selecting: bool = False
        self._selection_origin: QPoint = QPoint()
        self._selection_rect: QRect = QRect()

    # --- 表示内容の設定 ---
    def set_page(self, page_number: int, page_size: Optional[Size]) -> None:
        """表示するページを設定する。画像はレンダリング完了後に set_bitmap で渡される。

        画像が届くまでは古い画像が表示されたままになるため、ポインタ入力は受け付けません。
        """
        self.page_number = page_number
        self.page_size = page_size
        self.pending = True
        self.cancel_selection()

    def set_bitmap(self, bitmap: PageBitmap) -> None:
        """レンダリングされたページ画像を表示する。"""
        self.error_message = None
        self.pending = False
        self.setText("")
        self.setStyleSheet("")
        pixmap = QPixmap.fromImage(PDFUtils.bitmap_to_qimage(bitmap))
        self.setPixmap(pixmap)
        self.setFixedSize(pixmap.size())

    def show_error(self, message: str) -> None:
        """描画に失敗したページの代わりにエラーメッセージを表示する。他のページには影響しない。"""
        self.error_message = message
        self.draw_ops = []
        self.pending = False
        self.setPixmap(QPixmap())
        self.setText(message)
        self.setWordWrap(True)
        self.setFixedSize(320, 160)
        self.setStyleSheet(f"color: {self.style.error_text_color.name()};")

    def clear_page(self) -> None:
        """ページの表示をすべて消去する。"""
        self.page_number = None
        self.page_size = None
        self.draw_ops = []
        self.selected_highlight_id = None
        self.error_message = None
        self.pending = False
        self.setPixmap(QPixmap())
        self.setText("")
        self.setStyleSheet("")

    def set_draw_ops(self, ops: List[DrawOp]) -> None:
        self.draw_ops = list(ops)
        self.update()

    def set_selected_highlight(self, highlight_id: Optional[str]) -> None:
        self.selected_highlight_id = highlight_id
        self.update()

    def has_page_image(self) -> bool:
        pixmap = self.pixmap()
        return pixmap is not None and not pixmap.isNull()

    def accepts_input(self) -> bool:
        """表示中の画像が現在の表示状態で描かれたものであり、ポインタ入力を扱えるかどうか。"""
        return self.page_number is not None and not self.pending and self.has_page_image()

    # --- マウス操作 ---
    def mousePressEvent(self, event: QMouseEvent) -> None:
        """左ボタンで範囲選択を開始する。"""
        if event.button() == Qt.MouseButton.LeftButton and self.accepts_input():
            self._selecting = True
            self._selection_origin = event.pos()
            self._selection_rect = QRect(event.pos(), event.pos())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """選択中は選択範囲を更新する。"""
        if self._selecting:
            self._selection_rect = QRect(self._selection_origin, event.pos()).normalized().intersected(self.rect())
            self.update()
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """選択を確定する。ドラッグ量が小さい場合はクリックとして通知する。"""
        if event.button() != Qt.MouseButton.LeftButton or not self._selecting:
            return super().mouseReleaseEvent(event)

        self._selecting = False
        delta = event.pos() - self._selection_origin
        if delta.manhattanLength() < self.style.click_threshold:
            self.clicked.emit(self.page_number, Point(event.position().x(), event.position().y()))
        else:
            r = self._selection_rect
            self.selection_finished.emit(self.page_number, Rect(r.x(), r.y(), r.width(), r.height()))
        self._selection_rect = QRect()
        self.update()
        event.accept()

    def cancel_selection(self) -> None:
        self._selecting = False
        self._selection_rect = QRect()
        self.update()

    # --- 描画 ---
    def paintEvent(self, event: QPaintEvent) -> None:
        """
        再描画イベント。pixmap（ページ画像）の上に、ハイライト・ラベル・選択中の範囲を描画する。
        """
        super().paintEvent(event)
        if not self.has_page_image():
            return

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        self._paint_draw_ops(painter)
        self._paint_selection(painter)
        painter.end()

    def _paint_draw_ops(self, painter: QPainter) -> None:
        """描画命令を順に描画する。矩形が先、ラベルはその上に重なる。"""
        for op in self.draw_ops:
            if isinstance(op, RectOp):
                self._paint_rect(painter, op)
        for op in self.draw_ops:
            if isinstance(op, LabelOp):
                self._paint_label(painter, op)

    def _paint_rect(self, painter: QPainter, op: RectOp) -> None:
        r = op.rect
        rect = QRectF(r.x, r.y, r.width, r.height)
        painter.fillRect(rect, PDFUtils.highlight_color(op.color, op.opacity))
        if op.highlight_id == self.selected_highlight_id:
            painter.setPen(QPen(self.style.selected_border_color, 2))
            painter.drawRect(rect)

    def _paint_label(self, painter: QPainter, op: LabelOp) -> None:
        painter.setFont(self.style.label_font(op.font_size))
        position = QPointF(op.position.x, op.position.y)
        if op.kind == 'count':
            # 数字の背後に小さな背景を敷いて読みやすくする
            metrics = painter.fontMetrics()
            text_rect = QRectF(metrics.boundingRect(op.text)).translated(position)
            painter.fillRect(text_rect.adjusted(-2, -1, 2, 1), self.style.count_background_color)
        painter.setPen(QColor(op.color))
        painter.drawText(position, op.text)

    def _paint_selection(self, painter: QPainter) -> None:
        if not self._selecting or self._selection_rect.isEmpty():
            return
        painter.setPen(QPen(self.style.selection_border_color, 1, Qt.PenStyle.DashLine))
        painter.setBrush(self.style.selection_color)
        painter.drawRect(self._selection_rect)
