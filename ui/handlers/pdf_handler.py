from __future__ import annotations
import dataclasses
import logging
import os
from typing import TYPE_CHECKING, List, Optional, Set

from PyQt6.QtWidgets import QFileDialog, QMessageBox

from models.errors import LoadError
from models.document_models import DocumentInfo
from models.view_models import PageRenderResult, RenderTicket, ViewMode, ViewState
from utils.render_worker import DocumentLoadThread, PageRenderThread

if TYPE_CHECKING:
    from ..main_window import MainWindow
    from ..widgets.pdf_display import PDFDisplayLabel

logger = logging.getLogger(__name__)


class PDFHandler:
    """
    PDF文書の読み込み、ページのレンダリング、ナビゲーション、ズーム、回転、表示モード管理など、
    ページ表示に関する中心的な処理を担うハンドラクラス。

    表示状態（ViewState）は PageLayoutController だけが更新し、このハンドラは
    その変更通知を受けて表示中のページを描き直します。
    """
    def __init__(self, main_window: MainWindow) -> None:
        """
        PDFHandlerのコンストラクタ。

        Args:
            main_window (MainWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: MainWindow = main_window
        self.load_thread: Optional[DocumentLoadThread] = None
        self._render_threads: Set[PageRenderThread] = set()
        self.main.controller.add_listener(self.on_view_state_changed)

    @property
    def page_labels(self) -> List[PDFDisplayLabel]:
        return self.main.page_labels

    # --- 文書の読み込み ---
    def open_pdf_file(self) -> None:
        """
        ファイルダイアログを開き、ユーザーにPDFファイルを選択させる。
        """
        file_path, _ = QFileDialog.getOpenFileName(self.main, "PDFファイルを開く", "", "PDF Files (*.pdf)")
        if not file_path:
            return
        self.load_pdf(file_path)

    def load_pdf(self, source: str) -> None:
        """
        PDFの読み込みを開始する。読み込みはワーカースレッドで行われる。

        ローカルファイルは検証と一時コピーの作成を経てから読み込みます。
        読み込み中に別の文書を開いた場合、先の読み込み結果は破棄されます。
        """
        try:
            generation, load_source = self.main.session.begin_load(source)
        except LoadError as e:
            logger.warning("PDFファイルを取り込めませんでした: %s, %s", source, e)
            # 検証に失敗した場合、表示中の文書はそのまま残る
            if self.main.session.document is None:
                self.main.controller.set_total_pages(0)
                self.main.document_title_label.setText("PDFファイルを開いてください...")
            QMessageBox.critical(self.main, "PDFエラー", str(e))
            return

        self.main.scheduler.invalidate()
        self.main.controller.set_total_pages(0)
        self.main.document_title_label.setText(f"読み込み中: {os.path.basename(source)}")

        thread = DocumentLoadThread(self.main.session, generation, load_source, self.main)
        thread.result_ready.connect(self.on_document_loaded)
        thread.error_occurred.connect(self.on_document_error)
        thread.finished.connect(lambda t=thread: self._on_load_thread_finished(t))
        self.load_thread = thread
        thread.start()
        logger.info("PDFの読み込みを開始しました: %s", source)

    def _on_load_thread_finished(self, thread: DocumentLoadThread) -> None:
        if self.load_thread is thread:
            self.load_thread = None
        thread.deleteLater()

    def on_document_loaded(self, generation: int, document: object) -> None:
        """文書の非同期読み込みが成功したときに呼び出されるスロット。"""
        if not self.main.session.finish_load(generation, document):
            return
        source = self.main.session.handle.original_path if self.main.session.handle else document.source
        self.main.document_title_label.setText(os.path.basename(source))
        self.main.controller.set_total_pages(document.page_count)

    def on_document_error(self, generation: int, message: str) -> None:
        """文書の非同期読み込みが失敗したときに呼び出されるスロット。"""
        if generation != self.main.session.generation:
            logger.debug("取り消された読み込みのエラーを無視しました: %s", message)
            return
        logger.error("PDFの読み込みに失敗しました: %s", message)
        self.main.document_title_label.setText("")
        QMessageBox.critical(self.main, "PDFエラー", message)

    # --- レンダリング ---
    def on_view_state_changed(self, state: ViewState) -> None:
        """ViewStateの変更通知を受けて表示を更新する。"""
        self.render_visible_pages()
        self.main.update_navigation()

    def render_visible_pages(self) -> None:
        """
        表示中のページ（単一ページまたは見開きの2ページ）のレンダリングを要求する。
        古い要求の結果は RenderScheduler が破棄する。
        """
        document = self.main.session.document
        if document is None:
            for label in self.page_labels:
                label.clear_page()
            self.main.refresh_panels()
            return

        tickets = self.main.scheduler.request_visible()
        for slot, label in enumerate(self.page_labels):
            ticket = tickets.get(slot)
            if ticket is None:
                label.clear_page()
                label.hide()
                continue
            label.set_page(ticket.page_number, document.page_size(ticket.page_number))
            label.show()
            self._start_render(document, ticket)
        self.main.refresh_panels()

    def _start_render(self, document: DocumentInfo, ticket: RenderTicket) -> None:
        thread = PageRenderThread(self.main.scheduler, document, ticket, self.main)
        thread.finished_render.connect(self.on_page_rendered)
        thread.finished.connect(lambda t=thread: self._on_render_thread_finished(t))
        self._render_threads.add(thread)
        thread.start()

    def on_page_rendered(self, result: PageRenderResult) -> None:
        """ページの非同期レンダリングが終わったときに呼び出されるスロット。"""
        if not self.main.scheduler.accept(result):
            return
        label = self.page_labels[result.ticket.slot]
        if result.ok:
            label.set_bitmap(result.bitmap)
            self.refresh_overlay(label)
        else:
            label.show_error(result.error)

    def _on_render_thread_finished(self, thread: PageRenderThread) -> None:
        self._render_threads.discard(thread)
        thread.deleteLater()

    def refresh_overlays(self) -> None:
        """表示中のすべてのページのオーバーレイを描き直す（ハイライトの追加・削除時など）。"""
        for label in self.page_labels:
            self.refresh_overlay(label)

    def refresh_overlay(self, label: PDFDisplayLabel) -> None:
        # 新しい画像を待っている間は、古い画像に合わせた描画命令をそのまま残す
        if label.page_number is None or label.pending or not label.has_page_image():
            return
        ops = self.main.overlay_renderer.draw_list(
            label.page_number, self.main.controller.state, self.main.display_options, label.page_size
        )
        label.set_draw_ops(ops)

    # --- ナビゲーション ---
    def show_prev_page(self) -> None:
        """前のページ（見開きでは前の見開き）を表示する。"""
        self.main.controller.prev_page()

    def show_next_page(self) -> None:
        """次のページ（見開きでは次の見開き）を表示する。"""
        self.main.controller.next_page()

    def goto_page_from_input(self) -> None:
        """入力フィールドのページ番号にジャンプする。"""
        try:
            page_num = int(self.main.page_num_input.text())
        except ValueError:
            self.main.update_navigation()
            return
        self.main.controller.go_to_page(page_num)
        self.main.update_navigation()

    def go_to_page(self, page_number: int) -> None:
        self.main.controller.go_to_page(page_number)

    def zoom_in(self) -> None:
        self.main.controller.zoom_in()

    def zoom_out(self) -> None:
        self.main.controller.zoom_out()

    def reset_zoom(self) -> None:
        self.main.controller.reset_zoom()

    def rotate(self) -> None:
        self.main.controller.rotate()

    def toggle_spread_mode(self, enabled: bool) -> None:
        """単一/見開き表示モードを切り替える。"""
        mode = ViewMode.DOUBLE if enabled else ViewMode.SINGLE
        self.main.display_options = dataclasses.replace(self.main.display_options, view_mode=mode)
        self.main.controller.set_view_mode(mode)

    def shutdown(self) -> None:
        """実行中のスレッドの終了を待ち、文書と一時ファイルを解放する。"""
        self.main.session.cancel()
        if self.load_thread is not None and self.load_thread.isRunning():
            self.load_thread.wait()
        for thread in list(self._render_threads):
            thread.wait()
        self.main.session.close()
