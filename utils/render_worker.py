# utils/render_worker.py
"""文書の読み込みとページのレンダリングをバックグラウンドで実行するためのスレッド機能を提供します。"""

from typing import Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from models.document_models import DocumentInfo
from models.errors import LoadError
from models.view_models import PageRenderResult, RenderTicket
from services.document_service import DocumentSession
from services.render_scheduler import RenderScheduler


class DocumentLoadThread(QThread):
    """文書を読み込むワーカースレッド。

    UIのフリーズを防ぐため、PDFの読み込み（URLの場合はダウンロードも）をバックグラウンドで実行します。

    Signals:
        result_ready (pyqtSignal): 読み込みに成功した際に (世代番号, DocumentInfo) を送信します。
        error_occurred (pyqtSignal): 読み込みに失敗した際に (世代番号, エラーメッセージ) を送信します。
    """
    result_ready = pyqtSignal(int, object)
    error_occurred = pyqtSignal(int, str)

    def __init__(self, session: DocumentSession, generation: int, source: str, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.generation = generation
        self.source = source

    def run(self) -> None:
        """スレッドのメイン処理。読み込み結果をシグナルで通知する。"""
        try:
            document = self.session.load(self.source)
            self.result_ready.emit(self.generation, document)
        except LoadError as e:
            self.error_occurred.emit(self.generation, str(e))
        except Exception as e:
            self.error_occurred.emit(self.generation, f"予期せぬエラーが発生しました: {e}")


class PageRenderThread(QThread):
    """1ページをレンダリングするワーカースレッド。

    結果（PageRenderResult）はチケットとともに送信され、受け取った側で
    RenderScheduler.accept() により古い結果かどうかを判定します。

    Signals:
        finished_render (pyqtSignal): PageRenderResult を送信します。
    """
    finished_render = pyqtSignal(object)

    def __init__(
        self,
        scheduler: RenderScheduler,
        document: DocumentInfo,
        ticket: RenderTicket,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self.scheduler = scheduler
        self.document = document
        self.ticket = ticket

    def run(self) -> None:
        try:
            result = self.scheduler.execute(self.document, self.ticket)
        except Exception as e:
            result = PageRenderResult(ticket=self.ticket, error=f"予期せぬエラーが発生しました: {e}")
        self.finished_render.emit(result)
