# utils/submit_worker.py
"""注釈の送信をバックグラウンドで実行するためのスレッド機能を提供します。"""

import logging
from typing import Optional, Set

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from models.highlight_models import Highlight
from services.api_service import APIService

logger = logging.getLogger(__name__)


class AnnotationSubmitThread(QThread):
    """1件の注釈をAPIへ送信するワーカースレッド。

    Signals:
        finished_submit (pyqtSignal): 送信が終わった際に (成功したかどうか, ハイライトID) を送信します。
    """
    finished_submit = pyqtSignal(bool, str)

    def __init__(self, api_service: APIService, highlight: Highlight, text: str, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.api_service = api_service
        self.highlight = highlight
        self.text = text

    def run(self) -> None:
        try:
            ok = self.api_service.submit_annotation(self.highlight, self.text)
        except Exception:
            logger.exception("注釈の送信中に予期せぬエラーが発生しました: highlight=%s", self.highlight.id)
            ok = False
        self.finished_submit.emit(ok, self.highlight.id)


class AnnotationSubmitter(QObject):
    """
    AnnotationService の on_annotation_create コールバックとして使う送信窓口。

    呼び出しごとにワーカースレッドを1つ起動してすぐに戻るため、通信が遅くても
    UIスレッドは止まりません。送信は1回だけ行い、失敗は failed シグナルで通知します。

    Signals:
        failed (pyqtSignal): 送信に失敗した際に、表示用のメッセージを送信します。
    """
    failed = pyqtSignal(str)

    def __init__(self, api_service: APIService, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.api_service = api_service
        self._threads: Set[AnnotationSubmitThread] = set()

    def __call__(self, highlight: Highlight, text: str) -> None:
        thread = AnnotationSubmitThread(self.api_service, highlight, text, self)
        thread.finished_submit.connect(self._on_submit_finished)
        thread.finished.connect(lambda t=thread: self._on_thread_finished(t))
        self._threads.add(thread)
        thread.start()

    def _on_submit_finished(self, ok: bool, highlight_id: str) -> None:
        if not ok:
            self.failed.emit(f"注釈をサーバーへ送信できませんでした: {self.api_service.last_error or highlight_id}")

    def _on_thread_finished(self, thread: AnnotationSubmitThread) -> None:
        self._threads.discard(thread)
        thread.deleteLater()

    def wait_all(self) -> None:
        """送信中のスレッドがすべて終わるまで待つ（アプリケーション終了時など）。"""
        for thread in list(self._threads):
            thread.wait()
