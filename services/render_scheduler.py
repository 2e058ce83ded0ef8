# services/render_scheduler.py
import logging
from typing import Dict, Optional

from models.document_models import DocumentInfo
from models.errors import RenderError
from models.view_models import PageRenderResult, RenderTicket
from services.layout_controller import PageLayoutController
from services.renderer_service import DocumentRenderer

logger = logging.getLogger(__name__)


class RenderScheduler:
    """
    ページレンダリング要求にチケットを発行し、遅れて届いた古い結果を破棄するクラス。

    レンダリングはワーカースレッドで実行されるため、結果が届いた時点で既に別の
    ページへ移動している可能性があります。結果はチケットが表示枠（slot）の最新であり、
    かつそのページが同じ拡大率・回転で表示中の場合にのみ受け入れます。
    """

    def __init__(self, controller: PageLayoutController, renderer: DocumentRenderer) -> None:
        self.controller = controller
        self.renderer = renderer
        self._generation: int = 0
        self._latest: Dict[int, RenderTicket] = {}

    def request(self, page_number: int, slot: int = 0) -> RenderTicket:
        """現在の表示状態でページのレンダリングチケットを発行する。

        Args:
            page_number (int): 描画するページ番号。
            slot (int): 表示枠（0: 左/単一ページ、1: 見開きの右ページ）。
        """
        self._generation += 1
        state = self.controller.state
        ticket = RenderTicket(
            page_number=page_number,
            scale=state.scale,
            rotation=state.rotation,
            generation=self._generation,
            slot=slot,
        )
        self._latest[slot] = ticket
        return ticket

    def request_visible(self) -> Dict[int, RenderTicket]:
        """表示中のすべてのページのチケットを発行し、表示枠ごとに返す。"""
        self._latest.clear()
        return {slot: self.request(page, slot) for slot, page in enumerate(self.controller.visible_pages())}

    def is_current(self, ticket: RenderTicket) -> bool:
        """チケットの結果がまだ必要とされているかどうかを返す。"""
        if self._latest.get(ticket.slot) != ticket:
            return False
        state = self.controller.state
        visible = self.controller.visible_pages()
        return (
            ticket.slot < len(visible)
            and visible[ticket.slot] == ticket.page_number
            and state.scale == ticket.scale
            and state.rotation == ticket.rotation
        )

    def accept(self, result: PageRenderResult) -> bool:
        """レンダリング結果を受け入れるかどうかを判定する。古い結果はログに残して破棄する。"""
        if self.is_current(result.ticket):
            return True
        logger.debug("古いレンダリング結果を破棄しました: page=%d generation=%d",
                     result.ticket.page_number, result.ticket.generation)
        return False

    def invalidate(self) -> None:
        """発行済みのすべてのチケットを無効にする（文書切り替え時など）。"""
        self._latest.clear()

    def execute(self, document: DocumentInfo, ticket: RenderTicket) -> PageRenderResult:
        """チケットに従ってページを描画する。ワーカースレッドから呼ばれる。

        RenderError は結果に格納され、他のページの表示には影響しません。
        """
        try:
            bitmap = self.renderer.render_page(document, ticket.page_number, ticket.scale, ticket.rotation)
        except RenderError as e:
            logger.warning("ページ %d の描画に失敗しました: %s", ticket.page_number, e)
            return PageRenderResult(ticket=ticket, error=str(e))
        return PageRenderResult(ticket=ticket, bitmap=bitmap)

    def latest(self, slot: int = 0) -> Optional[RenderTicket]:
        return self._latest.get(slot)
