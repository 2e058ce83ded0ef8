# services/layout_controller.py
import dataclasses
import logging
from typing import Callable, List, Tuple

from models.view_models import ViewMode, ViewState

logger = logging.getLogger(__name__)

MIN_SCALE = 0.5
MAX_SCALE = 3.0
SCALE_STEP = 0.25

StateListener = Callable[[ViewState], None]


class PageLayoutController:
    """
    ページ送り、ズーム、回転、表示モードを管理し、ViewStateを唯一更新するクラス。

    見開きモードでは current_page は常に左ページ（奇数ページ）を指します。
    状態が変わるたびに登録されたリスナーへ新しいViewStateを通知します。
    """

    def __init__(
        self,
        total_pages: int = 0,
        view_mode: ViewMode = ViewMode.DOUBLE,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
        scale_step: float = SCALE_STEP
    ) -> None:
        """PageLayoutControllerのコンストラクタ。

        Args:
            total_pages (int): 文書の総ページ数。文書未読み込みの場合は0。
            view_mode (ViewMode): 初期表示モード。
            min_scale (float): 最小拡大率。
            max_scale (float): 最大拡大率。
            scale_step (float): ズーム1回あたりの拡大率の変化量。
        """
        self.total_pages: int = max(0, total_pages)
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.scale_step = scale_step
        self._state = ViewState(view_mode=ViewMode(view_mode))
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def current_page(self) -> int:
        return self._state.current_page

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _update(self, force: bool = False, **changes) -> None:
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state and not force:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # --- ページ送り ---
    def set_total_pages(self, total_pages: int) -> None:
        """文書の（再）読み込み時に総ページ数を設定し、1ページ目に戻す。"""
        self.total_pages = max(0, total_pages)
        self._update(force=True, current_page=1)

    def next_page(self) -> None:
        """次のページへ進む。見開きでは2ページ進むが、最後の見開きでは何もしない。"""
        if self.total_pages < 1:
            return
        current = self._state.current_page
        if self._state.view_mode == ViewMode.DOUBLE:
            if current + 1 < self.total_pages:
                self._update(current_page=current + 2)
        elif current < self.total_pages:
            self._update(current_page=current + 1)

    def prev_page(self) -> None:
        """前のページへ戻る。見開きでは2ページ戻り、3ページ目より前なら1ページ目へ移動する。"""
        if self.total_pages < 1:
            return
        current = self._state.current_page
        if self._state.view_mode == ViewMode.DOUBLE:
            self._update(current_page=current - 2 if current > 2 else 1)
        elif current > 1:
            self._update(current_page=current - 1)

    def go_to_page(self, page_number: int) -> None:
        """指定ページへ移動する。範囲外は丸め、見開きでは左ページ（奇数）に揃える。"""
        if self.total_pages < 1:
            return
        page = max(1, min(page_number, self.total_pages))
        if self._state.view_mode == ViewMode.DOUBLE:
            page = self._odd_aligned(page)
        self._update(current_page=page)

    def can_go_next(self) -> bool:
        if self._state.view_mode == ViewMode.DOUBLE:
            return self._state.current_page + 1 < self.total_pages
        return self._state.current_page < self.total_pages

    def can_go_prev(self) -> bool:
        return self.total_pages >= 1 and self._state.current_page > 1

    def visible_pages(self) -> Tuple[int, ...]:
        """現在表示すべきページ番号を返す。見開きで右ページが存在する場合は2ページ。"""
        if self.total_pages < 1:
            return ()
        current = self._state.current_page
        if self._state.view_mode == ViewMode.DOUBLE and current < self.total_pages:
            return current, current + 1
        return (current,)

    def page_label(self) -> str:
        """ツールバーに表示するページ位置の文字列を返す。"""
        pages = self.visible_pages()
        if len(pages) == 2:
            return f"{pages[0]}-{pages[1]} / {self.total_pages}"
        return f"{self._state.current_page} / {self.total_pages}"

    # --- ズームと回転 ---
    def zoom_in(self) -> None:
        self._set_scale(self._state.scale + self.scale_step)

    def zoom_out(self) -> None:
        self._set_scale(self._state.scale - self.scale_step)

    def reset_zoom(self) -> None:
        self._set_scale(1.0)

    def _set_scale(self, scale: float) -> None:
        clamped = max(self.min_scale, min(self.max_scale, scale))
        self._update(scale=round(clamped, 4))

    def rotate(self) -> None:
        """時計回りに90°回転する。"""
        self._update(rotation=(self._state.rotation + 90) % 360)

    # --- 表示モード ---
    def set_view_mode(self, mode: ViewMode) -> None:
        """表示モードを切り替える。

        偶数ページで見開きに切り替えた場合は、そのページを含む見開きの左ページ
        （1つ前の奇数ページ）に移動します。
        """
        mode = ViewMode(mode)
        current = self._state.current_page
        if mode == ViewMode.DOUBLE and self.total_pages >= 1:
            aligned = self._odd_aligned(current)
            if aligned != current:
                logger.debug("見開き表示のためページを %d から %d に揃えました", current, aligned)
            current = aligned
        self._update(view_mode=mode, current_page=current)

    @staticmethod
    def _odd_aligned(page: int) -> int:
        return page - 1 if page % 2 == 0 else page
