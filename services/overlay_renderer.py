# services/overlay_renderer.py
from typing import List, Optional

from models.geometry_models import Point, Size
from models.highlight_models import Highlight
from models.view_models import DisplayOptions, DrawOp, LabelOp, RectOp, ViewState
from services.aggregator import Aggregator
from services.highlight_store import HighlightStore
from utils import coordinate_utils

COUNT_LABEL_INSET_X = 20
COUNT_LABEL_BASELINE_Y = 15
NAME_LABEL_OFFSET_Y = 4
BASE_FONT_SIZE = 12


class OverlayRenderer:
    """
    ページ画像に重ねるハイライトの描画命令を生成し、ポインタ位置のヒットテストを行うクラス。

    描画命令は画面座標で表現され、Qtなどの描画APIには依存しません。
    """

    def __init__(self, store: HighlightStore, aggregator: Aggregator) -> None:
        """OverlayRendererのコンストラクタ。

        Args:
            store (HighlightStore): ハイライトの取得元。
            aggregator (Aggregator): 重なり数の計算に使う集約器。
        """
        self.store = store
        self.aggregator = aggregator

    def draw_list(
        self,
        page_number: int,
        view_state: ViewState,
        options: DisplayOptions,
        page_size: Optional[Size] = None
    ) -> List[DrawOp]:
        """指定ページの描画命令のリストを返す。

        ハイライトごとに矩形の塗りつぶし命令を1つ生成し、表示設定に応じて
        重なり数ラベルと学生名ラベルを追加します。

        Args:
            page_number (int): 対象ページ番号。
            view_state (ViewState): 現在の表示状態（拡大率・回転）。
            options (DisplayOptions): 表示設定。
            page_size (Optional[Size]): ページ固有サイズ。回転後の平行移動に使用する。

        Returns:
            List[DrawOp]: 追加順に並んだ描画命令。
        """
        scale, rotation = view_state.scale, view_state.rotation
        ops: List[DrawOp] = []
        for highlight in self.store.by_page(page_number):
            screen = coordinate_utils.to_screen(highlight.rect, scale, rotation, page_size)
            ops.append(RectOp(rect=screen, color=highlight.color, opacity=highlight.opacity, highlight_id=highlight.id))

            if options.show_highlight_count:
                count = self.aggregator.overlap_count(page_number, highlight.rect)
                ops.append(LabelOp(
                    text=str(count),
                    position=Point(screen.x + screen.width - COUNT_LABEL_INSET_X, screen.y + COUNT_LABEL_BASELINE_Y),
                    font_size=BASE_FONT_SIZE * scale,
                    highlight_id=highlight.id,
                    kind='count',
                ))

            if options.show_student_names and highlight.student_name:
                ops.append(LabelOp(
                    text=highlight.student_name,
                    position=Point(screen.x, screen.y - NAME_LABEL_OFFSET_Y),
                    font_size=BASE_FONT_SIZE * scale * 0.8,
                    highlight_id=highlight.id,
                    kind='name',
                    color='#424242',
                ))
        return ops

    def hit_test(
        self,
        screen_point: Point,
        page_number: int,
        view_state: ViewState,
        page_size: Optional[Size] = None
    ) -> Optional[Highlight]:
        """画面上の点にあるハイライトを返す。

        点をページ固有座標に戻してから、追加順で最初に矩形（境界を含む）が点を含む
        ハイライトを返します。矩形が重なっていても報告するのは1件だけです。

        Returns:
            Optional[Highlight]: 該当するハイライト。該当なしの場合はNone。
        """
        point = coordinate_utils.to_page_space(screen_point, view_state.scale, view_state.rotation, page_size)
        for highlight in self.store.by_page(page_number):
            if highlight.rect.contains(point):
                return highlight
        return None
