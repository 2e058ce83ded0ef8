# models/view_models.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from models.geometry_models import Point, Rect


class ViewMode(str, Enum):
    """ページの表示モード。"""
    SINGLE = 'single'
    DOUBLE = 'double'


@dataclass(frozen=True)
class ViewState:
    """閲覧セッションの表示状態。PageLayoutControllerだけが新しい状態に置き換える。

    Attributes:
        current_page (int): 現在のページ（見開き時は左ページ）。1始まり。
        scale (float): 拡大率（0.5〜3.0）。
        rotation (int): 回転角度（0, 90, 180, 270）。
        view_mode (ViewMode): 単一ページまたは見開き。
    """
    current_page: int = 1
    scale: float = 1.0
    rotation: int = 0
    view_mode: ViewMode = ViewMode.DOUBLE


@dataclass(frozen=True)
class DisplayOptions:
    """描画のみに影響する表示設定。データモデルには影響しない。"""
    show_student_names: bool = True
    show_highlight_count: bool = True
    view_mode: ViewMode = ViewMode.DOUBLE


@dataclass(frozen=True)
class RectOp:
    """ハイライト矩形を塗りつぶす描画命令（画面座標）。"""
    rect: Rect
    color: str
    opacity: float
    highlight_id: str


@dataclass(frozen=True)
class LabelOp:
    """ラベル文字列を描く描画命令（画面座標）。

    Attributes:
        kind (str): 'count'（重なり数）または 'name'（学生名）。
    """
    text: str
    position: Point
    font_size: float
    highlight_id: str
    kind: str = 'count'
    color: str = '#000000'


DrawOp = Union[RectOp, LabelOp]


@dataclass(frozen=True)
class RenderTicket:
    """ページレンダリング要求の識別子。遅れて届いた古い結果を破棄するために使う。"""
    page_number: int
    scale: float
    rotation: int
    generation: int
    slot: int = 0


@dataclass
class PageBitmap:
    """レンダラーが生成したページ画像（生のピクセルデータ）。

    Attributes:
        page_number (int): ページ番号（1始まり）。
        width (int): ピクセル幅。
        height (int): ピクセル高さ。
        stride (int): 1行あたりのバイト数。
        samples (bytes): ピクセルデータ（RGBまたはRGBA）。
        alpha (bool): アルファチャンネルの有無。
    """
    page_number: int
    width: int
    height: int
    stride: int
    samples: bytes
    alpha: bool = False


@dataclass
class PageRenderResult:
    """ページレンダリング結果。bitmap か error のどちらか一方が設定される。"""
    ticket: RenderTicket
    bitmap: Optional[PageBitmap] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.bitmap is not None
