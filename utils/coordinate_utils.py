# utils/coordinate_utils.py
"""ページ固有座標と画面ピクセル座標の相互変換を提供します。

ページ固有座標は拡大率1.0・回転0°の座標系です。保存される矩形は常にこの座標系で表され、
拡大・回転は描画とヒットテストの時点でのみ適用されます。
回転はページ左上を原点とした時計回りの90°単位の剛体回転です。
page_size を指定した場合は、回転後のページが正の象限に収まるよう平行移動します。
"""
from typing import Optional, Tuple

from models.geometry_models import Point, Rect, Size

VALID_ROTATIONS = (0, 90, 180, 270)


def _validate(scale: float, rotation: int) -> None:
    if rotation not in VALID_ROTATIONS:
        raise ValueError(f"回転角度は0, 90, 180, 270のいずれかである必要があります: {rotation}")
    if scale <= 0:
        raise ValueError(f"拡大率は正の値である必要があります: {scale}")


def _scaled_extent(page_size: Optional[Size], scale: float) -> Tuple[float, float]:
    if page_size is None:
        return 0.0, 0.0
    return page_size.width * scale, page_size.height * scale


def rotated_size(page_size: Size, scale: float, rotation: int) -> Size:
    """拡大・回転後のページ（ビューポート）サイズを返す。"""
    _validate(scale, rotation)
    width, height = page_size.width * scale, page_size.height * scale
    if rotation in (90, 270):
        return Size(height, width)
    return Size(width, height)


def _rotate_point(x: float, y: float, rotation: int, width: float, height: float) -> Tuple[float, float]:
    # width/height は拡大後のページサイズ
    if rotation == 90:
        return height - y, x
    if rotation == 180:
        return width - x, height - y
    if rotation == 270:
        return y, width - x
    return x, y


def _unrotate_point(x: float, y: float, rotation: int, width: float, height: float) -> Tuple[float, float]:
    if rotation == 90:
        return y, height - x
    if rotation == 180:
        return width - x, height - y
    if rotation == 270:
        return width - y, x
    return x, y


def point_to_screen(point: Point, scale: float, rotation: int, page_size: Optional[Size] = None) -> Point:
    """ページ固有座標の点を画面座標に変換する。"""
    _validate(scale, rotation)
    width, height = _scaled_extent(page_size, scale)
    x, y = _rotate_point(point.x * scale, point.y * scale, rotation, width, height)
    return Point(x, y)


def to_screen(rect: Rect, scale: float, rotation: int, page_size: Optional[Size] = None) -> Rect:
    """ページ固有座標の矩形を画面座標の矩形に変換する。

    Args:
        rect (Rect): ページ固有座標の矩形。
        scale (float): 拡大率。
        rotation (int): 回転角度（0, 90, 180, 270）。
        page_size (Optional[Size]): ページ固有サイズ。指定時は回転後に正の象限へ平行移動する。

    Returns:
        Rect: 画面座標の矩形。90°/270°では幅と高さが入れ替わる。
    """
    _validate(scale, rotation)
    width, height = _scaled_extent(page_size, scale)
    x1, y1 = _rotate_point(rect.x * scale, rect.y * scale, rotation, width, height)
    x2, y2 = _rotate_point(rect.right * scale, rect.bottom * scale, rotation, width, height)
    return Rect(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))


def to_page_space(point: Point, scale: float, rotation: int, page_size: Optional[Size] = None) -> Point:
    """画面座標の点をページ固有座標に戻す。to_screen の逆変換。"""
    _validate(scale, rotation)
    width, height = _scaled_extent(page_size, scale)
    x, y = _unrotate_point(point.x, point.y, rotation, width, height)
    return Point(x / scale, y / scale)


def rect_to_page_space(rect: Rect, scale: float, rotation: int, page_size: Optional[Size] = None) -> Rect:
    """画面座標の矩形（テキスト選択範囲など）をページ固有座標の矩形に戻す。"""
    first = to_page_space(Point(rect.x, rect.y), scale, rotation, page_size)
    second = to_page_space(Point(rect.right, rect.bottom), scale, rotation, page_size)
    return Rect(
        min(first.x, second.x),
        min(first.y, second.y),
        abs(second.x - first.x),
        abs(second.y - first.y),
    )
