import itertools

import pytest

from models.geometry_models import Point, Rect, Size
from utils import coordinate_utils

SCALES = [0.5, 0.75, 1.0, 1.25, 2.0, 3.0]
ROTATIONS = [0, 90, 180, 270]
PAGE_SIZE = Size(612.0, 792.0)


def _assert_rect_close(actual: Rect, expected: Rect, tol: float = 1e-6) -> None:
    assert actual.x == pytest.approx(expected.x, abs=tol)
    assert actual.y == pytest.approx(expected.y, abs=tol)
    assert actual.width == pytest.approx(expected.width, abs=tol)
    assert actual.height == pytest.approx(expected.height, abs=tol)


@pytest.mark.parametrize("scale,rotation,page_size", itertools.product(SCALES, ROTATIONS, [None, PAGE_SIZE]))
def test_rect_round_trip(scale, rotation, page_size):
    """画面座標へ変換して戻すと元の矩形に一致すること。"""
    rect = Rect(50.0, 120.0, 200.0, 20.0)
    screen = coordinate_utils.to_screen(rect, scale, rotation, page_size)
    back = coordinate_utils.rect_to_page_space(screen, scale, rotation, page_size)
    _assert_rect_close(back, rect)


@pytest.mark.parametrize("scale,rotation", itertools.product(SCALES, ROTATIONS))
def test_point_round_trip(scale, rotation):
    point = Point(33.3, 407.1)
    screen = coordinate_utils.point_to_screen(point, scale, rotation, PAGE_SIZE)
    back = coordinate_utils.to_page_space(screen, scale, rotation, PAGE_SIZE)
    assert back.x == pytest.approx(point.x, abs=1e-6)
    assert back.y == pytest.approx(point.y, abs=1e-6)


def test_scale_is_uniform():
    screen = coordinate_utils.to_screen(Rect(10, 20, 30, 40), 2.0, 0)
    assert screen == Rect(20, 40, 60, 80)


def test_quarter_turns_swap_width_and_height():
    rect = Rect(10, 20, 30, 40)
    for rotation in (90, 270):
        screen = coordinate_utils.to_screen(rect, 1.0, rotation, PAGE_SIZE)
        assert screen.width == pytest.approx(40)
        assert screen.height == pytest.approx(30)
    for rotation in (0, 180):
        screen = coordinate_utils.to_screen(rect, 1.0, rotation, PAGE_SIZE)
        assert screen.width == pytest.approx(30)
        assert screen.height == pytest.approx(40)


def test_rotation_with_page_size_stays_in_positive_quadrant():
    """ページサイズを指定した回転では、回転後のページ内に収まること。"""
    rect = Rect(0, 0, 612, 792)
    for rotation in ROTATIONS:
        screen = coordinate_utils.to_screen(rect, 1.5, rotation, PAGE_SIZE)
        viewport = coordinate_utils.rotated_size(PAGE_SIZE, 1.5, rotation)
        assert screen.x == pytest.approx(0)
        assert screen.y == pytest.approx(0)
        assert screen.width == pytest.approx(viewport.width)
        assert screen.height == pytest.approx(viewport.height)


def test_clockwise_rotation_of_top_left_corner():
    """時計回り90°では、ページ左上の点は回転後のページの右上に移る。"""
    screen = coordinate_utils.point_to_screen(Point(0, 0), 1.0, 90, PAGE_SIZE)
    assert screen == Point(792.0, 0.0)


def test_rotation_without_page_size_is_pure_rotation():
    screen = coordinate_utils.point_to_screen(Point(10, 20), 1.0, 180)
    assert screen == Point(-10.0, -20.0)


@pytest.mark.parametrize("rotation", [45, -90, 360])
def test_invalid_rotation_raises(rotation):
    with pytest.raises(ValueError):
        coordinate_utils.to_screen(Rect(0, 0, 1, 1), 1.0, rotation)


@pytest.mark.parametrize("scale", [0, -1.0])
def test_invalid_scale_raises(scale):
    with pytest.raises(ValueError):
        coordinate_utils.to_page_space(Point(0, 0), scale, 0)
