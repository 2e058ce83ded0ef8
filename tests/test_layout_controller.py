import pytest

from models.view_models import ViewMode
from services.layout_controller import MAX_SCALE, MIN_SCALE, PageLayoutController


def single(total=5):
    return PageLayoutController(total_pages=total, view_mode=ViewMode.SINGLE)


def double(total=5):
    return PageLayoutController(total_pages=total, view_mode=ViewMode.DOUBLE)


def test_single_mode_bounds():
    controller = single(3)
    controller.prev_page()
    assert controller.current_page == 1
    controller.next_page()
    controller.next_page()
    assert controller.current_page == 3
    controller.next_page()
    assert controller.current_page == 3
    assert not controller.can_go_next()
    assert controller.can_go_prev()


def test_double_mode_steps_by_two():
    controller = double(5)
    pages = [controller.current_page]
    for _ in range(3):
        controller.next_page()
        pages.append(controller.current_page)
    assert pages == [1, 3, 5, 5]


def test_double_mode_even_total_stops_on_last_spread():
    controller = double(4)
    controller.next_page()
    assert controller.current_page == 3
    assert controller.visible_pages() == (3, 4)
    controller.next_page()
    assert controller.current_page == 3


@pytest.mark.parametrize("start,expected", [(5, 3), (3, 1), (1, 1)])
def test_double_mode_prev(start, expected):
    controller = double(6)
    controller.go_to_page(start)
    controller.prev_page()
    assert controller.current_page == expected


def test_go_to_page_clamps_and_aligns():
    controller = double(5)
    controller.go_to_page(4)
    assert controller.current_page == 3
    controller.go_to_page(99)
    assert controller.current_page == 5
    controller = single(5)
    controller.go_to_page(0)
    assert controller.current_page == 1
    controller.go_to_page(4)
    assert controller.current_page == 4


def test_zoom_clamps():
    controller = single()
    for _ in range(10):
        controller.zoom_in()
    assert controller.state.scale == MAX_SCALE
    for _ in range(20):
        controller.zoom_out()
    assert controller.state.scale == MIN_SCALE
    controller.reset_zoom()
    assert controller.state.scale == 1.0


def test_rotate_wraps():
    controller = single()
    seen = []
    for _ in range(5):
        controller.rotate()
        seen.append(controller.state.rotation)
    assert seen == [90, 180, 270, 0, 90]


def test_switch_to_double_on_even_page():
    controller = single(5)
    controller.go_to_page(4)
    controller.set_view_mode(ViewMode.DOUBLE)
    assert controller.state.view_mode == ViewMode.DOUBLE
    assert controller.current_page == 3


def test_switch_to_single_keeps_page():
    controller = double(5)
    controller.go_to_page(3)
    controller.set_view_mode(ViewMode.SINGLE)
    assert controller.current_page == 3
    assert controller.visible_pages() == (3,)


def test_visible_pages_and_label():
    controller = double(5)
    assert controller.visible_pages() == (1, 2)
    assert controller.page_label() == "1-2 / 5"
    controller.go_to_page(5)
    assert controller.visible_pages() == (5,)
    assert controller.page_label() == "5 / 5"


def test_navigation_without_document_is_noop():
    controller = double(0)
    controller.next_page()
    controller.prev_page()
    controller.go_to_page(3)
    assert controller.current_page == 1
    assert controller.visible_pages() == ()
    assert not controller.can_go_prev()


def test_listener_notified_on_change_only():
    controller = single()
    states = []
    controller.add_listener(states.append)
    controller.next_page()
    assert [s.current_page for s in states] == [2]
    controller.prev_page()
    controller.prev_page()
    assert [s.current_page for s in states] == [2, 1]


def test_set_total_pages_always_notifies():
    controller = single(5)
    controller.go_to_page(3)
    states = []
    controller.add_listener(states.append)
    controller.set_total_pages(5)
    controller.set_total_pages(5)
    assert len(states) == 2
    assert controller.current_page == 1


def test_state_is_replaced_not_mutated():
    controller = single()
    before = controller.state
    controller.zoom_in()
    assert before.scale == 1.0
    assert controller.state is not before


@pytest.mark.parametrize("total", [1, 2, 3, 4, 7, 10])
def test_double_mode_parity_and_bounds(total):
    controller = double(total)
    moves = [controller.next_page] * (total + 2) + [controller.prev_page, controller.next_page] * 3 \
        + [controller.prev_page] * (total + 2)
    for move in moves:
        move()
        assert controller.current_page % 2 == 1
        assert 1 <= controller.current_page <= total


@pytest.mark.parametrize("total", [1, 2, 5])
def test_single_mode_bounds_property(total):
    controller = single(total)
    for _ in range(total + 3):
        controller.next_page()
        assert controller.current_page <= total
    for _ in range(total + 3):
        controller.prev_page()
        assert controller.current_page >= 1
