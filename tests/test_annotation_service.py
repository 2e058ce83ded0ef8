from unittest import mock

import pytest

from models.errors import ValidationError
from models.geometry_models import Rect, Size
from models.highlight_models import Annotation, Highlight
from models.view_models import ViewState
from services.annotation_service import AnnotationService, StudentIdentity, make_time_id
from services.highlight_store import HighlightStore

PAGE_SIZE = Size(612.0, 792.0)
ALICE = StudentIdentity("s1", "Alice Johnson")


@pytest.fixture
def store():
    return HighlightStore()


@pytest.fixture
def callback():
    return mock.Mock()


@pytest.fixture
def service(store, callback):
    return AnnotationService(store, on_annotation_create=callback)


def create(service, text="Neural networks are computing systems", rect=Rect(200.0, 300.0, 400.0, 40.0),
           state=ViewState(scale=2.0)):
    return service.create_highlight(ALICE, 1, text, rect, state, PAGE_SIZE)


def test_create_highlight_stores_page_space_rect(service, store):
    highlight = create(service)
    assert isinstance(highlight, Highlight)
    assert highlight.rect == Rect(100.0, 150.0, 200.0, 20.0)
    assert highlight.student_id == "s1"
    assert store.get(highlight.id) is highlight


def test_create_highlight_under_rotation_round_trips(service):
    state = ViewState(scale=1.0, rotation=90)
    # 90°回転でページ上の (100,150,200,20) は画面上 (622,100,20,200) になる
    highlight = create(service, rect=Rect(792.0 - 150.0 - 20.0, 100.0, 20.0, 200.0), state=state)
    assert highlight.rect.x == pytest.approx(100.0)
    assert highlight.rect.y == pytest.approx(150.0)
    assert highlight.rect.width == pytest.approx(200.0)
    assert highlight.rect.height == pytest.approx(20.0)


@pytest.mark.parametrize("rect", [Rect(10, 10, 0, 20), Rect(10, 10, 20, -1)])
def test_create_highlight_rejects_empty_selection(service, store, rect):
    result = create(service, rect=rect)
    assert isinstance(result, ValidationError)
    assert result.field == 'selection'
    assert len(store) == 0


def test_create_highlight_rejects_blank_text(service, store):
    result = create(service, text="   \n")
    assert isinstance(result, ValidationError)
    assert len(store) == 0


def test_submit_annotation_calls_callback_once(service, store, callback):
    highlight = create(service)
    annotation = service.submit_annotation(highlight, "I found this clear.", ALICE)
    assert isinstance(annotation, Annotation)
    assert store.annotations_of(highlight.id) == [annotation]
    callback.assert_called_once_with(highlight, "I found this clear.")


def test_submit_blank_annotation(service, store, callback):
    highlight = create(service)
    result = service.submit_annotation(highlight, "  ", ALICE)
    assert isinstance(result, ValidationError)
    assert result.field == 'text'
    assert store.annotations_of(highlight.id) == []
    callback.assert_not_called()


def test_submit_without_callback(store):
    service = AnnotationService(store)
    highlight = create(service)
    assert isinstance(service.submit_annotation(highlight, "note", ALICE), Annotation)


def test_leave_feedback(service):
    highlight = create(service)
    annotation = service.submit_annotation(highlight, "question", ALICE)
    updated = service.leave_feedback(annotation.id, "Good question")
    assert updated.teacher_feedback == "Good question"
    assert isinstance(service.leave_feedback(annotation.id, " "), ValidationError)
    assert annotation.teacher_feedback == "Good question"


def test_leave_feedback_to_group(service, store):
    highlight = create(service)
    ids = [service.submit_annotation(highlight, f"note {i}", ALICE).id for i in range(3)]
    assert service.leave_feedback_to_group(ids, "See chapter 2") == 3
    assert all(a.teacher_feedback == "See chapter 2" for a in store.annotations())
    assert isinstance(service.leave_feedback_to_group(ids, ""), ValidationError)


def test_delete_highlight_returns_cascade_count(service, store):
    highlight = create(service)
    service.submit_annotation(highlight, "one", ALICE)
    service.submit_annotation(highlight, "two", ALICE)
    assert service.delete_highlight(highlight.id) == 2
    assert len(store) == 0
    assert service.delete_highlight(highlight.id) == 0


def test_time_ids_are_unique():
    ids = {make_time_id() for _ in range(1000)}
    assert len(ids) == 1000
