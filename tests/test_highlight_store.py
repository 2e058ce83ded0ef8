from datetime import datetime

import pytest

from models.errors import DuplicateKeyError, OrphanAnnotationError
from models.geometry_models import Rect
from models.highlight_models import Annotation, Highlight
from services.highlight_store import HighlightStore


def make_highlight(hid, page=1, student="s1", text="some text", x=100.0, y=150.0):
    return Highlight(
        id=hid, page_number=page, text=text, rect=Rect(x, y, 200.0, 20.0),
        student_id=student, student_name=f"Student {student}"
    )


def make_annotation(aid, hid, student="s1", text="note"):
    return Annotation(
        id=aid, highlight_id=hid, student_id=student, student_name=f"Student {student}",
        text=text, created_at=datetime(2024, 1, 20, 10, 30)
    )


@pytest.fixture
def store():
    s = HighlightStore()
    s.add(make_highlight("h1", page=1, student="s1"))
    s.add(make_highlight("h2", page=2, student="s2"))
    s.add(make_highlight("h3", page=1, student="s2"))
    s.add_annotation(make_annotation("a1", "h1", "s1"))
    s.add_annotation(make_annotation("a2", "h1", "s2"))
    s.add_annotation(make_annotation("a3", "h2", "s2"))
    return s


def test_indices_keep_insertion_order(store):
    assert [h.id for h in store.by_page(1)] == ["h1", "h3"]
    assert [h.id for h in store.by_page(2)] == ["h2"]
    assert [h.id for h in store.by_student("s2")] == ["h2", "h3"]
    assert store.pages() == [1, 2]
    assert store.students() == ["s1", "s2"]
    assert [a.id for a in store.annotations_of("h1")] == ["a1", "a2"]
    assert [a.id for a in store.annotations_by_student("s2")] == ["a2", "a3"]


def test_duplicate_highlight_leaves_existing_record(store):
    with pytest.raises(DuplicateKeyError):
        store.add(make_highlight("h1", page=5, student="s9", text="other"))
    existing = store.get("h1")
    assert existing.page_number == 1
    assert existing.text == "some text"
    assert store.by_page(5) == []
    assert len(store) == 3


def test_duplicate_annotation_rejected(store):
    with pytest.raises(DuplicateKeyError):
        store.add_annotation(make_annotation("a1", "h2"))
    assert store.get_annotation("a1").highlight_id == "h1"


def test_orphan_annotation_rejected(store):
    with pytest.raises(OrphanAnnotationError):
        store.add_annotation(make_annotation("a9", "missing"))
    assert store.get_annotation("a9") is None


def test_remove_cascades_annotations(store):
    removed = store.remove("h1")
    assert sorted(a.id for a in removed) == ["a1", "a2"]
    assert "h1" not in store
    assert store.annotations_of("h1") == []
    assert store.get_annotation("a1") is None
    assert [a.id for a in store.annotations_by_student("s2")] == ["a3"]
    assert [h.id for h in store.by_page(1)] == ["h3"]


def test_remove_last_highlight_drops_page_and_student(store):
    store.remove("h1")
    assert "s1" not in store.students()
    store.remove("h2")
    store.remove("h3")
    assert store.pages() == []
    assert store.students() == []
    assert store.annotations() == []


def test_remove_unknown_returns_empty(store):
    assert store.remove("nope") == []
    assert len(store) == 3


def test_annotations_of_unknown_highlight_is_empty(store):
    assert store.annotations_of("unknown") == []


def test_set_teacher_feedback(store):
    annotation = store.set_teacher_feedback("a1", "Good point")
    assert annotation.teacher_feedback == "Good point"
    store.set_teacher_feedback("a1", "Revised")
    assert store.get_annotation("a1").teacher_feedback == "Revised"


def test_set_teacher_feedback_unknown_raises(store):
    with pytest.raises(KeyError):
        store.set_teacher_feedback("missing", "text")


def test_initial_data_and_clear():
    s = HighlightStore(
        highlights=[make_highlight("h1"), make_highlight("h2", page=3)],
        annotations=[make_annotation("a1", "h2")]
    )
    assert len(s) == 2
    assert "h2" in s
    assert [a.id for a in s.annotations_of("h2")] == ["a1"]
    s.clear()
    assert len(s) == 0
    assert s.pages() == []
    assert s.annotations() == []
