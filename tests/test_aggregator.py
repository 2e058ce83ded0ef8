from datetime import datetime

import pytest

from models.geometry_models import Rect
from models.highlight_models import Annotation, Highlight
from services.aggregator import UNKNOWN_STUDENT_NAME, Aggregator
from services.highlight_store import HighlightStore

FOX_1 = "The quick brown fox jumps over the lazy dog"
FOX_2 = "The quick brown fox ran away"
GRADIENT = "Gradient descent is an optimization algorithm"


def make_highlight(hid, text, page=1, student="s1", name=None, x=100.0, y=150.0):
    return Highlight(
        id=hid, page_number=page, text=text, rect=Rect(x, y, 200.0, 20.0),
        student_id=student, student_name=f"Student {student}" if name is None else name
    )


@pytest.fixture
def store():
    s = HighlightStore()
    s.add(make_highlight("1", FOX_1, student="s1"))
    s.add(make_highlight("2", GRADIENT, student="s2", y=300.0))
    s.add(make_highlight("3", FOX_2, student="s3", x=105.0, y=152.0))
    s.add_annotation(Annotation(
        id="a1", highlight_id="3", student_id="s3", student_name="Student s3",
        text="Why a fox?", created_at=datetime(2024, 1, 20, 10, 30)
    ))
    return s


def test_groups_by_text_prefix(store):
    groups = Aggregator(store).group_by_page(1)
    assert len(groups) == 2
    fox, gradient = groups
    assert fox.key == FOX_1[:20]
    assert [h.id for h in fox.member_highlights] == ["1", "3"]
    assert fox.representative_text == FOX_1
    assert fox.student_count == 2
    assert [a.id for a in fox.member_annotations] == ["a1"]
    assert [h.id for h in gradient.member_highlights] == ["2"]
    assert gradient.member_annotations == []


def test_grouping_is_deterministic(store):
    aggregator = Aggregator(store)
    first = [(g.key, [h.id for h in g.member_highlights]) for g in aggregator.group_by_page(1)]
    second = [(g.key, [h.id for h in g.member_highlights]) for g in aggregator.group_by_page(1)]
    assert first == second


def test_prefix_is_case_and_whitespace_sensitive():
    s = HighlightStore()
    s.add(make_highlight("1", "the quick brown fox jumps"))
    s.add(make_highlight("2", "The quick brown fox jumps"))
    s.add(make_highlight("3", " The quick brown fox jumps"))
    assert len(Aggregator(s).group_by_page(1)) == 3


def test_empty_page_has_no_groups(store):
    assert Aggregator(store).group_by_page(9) == []


def test_group_pages_sorted():
    s = HighlightStore()
    s.add(make_highlight("1", "page three text", page=3))
    s.add(make_highlight("2", "page one text", page=1))
    groups = Aggregator(s).group_pages([3, 1, 3])
    assert [g.page_number for g in groups] == [1, 3]


def test_overlap_count_uses_strict_tolerance(store):
    aggregator = Aggregator(store)
    # (100,150) と (105,152) は許容差内、(100,300) は範囲外
    assert aggregator.overlap_count(1, Rect(100.0, 150.0, 10.0, 10.0)) == 2
    assert aggregator.overlap_count(1, Rect(110.0, 150.0, 10.0, 10.0)) == 1
    assert aggregator.overlap_count(1, Rect(90.0, 140.0, 10.0, 10.0)) == 0
    assert aggregator.overlap_count(2, Rect(100.0, 150.0, 10.0, 10.0)) == 0


def test_group_by_student(store):
    summaries = Aggregator(store).group_by_student()
    assert [s.student_id for s in summaries] == ["s1", "s2", "s3"]
    s3 = summaries[2]
    assert s3.student_name == "Student s3"
    assert s3.highlight_count == 1
    assert s3.annotation_count == 1


def test_group_by_student_unknown_name():
    s = HighlightStore()
    s.add(make_highlight("1", "anonymous text", student="x", name=""))
    summaries = Aggregator(s).group_by_student()
    assert summaries[0].student_name == UNKNOWN_STUDENT_NAME
