from unittest import mock

import pytest

from models.errors import LoadError, RenderError
from models.geometry_models import Rect, Size
from services.renderer_service import FitzRenderer


@pytest.fixture
def renderer():
    return FitzRenderer()


@pytest.fixture
def document(renderer, sample_pdf):
    doc = renderer.load_document(sample_pdf)
    yield doc
    renderer.close(doc)


def test_load_document(document):
    assert document.page_count == 3
    assert document.page_size(1) == Size(612.0, 792.0)
    assert document.page_size(4) is None


def test_render_page_scale(renderer, document):
    bitmap = renderer.render_page(document, 1, 1.0, 0)
    assert bitmap.page_number == 1
    assert abs(bitmap.width - 612) <= 1
    assert abs(bitmap.height - 792) <= 1
    assert len(bitmap.samples) == bitmap.stride * bitmap.height

    zoomed = renderer.render_page(document, 1, 2.0, 0)
    assert abs(zoomed.width - 1224) <= 1


def test_render_page_rotated(renderer, document):
    bitmap = renderer.render_page(document, 2, 1.0, 90)
    assert abs(bitmap.width - 792) <= 1
    assert abs(bitmap.height - 612) <= 1


def test_render_page_out_of_range(renderer, document):
    with pytest.raises(RenderError) as excinfo:
        renderer.render_page(document, 4, 1.0, 0)
    assert excinfo.value.page_number == 4


def test_render_page_invalid_rotation(renderer, document):
    with pytest.raises(RenderError):
        renderer.render_page(document, 1, 1.0, 45)


def test_extract_text(renderer, document):
    assert "Gradient descent" in renderer.extract_text(document, 2)
    assert renderer.extract_text(document, 9) == ""


def test_extract_text_with_clip(renderer, document):
    clipped = renderer.extract_text(document, 1, clip=Rect(60.0, 80.0, 500.0, 30.0))
    assert "Neural networks" in clipped
    assert renderer.extract_text(document, 1, clip=Rect(60.0, 600.0, 100.0, 30.0)) == ""


def test_load_missing_file(renderer, tmp_path):
    with pytest.raises(LoadError):
        renderer.load_document(str(tmp_path / "missing.pdf"))


def test_load_corrupt_file(renderer, tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf document")
    with pytest.raises(LoadError):
        renderer.load_document(str(path))


def test_close_is_idempotent(renderer, sample_pdf):
    doc = renderer.load_document(sample_pdf)
    renderer.close(doc)
    renderer.close(doc)
    assert doc.handle.is_closed


def test_clipped_text_of_rendered_page_does_not_wait_for_lock(renderer, document):
    renderer.render_page(document, 1, 1.0, 0)
    lock = renderer._lock
    renderer._lock = mock.MagicMock()
    try:
        clipped = renderer.extract_text(document, 1, clip=Rect(60.0, 80.0, 500.0, 30.0))
        assert renderer.extract_text(document, 1, clip=Rect(60.0, 600.0, 100.0, 30.0)) == ""
    finally:
        renderer._lock.__enter__.assert_not_called()
        renderer._lock = lock
    assert clipped == "Neural networks are computing systems inspired by the brain."


def test_clipped_text_matches_locked_extraction(renderer, document):
    clip = Rect(60.0, 80.0, 200.0, 30.0)
    before = renderer.extract_text(document, 2, clip=clip)
    renderer.render_page(document, 2, 1.0, 0)
    after = renderer.extract_text(document, 2, clip=clip)
    assert "Gradient" in before
    assert "Gradient" in after


def test_close_drops_cached_words(renderer, sample_pdf):
    doc = renderer.load_document(sample_pdf)
    renderer.render_page(doc, 1, 1.0, 0)
    assert renderer._words
    renderer.close(doc)
    assert not renderer._words
