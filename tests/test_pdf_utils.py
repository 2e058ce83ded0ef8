from datetime import datetime

import fitz  # PyMuPDF
import pytest

from models.geometry_models import Rect
from models.highlight_models import Annotation, Highlight
from models.view_models import PageBitmap
from utils.pdf_utils import PDFUtils


def test_export_highlights_to_pdf(tmp_path, sample_pdf):
    highlights = [
        Highlight("1", 1, "Neural networks", Rect(72, 88, 100, 16), "s1", "Alice Chen"),
        Highlight("2", 2, "Gradient descent", Rect(72, 88, 100, 16), "s2", "Bob Rodriguez", color="#4caf50"),
        Highlight("3", 9, "out of range", Rect(0, 0, 10, 10), "s3", "Carol"),
    ]
    annotations = [Annotation("a1", "1", "s1", "Alice Chen", "Key definition.", datetime(2024, 1, 20, 10, 30))]
    output = str(tmp_path / "annotated.pdf")

    assert PDFUtils.export_highlights_to_pdf(sample_pdf, output, highlights, annotations) == 2

    doc = fitz.open(output)
    try:
        annots = list(doc.load_page(0).annots())
        assert len(annots) == 1
        assert annots[0].info["title"] == "Alice Chen"
        assert "Key definition." in annots[0].info["content"]
        assert len(list(doc.load_page(1).annots())) == 1
        assert len(list(doc.load_page(2).annots())) == 0
    finally:
        doc.close()


def test_export_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        PDFUtils.export_highlights_to_pdf(str(tmp_path / "missing.pdf"), str(tmp_path / "out.pdf"), [])


def test_bitmap_to_qimage():
    bitmap = PageBitmap(page_number=1, width=4, height=2, stride=12, samples=b"\xff" * 24)
    image = PDFUtils.bitmap_to_qimage(bitmap)
    assert image.width() == 4
    assert image.height() == 2
    assert not image.isNull()


def test_highlight_color_clamps_opacity():
    assert PDFUtils.highlight_color("#ffeb3b", 1.5).alphaF() == pytest.approx(1.0)
    assert PDFUtils.highlight_color("#ffeb3b", 0.6).alphaF() == pytest.approx(0.6, abs=0.01)
