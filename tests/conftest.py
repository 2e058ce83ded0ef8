import fitz  # PyMuPDF
import pytest

PAGE_TEXTS = [
    "Neural networks are computing systems inspired by the brain.",
    "Gradient descent is an optimization algorithm.",
    "Backpropagation computes gradients layer by layer.",
]


@pytest.fixture
def sample_pdf(tmp_path):
    """3ページのレター判PDFを作成してパスを返す。"""
    path = tmp_path / "lesson.pdf"
    doc = fitz.open()
    for text in PAGE_TEXTS:
        page = doc.new_page(width=612, height=792)
        page.insert_text((72, 100), text, fontsize=12)
    doc.save(str(path))
    doc.close()
    return str(path)
