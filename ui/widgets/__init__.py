from .pdf_display import OverlayStyle, PDFDisplayLabel
from .annotation_panel import AnnotationPanel
from .student_panel import StudentPanel

__all__ = [
    "OverlayStyle",
    "PDFDisplayLabel",
    "AnnotationPanel",
    "StudentPanel",
]
