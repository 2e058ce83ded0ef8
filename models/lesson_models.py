# models/lesson_models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.highlight_models import Annotation, Highlight


@dataclass
class Lesson:
    """教師が公開する読解レッスンを表現するデータモデル。

    Attributes:
        lesson_id (str): レッスンの一意なID。
        title (str): レッスンのタイトル。
        reading_guidance (str): 学生に示す読解の指示。
        help_text (str): 注釈入力欄に表示するヒント。
        file_path (str): 対象PDFのパス（またはURL）。
    """
    lesson_id: str
    title: str
    reading_guidance: str = ""
    help_text: str = ""
    file_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lesson':
        return cls(
            lesson_id=str(data['lesson_id']),
            title=data.get('title', ''),
            reading_guidance=data.get('reading_guidance', ''),
            help_text=data.get('help_text', ''),
            file_path=data.get('file_path', ''),
        )


@dataclass
class LessonReview:
    """レッスンと、それに対して集まったハイライト・注釈の保存単位。"""
    lesson: Lesson
    highlights: List[Highlight] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lesson': self.lesson.to_dict(),
            'highlights': [h.to_dict() for h in self.highlights],
            'annotations': [a.to_dict() for a in self.annotations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LessonReview':
        return cls(
            lesson=Lesson.from_dict(data['lesson']),
            highlights=[Highlight.from_dict(item) for item in data.get('highlights', [])],
            annotations=[Annotation.from_dict(item) for item in data.get('annotations', [])],
        )
