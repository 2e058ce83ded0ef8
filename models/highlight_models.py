# models/highlight_models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.geometry_models import Rect

DEFAULT_HIGHLIGHT_COLOR = "#ffeb3b"
DEFAULT_HIGHLIGHT_OPACITY = 0.6


@dataclass(frozen=True)
class Highlight:
    """学生がテキスト選択から作成した単一のハイライト。

    作成後は変更されず、削除のみが可能です。

    Attributes:
        id (str): ハイライトの一意なID（時刻ベース）。
        page_number (int): ハイライトがあるページ番号（1始まり）。
        text (str): 選択されたテキスト。
        rect (Rect): ページ固有座標（拡大率1.0、回転0°）での矩形。
        student_id (str): 作成した学生のID。
        student_name (str): 作成した学生の表示名。
        color (str): 表示色（#rrggbb形式）。
        opacity (float): 表示時の不透明度（0.0〜1.0）。
    """
    id: str
    page_number: int
    text: str
    rect: Rect
    student_id: str
    student_name: str
    color: str = DEFAULT_HIGHLIGHT_COLOR
    opacity: float = DEFAULT_HIGHLIGHT_OPACITY

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'page_number': self.page_number,
            'text': self.text,
            'rect': self.rect.to_dict(),
            'student_id': self.student_id,
            'student_name': self.student_name,
            'color': self.color,
            'opacity': self.opacity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Highlight':
        return cls(
            id=str(data['id']),
            page_number=int(data['page_number']),
            text=data.get('text', ''),
            rect=Rect.from_dict(data.get('rect', {})),
            student_id=str(data['student_id']),
            student_name=data.get('student_name', ''),
            color=data.get('color', DEFAULT_HIGHLIGHT_COLOR),
            opacity=float(data.get('opacity', DEFAULT_HIGHLIGHT_OPACITY)),
        )


@dataclass
class Annotation:
    """ハイライトに対して学生が書いた注釈。

    teacher_feedback のみが作成後に（教師によって）変更されます。

    Attributes:
        id (str): 注釈の一意なID。
        highlight_id (str): 対象ハイライトのID（必須）。
        student_id (str): 作成した学生のID。
        student_name (str): 作成した学生の表示名。
        text (str): 注釈の本文。
        created_at (datetime): 作成日時。
        teacher_feedback (Optional[str]): 教師からのフィードバック。未記入の場合はNone。
    """
    id: str
    highlight_id: str
    student_id: str
    student_name: str
    text: str
    created_at: datetime
    teacher_feedback: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'highlight_id': self.highlight_id,
            'student_id': self.student_id,
            'student_name': self.student_name,
            'text': self.text,
            'created_at': self.created_at.isoformat(),
            'teacher_feedback': self.teacher_feedback,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Annotation':
        return cls(
            id=str(data['id']),
            highlight_id=str(data['highlight_id']),
            student_id=str(data['student_id']),
            student_name=data.get('student_name', ''),
            text=data.get('text', ''),
            created_at=datetime.fromisoformat(data['created_at']),
            teacher_feedback=data.get('teacher_feedback'),
        )


@dataclass
class ReviewGroup:
    """同じ箇所を指していると判定されたハイライトの集まり（派生データ、保存されない）。

    Attributes:
        key (str): グループ化キー（テキスト先頭の一定文字数）。
        page_number (int): グループが属するページ番号。
        representative_text (str): 最初に追加されたハイライトのテキスト。
        member_highlights (List[Highlight]): 追加順のメンバーハイライト。
        member_annotations (List[Annotation]): メンバーに付いた注釈。
    """
    key: str
    page_number: int
    representative_text: str
    member_highlights: List[Highlight] = field(default_factory=list)
    member_annotations: List[Annotation] = field(default_factory=list)

    @property
    def student_count(self) -> int:
        return len({h.student_id for h in self.member_highlights})


@dataclass
class StudentSummary:
    """学生ごとのハイライトと注釈のまとめ（派生データ）。"""
    student_id: str
    student_name: str
    highlights: List[Highlight] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)

    @property
    def highlight_count(self) -> int:
        return len(self.highlights)

    @property
    def annotation_count(self) -> int:
        return len(self.annotations)
