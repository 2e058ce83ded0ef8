# services/annotation_service.py
import datetime
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from models.errors import ValidationError
from models.geometry_models import Rect, Size
from models.highlight_models import (DEFAULT_HIGHLIGHT_COLOR, DEFAULT_HIGHLIGHT_OPACITY,
                                     Annotation, Highlight)
from models.view_models import ViewState
from services.highlight_store import HighlightStore
from utils import coordinate_utils

logger = logging.getLogger(__name__)

AnnotationCallback = Callable[[Highlight, str], None]

_sequence = itertools.count()


def make_time_id(prefix: str = "") -> str:
    """時刻ベースのIDを生成する。同一ミリ秒内でも重複しないよう連番を付ける。"""
    return f"{prefix}{int(time.time() * 1000)}-{next(_sequence)}"


@dataclass
class StudentIdentity:
    """現在操作している学生。"""
    student_id: str
    student_name: str
    color: str = DEFAULT_HIGHLIGHT_COLOR
    opacity: float = DEFAULT_HIGHLIGHT_OPACITY


class AnnotationService:
    """
    学生のテキスト選択からハイライトを作成し、注釈の提出と教師のフィードバックを扱うサービスクラス。

    入力の検証エラーは例外ではなく ValidationError の値として返します。
    注釈の提出ごとに on_annotation_create コールバックを1回だけ呼び出し、
    再送や永続化は行いません（配送の保証はコールバック側の責務です）。
    """

    def __init__(self, store: HighlightStore, on_annotation_create: Optional[AnnotationCallback] = None) -> None:
        """AnnotationServiceのコンストラクタ。

        Args:
            store (HighlightStore): ハイライトと注釈の登録先。
            on_annotation_create (Optional[AnnotationCallback]): 注釈提出時に呼び出すコールバック。
        """
        self.store = store
        self.on_annotation_create = on_annotation_create

    def create_highlight(
        self,
        student: StudentIdentity,
        page_number: int,
        text: str,
        screen_rect: Rect,
        view_state: ViewState,
        page_size: Optional[Size] = None
    ) -> Union[Highlight, ValidationError]:
        """画面上の選択範囲からハイライトを作成してストアに登録する。

        選択範囲はページ固有座標に変換して保存されるため、その後のズームや回転の影響を受けません。

        Args:
            student (StudentIdentity): 選択した学生。
            page_number (int): 選択があったページ番号。
            text (str): 選択されたテキスト。
            screen_rect (Rect): ページ表示領域に対する選択範囲（画面座標）。
            view_state (ViewState): 選択時の表示状態。
            page_size (Optional[Size]): ページ固有サイズ。

        Returns:
            Union[Highlight, ValidationError]: 作成したハイライト、または検証エラー。
        """
        if screen_rect.is_empty():
            return ValidationError('selection', "選択範囲が空です")
        if not text.strip():
            return ValidationError('selection', "テキストが選択されていません")

        rect = coordinate_utils.rect_to_page_space(screen_rect, view_state.scale, view_state.rotation, page_size)
        highlight = Highlight(
            id=make_time_id(),
            page_number=page_number,
            text=text,
            rect=rect,
            student_id=student.student_id,
            student_name=student.student_name,
            color=student.color,
            opacity=student.opacity,
        )
        self.store.add(highlight)
        logger.info("ハイライトを作成しました: page=%d student=%s", page_number, student.student_id)
        return highlight

    def submit_annotation(self, highlight: Highlight, text: str, student: StudentIdentity) -> Union[Annotation, ValidationError]:
        """ハイライトに注釈を提出する。

        Returns:
            Union[Annotation, ValidationError]: 登録した注釈、または本文が空の場合の検証エラー。
        """
        if not text.strip():
            return ValidationError('text', "注釈を入力してください")

        annotation = Annotation(
            id=make_time_id("a"),
            highlight_id=highlight.id,
            student_id=student.student_id,
            student_name=student.student_name,
            text=text,
            created_at=datetime.datetime.now(),
        )
        self.store.add_annotation(annotation)
        if self.on_annotation_create:
            self.on_annotation_create(highlight, text)
        return annotation

    def leave_feedback(self, annotation_id: str, feedback: str) -> Union[Annotation, ValidationError]:
        """注釈に教師のフィードバックを残す。既存のフィードバックは上書きされる。"""
        if not feedback.strip():
            return ValidationError('feedback', "フィードバックを入力してください")
        return self.store.set_teacher_feedback(annotation_id, feedback)

    def leave_feedback_to_group(self, annotation_ids: Iterable[str], feedback: str) -> Union[int, ValidationError]:
        """複数の注釈（レビューグループ全体など）に同じフィードバックを残し、件数を返す。"""
        if not feedback.strip():
            return ValidationError('feedback', "フィードバックを入力してください")
        count = 0
        for annotation_id in annotation_ids:
            self.store.set_teacher_feedback(annotation_id, feedback)
            count += 1
        return count

    def delete_highlight(self, highlight_id: str) -> int:
        """ハイライトを削除し、連鎖削除された注釈の件数を返す。"""
        return len(self.store.remove(highlight_id))
