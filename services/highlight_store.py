# services/highlight_store.py
import logging
from typing import Dict, Iterable, List, Optional

from models.errors import DuplicateKeyError, OrphanAnnotationError
from models.highlight_models import Annotation, Highlight

logger = logging.getLogger(__name__)


class HighlightStore:
    """ハイライトと注釈の正となるインメモリストア。

    ページ番号・学生ID・ハイライトIDごとのインデックスを追加・削除のたびに
    逐次更新するため、検索時に全件を走査することはありません。
    各インデックスは追加順を保持します（dictの挿入順）。

    ハイライトを削除すると、そのハイライトに付いた注釈も連鎖的に削除されます。
    """

    def __init__(
        self,
        highlights: Optional[Iterable[Highlight]] = None,
        annotations: Optional[Iterable[Annotation]] = None
    ) -> None:
        """HighlightStoreのコンストラクタ。

        Args:
            highlights (Optional[Iterable[Highlight]]): 初期データとして登録するハイライト。
            annotations (Optional[Iterable[Annotation]]): 初期データとして登録する注釈。
        """
        self._highlights: Dict[str, Highlight] = {}
        self._by_page: Dict[int, Dict[str, Highlight]] = {}
        self._by_student: Dict[str, Dict[str, Highlight]] = {}

        self._annotations: Dict[str, Annotation] = {}
        self._annotations_by_highlight: Dict[str, Dict[str, Annotation]] = {}
        self._annotations_by_student: Dict[str, Dict[str, Annotation]] = {}

        for highlight in highlights or []:
            self.add(highlight)
        for annotation in annotations or []:
            self.add_annotation(annotation)

    # --- ハイライト ---
    def add(self, highlight: Highlight) -> None:
        """ハイライトを登録する。

        Raises:
            DuplicateKeyError: 同じIDのハイライトが既に存在する場合。既存レコードは変更されない。
        """
        if highlight.id in self._highlights:
            raise DuplicateKeyError("Highlight", highlight.id)
        self._highlights[highlight.id] = highlight
        self._by_page.setdefault(highlight.page_number, {})[highlight.id] = highlight
        self._by_student.setdefault(highlight.student_id, {})[highlight.id] = highlight
        logger.debug("ハイライトを登録しました: %s (page=%d)", highlight.id, highlight.page_number)

    def remove(self, highlight_id: str) -> List[Annotation]:
        """ハイライトを削除し、付随する注釈も削除する。

        Args:
            highlight_id (str): 削除するハイライトのID。

        Returns:
            List[Annotation]: 連鎖的に削除された注釈。ハイライトが存在しない場合は空リスト。
        """
        highlight = self._highlights.pop(highlight_id, None)
        if highlight is None:
            return []

        self._discard(self._by_page, highlight.page_number, highlight_id)
        self._discard(self._by_student, highlight.student_id, highlight_id)

        removed = list(self._annotations_by_highlight.get(highlight_id, {}).values())
        for annotation in removed:
            self.remove_annotation(annotation.id)
        logger.debug("ハイライトを削除しました: %s（注釈 %d 件を連鎖削除）", highlight_id, len(removed))
        return removed

    def get(self, highlight_id: str) -> Optional[Highlight]:
        return self._highlights.get(highlight_id)

    def by_page(self, page_number: int) -> List[Highlight]:
        """指定ページのハイライトを追加順で返す。"""
        return list(self._by_page.get(page_number, {}).values())

    def by_student(self, student_id: str) -> List[Highlight]:
        """指定学生のハイライトを追加順で返す。"""
        return list(self._by_student.get(student_id, {}).values())

    def highlights(self) -> List[Highlight]:
        """すべてのハイライトを追加順で返す。"""
        return list(self._highlights.values())

    def pages(self) -> List[int]:
        """ハイライトが1件以上あるページ番号を昇順で返す。"""
        return sorted(self._by_page)

    def students(self) -> List[str]:
        """ハイライトを持つ学生IDを最初のハイライトの追加順で返す。"""
        return list(self._by_student)

    # --- 注釈 ---
    def add_annotation(self, annotation: Annotation) -> None:
        """注釈を登録する。

        Raises:
            DuplicateKeyError: 同じIDの注釈が既に存在する場合。
            OrphanAnnotationError: 参照先のハイライトが存在しない場合。
        """
        if annotation.id in self._annotations:
            raise DuplicateKeyError("Annotation", annotation.id)
        if annotation.highlight_id not in self._highlights:
            raise OrphanAnnotationError(annotation.highlight_id)
        self._annotations[annotation.id] = annotation
        self._annotations_by_highlight.setdefault(annotation.highlight_id, {})[annotation.id] = annotation
        self._annotations_by_student.setdefault(annotation.student_id, {})[annotation.id] = annotation

    def remove_annotation(self, annotation_id: str) -> Optional[Annotation]:
        """注釈を削除する。存在しない場合はNoneを返す。"""
        annotation = self._annotations.pop(annotation_id, None)
        if annotation is None:
            return None
        self._discard(self._annotations_by_highlight, annotation.highlight_id, annotation_id)
        self._discard(self._annotations_by_student, annotation.student_id, annotation_id)
        return annotation

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        return self._annotations.get(annotation_id)

    def annotations_of(self, highlight_id: str) -> List[Annotation]:
        """ハイライトに付いた注釈を追加順で返す。未知のIDの場合は空リスト。"""
        return list(self._annotations_by_highlight.get(highlight_id, {}).values())

    def annotations_by_student(self, student_id: str) -> List[Annotation]:
        """指定学生の注釈を追加順で返す。"""
        return list(self._annotations_by_student.get(student_id, {}).values())

    def annotations(self) -> List[Annotation]:
        return list(self._annotations.values())

    def set_teacher_feedback(self, annotation_id: str, feedback: str) -> Annotation:
        """注釈に教師のフィードバックを設定する。再提出時は上書きされる。

        Raises:
            KeyError: 注釈が存在しない場合。
        """
        annotation = self._annotations.get(annotation_id)
        if annotation is None:
            raise KeyError(annotation_id)
        annotation.teacher_feedback = feedback
        return annotation

    def clear(self) -> None:
        """すべてのハイライトと注釈を削除する。"""
        self._highlights.clear()
        self._by_page.clear()
        self._by_student.clear()
        self._annotations.clear()
        self._annotations_by_highlight.clear()
        self._annotations_by_student.clear()

    def __len__(self) -> int:
        return len(self._highlights)

    def __contains__(self, highlight_id: object) -> bool:
        return highlight_id in self._highlights

    @staticmethod
    def _discard(index: Dict, key, record_id: str) -> None:
        bucket = index.get(key)
        if bucket is None:
            return
        bucket.pop(record_id, None)
        if not bucket:
            del index[key]
