# services/aggregator.py
from typing import Dict, Iterable, List

from models.geometry_models import Rect
from models.highlight_models import ReviewGroup, StudentSummary
from services.highlight_store import HighlightStore

GROUP_PREFIX_LENGTH = 20
OVERLAP_TOLERANCE = 10.0
UNKNOWN_STUDENT_NAME = "Unknown Student"


class Aggregator:
    """複数の学生のハイライトを、教師が確認する単位にまとめるクラス。

    同一箇所の判定は「テキスト先頭20文字の完全一致（大文字小文字を区別、前後の空白も含む）」
    という暫定的なヒューリスティックです。

    結果は問い合わせのたびにストアから再計算され、保持されません。
    """

    def __init__(
        self,
        store: HighlightStore,
        prefix_length: int = GROUP_PREFIX_LENGTH,
        overlap_tolerance: float = OVERLAP_TOLERANCE
    ) -> None:
        """Aggregatorのコンストラクタ。

        Args:
            store (HighlightStore): 集約対象のストア（参照のみ）。
            prefix_length (int): グループ化キーとするテキスト先頭の文字数。
            overlap_tolerance (float): 重なり判定に使う左上座標の許容差（ページ固有単位）。
        """
        self.store = store
        self.prefix_length = prefix_length
        self.overlap_tolerance = overlap_tolerance

    def group_key(self, text: str) -> str:
        return text[:self.prefix_length]

    def group_by_page(self, page_number: int) -> List[ReviewGroup]:
        """指定ページのハイライトをグループ化する。

        グループは最初のメンバーの出現順に並び、representative_text は
        最初に追加されたハイライトのテキストになります。

        Args:
            page_number (int): 対象ページ番号。

        Returns:
            List[ReviewGroup]: グループのリスト。ハイライトがないページでは空リスト。
        """
        groups: Dict[str, ReviewGroup] = {}
        for highlight in self.store.by_page(page_number):
            key = self.group_key(highlight.text)
            group = groups.get(key)
            if group is None:
                group = ReviewGroup(key=key, page_number=page_number, representative_text=highlight.text)
                groups[key] = group
            group.member_highlights.append(highlight)
            group.member_annotations.extend(self.store.annotations_of(highlight.id))
        return list(groups.values())

    def group_pages(self, pages: Iterable[int]) -> List[ReviewGroup]:
        """複数ページのグループをページ番号順に連結して返す。"""
        result: List[ReviewGroup] = []
        for page_number in sorted(set(pages)):
            result.extend(self.group_by_page(page_number))
        return result

    def overlap_count(self, page_number: int, rect: Rect) -> int:
        """rect の左上とほぼ同じ位置から始まるハイライトの数を返す。

        幾何学的な交差ではなく、左上座標が縦横とも許容差未満で一致するものを数えます。
        rect 自身がストアにある場合はそれも数に含まれます。
        """
        tolerance = self.overlap_tolerance
        return sum(
            1 for h in self.store.by_page(page_number)
            if abs(h.rect.x - rect.x) < tolerance and abs(h.rect.y - rect.y) < tolerance
        )

    def group_by_student(self) -> List[StudentSummary]:
        """学生ごとのハイライトと注釈をまとめる。学生は最初のハイライトの追加順に並ぶ。"""
        summaries: List[StudentSummary] = []
        for student_id in self.store.students():
            highlights = self.store.by_student(student_id)
            name = highlights[0].student_name if highlights and highlights[0].student_name else UNKNOWN_STUDENT_NAME
            summaries.append(StudentSummary(
                student_id=student_id,
                student_name=name,
                highlights=highlights,
                annotations=self.store.annotations_by_student(student_id),
            ))
        return summaries
