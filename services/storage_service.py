# services/storage_service.py
import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

from models.errors import LessonReaderError
from models.lesson_models import LessonReview
from services.highlight_store import HighlightStore

logger = logging.getLogger(__name__)


class StorageService:
    """ローカルファイルシステムへのデータ永続化を管理するサービスクラス。

    JSON形式のデータと、レッスンごとのレビューデータ（ハイライト・注釈）の保存・読み込み機能を提供します。
    """

    def __init__(self, base_path: str = "data") -> None:
        """StorageServiceのコンストラクタ。

        Args:
            base_path (str): データを保存する基準ディレクトリのパス。
                             存在しない場合は自動的に作成されます。
        """
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    def get_path(self, file_name: str) -> str:
        """ベースパスとファイル名を結合して完全なファイルパスを取得する。"""
        return os.path.join(self.base_path, file_name)

    def save_json(self, file_name: str, data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> bool:
        """データをJSONファイルとしてローカルに保存する。

        Args:
            file_name (str): 保存するファイル名。
            data (Union[Dict, List]): 保存するデータ（辞書または辞書のリスト）。

        Returns:
            bool: 保存に成功した場合はTrue。
        """
        file_path = self.get_path(file_name)
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=4)
        except (IOError, TypeError) as e:
            logger.error("ファイル保存中にエラーが発生しました: %s, %s", file_path, e)
            return False
        logger.info("データを %s に保存しました。", file_path)
        return True

    def load_json(self, file_name: str) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """ローカルのJSONファイルからデータを読み込む。

        Returns:
            Optional[Union[Dict, List]]: 読み込まれたデータ。ファイルが存在しないか壊れている場合はNone。
        """
        file_path = self.get_path(file_name)
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.error("ファイル読み込み中にエラーが発生しました: %s, %s", file_path, e)
            return None

    @staticmethod
    def review_file_name(lesson_id: str) -> str:
        return f"review_{lesson_id}.json"

    def save_review(self, review: LessonReview) -> bool:
        """レッスンのレビューデータを保存する。レッスンIDをファイル名として使用します。"""
        return self.save_json(self.review_file_name(review.lesson.lesson_id), review.to_dict())

    def load_review(self, lesson_id: str) -> Optional[LessonReview]:
        """レッスンのレビューデータを読み込む。見つからない場合はNone。"""
        return self.load_review_file(self.review_file_name(lesson_id))

    def load_review_file(self, file_name: str) -> Optional[LessonReview]:
        """任意のファイル名（サンプルデータなど）からレビューデータを読み込む。

        IDの重複や、存在しないハイライトを参照する注釈を含むデータは壊れているものとして扱い、Noneを返します。
        """
        data = self.load_json(file_name)
        if not data or not isinstance(data, dict):
            return None
        try:
            review = LessonReview.from_dict(data)
            HighlightStore(review.highlights, review.annotations)
        except LessonReaderError as e:
            logger.error("レビューデータの整合性が取れていません: %s, %s", file_name, e)
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.error("レビューデータのデシリアライズに失敗しました: %s, %s", file_name, e)
            return None
        return review
