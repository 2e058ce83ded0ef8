# services/api_service.py
import logging
from typing import Any, Dict, Optional

import requests

from models.highlight_models import Highlight
from utils.api_utils import APIUtils

logger = logging.getLogger(__name__)


class APIService:
    """注釈をサーバーへ送信する外部API連携サービスクラス。

    AnnotationService の on_annotation_create コールバックとして submit_annotation を
    そのまま渡せます。送信は1回だけ行い、再送や失敗時の保存は行いません。
    """

    def __init__(self, api_base_url: str = "", lesson_id: str = "", timeout: int = 15) -> None:
        """APIServiceのコンストラクタ。

        Args:
            api_base_url (str): 接続先APIのベースURL。空の場合、送信は行われない。
            lesson_id (str): 送信する注釈が属するレッスンのID。
            timeout (int): リクエストのタイムアウト秒数。
        """
        self.api_config: Dict[str, Any] = {"base_url": api_base_url.rstrip("/"), "timeout": timeout}
        self.lesson_id = lesson_id
        self.last_error: Optional[str] = None

    def is_available(self) -> bool:
        """送信先が設定されているかどうかを返す。"""
        return bool(self.api_config.get("base_url"))

    def build_payload(self, highlight: Highlight, annotation_text: str) -> Dict[str, Any]:
        return {
            "lesson_id": self.lesson_id,
            "highlight": highlight.to_dict(),
            "annotation": annotation_text,
        }

    def submit_annotation(self, highlight: Highlight, annotation_text: str) -> bool:
        """注釈をAPI経由でサーバーに送信する。

        Returns:
            bool: 送信に成功した場合はTrue、未設定または失敗した場合はFalse。
        """
        if not self.is_available():
            logger.debug("API is not configured. Annotation for %s was not sent.", highlight.id)
            return False
        url = f"{self.api_config['base_url']}/annotations"
        try:
            response = APIUtils.make_api_request(
                url, "POST", self.build_payload(highlight, annotation_text), timeout=self.api_config["timeout"]
            )
            APIUtils.handle_api_response(response)
        except (requests.exceptions.RequestException, ValueError) as e:
            self.last_error = str(e)
            logger.error("注釈の送信に失敗しました: %s", e)
            return False
        self.last_error = None
        logger.info("注釈を送信しました: highlight=%s", highlight.id)
        return True
