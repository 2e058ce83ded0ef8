# utils/api_utils.py
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class APIUtils:
    """API連携に関する共通処理を提供するユーティリティクラス。"""

    @staticmethod
    def make_api_request(
        url: str,
        method: str = "POST",
        data: Optional[Dict[str, Any]] = None,
        timeout: int = 15
    ) -> Dict[str, Any]:
        """指定されたURLにAPIリクエストを送信し、JSONレスポンスを返す。

        Args:
            url (str): リクエストを送信するAPIエンドポイントのURL。
            method (str): HTTPメソッド（例: "GET", "POST", "PUT"）。
            data (Optional[Dict[str, Any]]): リクエストボディとして送信するデータ（JSON）。
            timeout (int): タイムアウト秒数。

        Returns:
            Dict[str, Any]: APIからのJSONレスポンス。本文が空の場合は空の辞書。

        Raises:
            requests.exceptions.RequestException: ネットワークエラーやHTTPエラーステータスの場合。
        """
        try:
            response = requests.request(method, url, json=data, timeout=timeout)
            response.raise_for_status()  # 2xx以外のステータスコードで例外を発生させる
        except requests.exceptions.RequestException as e:
            logger.warning("API request to %s failed: %s", url, e)
            raise
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def handle_api_response(response_json: Dict[str, Any]) -> Any:
        """APIレスポンスのJSONを解釈し、data 部分を取り出す。

        Raises:
            ValueError: レスポンスにエラーが含まれている場合。
        """
        if response_json.get("error"):
            raise ValueError(f"API Error: {response_json['error']}")
        return response_json.get("data")
