# config.py
"""アプリケーション設定。既定値を持つデータクラスと、環境変数（.envファイルを含む）による上書きを提供します。"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "LESSON_READER_"


@dataclass
class AppConfig:
    """
    アプリケーション全体の設定をカプセル化するデータクラス。
    """
    # 表示状態
    min_scale: float = 0.5
    max_scale: float = 3.0
    scale_step: float = 0.25

    # 集約
    group_prefix_length: int = 20
    overlap_tolerance: float = 10.0

    # ファイル受け入れ
    max_upload_mb: int = 10

    # 永続化と送信
    data_dir: str = "data"
    api_base_url: str = ""
    api_timeout: int = 15

    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'AppConfig':
        """環境変数（LESSON_READER_*）で既定値を上書きした設定を返す。

        .envファイルの値は、既に設定されている環境変数を上書きしません。

        Args:
            env_file (Optional[str]): 読み込む.envファイル。Noneの場合はプロジェクトから探索する。
        """
        load_dotenv(env_file)
        config = cls()
        config.data_dir = os.getenv(f"{ENV_PREFIX}DATA_DIR", config.data_dir)
        config.api_base_url = os.getenv(f"{ENV_PREFIX}API_URL", config.api_base_url)
        config.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", config.log_level).upper()
        max_upload = os.getenv(f"{ENV_PREFIX}MAX_UPLOAD_MB")
        if max_upload and max_upload.isdigit():
            config.max_upload_mb = int(max_upload)
        return config
