# models/errors.py
"""アプリケーション全体で使用する例外と検証エラーの定義。"""
from dataclasses import dataclass


class LessonReaderError(Exception):
    """このアプリケーションが送出するすべての例外の基底クラス。"""


class LoadError(LessonReaderError):
    """文書が読み込めない（存在しない、壊れている、形式が不正）場合に送出される。"""


class RenderError(LessonReaderError):
    """単一ページのラスタライズに失敗した場合に送出される。

    Attributes:
        page_number (int): 失敗したページ番号（1始まり）。
    """

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(message)
        self.page_number = page_number


class DuplicateKeyError(LessonReaderError, KeyError):
    """既に存在するIDでレコードを追加しようとした場合に送出される。"""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} のID '{key}' は既に登録されています。")
        self.kind = kind
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class OrphanAnnotationError(LessonReaderError, KeyError):
    """存在しないハイライトを参照する注釈を追加しようとした場合に送出される。"""

    def __init__(self, highlight_id: str) -> None:
        super().__init__(f"ハイライト '{highlight_id}' が存在しないため注釈を追加できません。")
        self.highlight_id = highlight_id

    def __str__(self) -> str:
        return self.args[0]


@dataclass(frozen=True)
class ValidationError:
    """ユーザー入力の検証結果。例外ではなく値として呼び出し元に返される。

    Attributes:
        field (str): 問題のある入力項目（例: 'selection', 'text'）。
        message (str): 画面に表示するメッセージ。
    """
    field: str
    message: str
