# services/document_service.py
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Optional, Tuple

from models.document_models import DocumentInfo
from models.errors import LoadError, ValidationError
from services.renderer_service import DocumentRenderer

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
DEFAULT_MAX_UPLOAD_MB = 10


@dataclass
class DocumentHandle:
    """取り込んだ文書の一時コピーを指すハンドル。不要になったら revoke() で解放する。

    Attributes:
        original_path (str): 取り込み元のファイルパス。
        path (str): 一時コピーのパス。
        revoked (bool): 解放済みかどうか。
    """
    original_path: str
    path: str
    revoked: bool = False

    def revoke(self) -> None:
        """一時コピーを削除する。2回目以降の呼び出しは何もしない。"""
        if self.revoked:
            return
        self.revoked = True
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        logger.debug("一時ファイルを解放しました: %s", self.path)


class DocumentIntakeService:
    """アップロードされたファイルの形式・サイズを検証し、一時ハンドルを作成するサービスクラス。"""

    def __init__(self, max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB, temp_dir: Optional[str] = None) -> None:
        """DocumentIntakeServiceのコンストラクタ。

        Args:
            max_upload_mb (int): 受け付ける最大ファイルサイズ（MB）。
            temp_dir (Optional[str]): 一時コピーの作成先。Noneの場合はOSの既定。
        """
        self.max_upload_mb = max_upload_mb
        self.temp_dir = temp_dir

    def validate(self, file_path: str) -> Optional[ValidationError]:
        """ファイルを検証する。問題がなければNoneを返す。"""
        if not os.path.isfile(file_path):
            return ValidationError('file', f"ファイルが見つかりません: {file_path}")
        if os.path.getsize(file_path) > self.max_upload_mb * 1024 * 1024:
            return ValidationError('file', f"ファイルサイズは{self.max_upload_mb}MB以下にしてください")
        if not file_path.lower().endswith('.pdf'):
            return ValidationError('file', "PDFファイルのみ対応しています")
        with open(file_path, 'rb') as f:
            if f.read(len(PDF_MAGIC)) != PDF_MAGIC:
                return ValidationError('file', "PDFファイルのみ対応しています")
        return None

    def create_handle(self, file_path: str) -> DocumentHandle:
        """検証済みのファイルを一時領域にコピーしてハンドルを返す。

        Raises:
            LoadError: 検証に失敗した場合、またはコピーできなかった場合。
        """
        error = self.validate(file_path)
        if error:
            raise LoadError(error.message)
        fd, temp_path = tempfile.mkstemp(suffix='.pdf', prefix='lesson_', dir=self.temp_dir)
        os.close(fd)
        try:
            shutil.copyfile(file_path, temp_path)
        except OSError as e:
            os.remove(temp_path)
            raise LoadError(f"ファイルを取り込めませんでした: {file_path}, {e}") from e
        return DocumentHandle(original_path=file_path, path=temp_path)


class DocumentSession:
    """
    閲覧中の文書のライフサイクルを管理するクラス。

    文書を切り替えると、前の文書の一時ハンドルを解放し、読み込み中だった要求への
    関心を取り消します（世代番号が一致しない読み込み結果は破棄されます）。
    """

    def __init__(self, renderer: DocumentRenderer, intake: Optional[DocumentIntakeService] = None) -> None:
        self.renderer = renderer
        self.intake = intake or DocumentIntakeService()
        self.document: Optional[DocumentInfo] = None
        self.handle: Optional[DocumentHandle] = None
        self._generation: int = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin_load(self, file_path: str) -> Tuple[int, str]:
        """文書の読み込みを開始する。

        ローカルファイルは先に検証し、検証に失敗した場合は前の文書をそのまま残します。
        検証を通ったら前の文書と一時ハンドルを解放してから、新しいハンドルを作成します。

        Returns:
            Tuple[int, str]: 読み込みの世代番号と、レンダラーに渡す読み込み元。

        Raises:
            LoadError: ファイルの検証または取り込みに失敗した場合。
        """
        is_url = file_path.startswith(("http://", "https://"))
        if not is_url:
            error = self.intake.validate(file_path)
            if error:
                raise LoadError(error.message)
        self._generation += 1
        self._release()
        if is_url:
            return self._generation, file_path
        self.handle = self.intake.create_handle(file_path)
        return self._generation, self.handle.path

    def load(self, source: str) -> DocumentInfo:
        """レンダラーで文書を読み込む。ワーカースレッドから呼ばれる。"""
        return self.renderer.load_document(source)

    def finish_load(self, generation: int, document: DocumentInfo) -> bool:
        """読み込み結果を反映する。

        Returns:
            bool: 反映した場合はTrue。より新しい読み込みが始まっていた場合は文書を閉じてFalse。
        """
        if generation != self._generation:
            logger.info("取り消された読み込み結果を破棄しました: %s", document.source)
            self.renderer.close(document)
            return False
        self.document = document
        return True

    def open(self, file_path: str) -> DocumentInfo:
        """文書を同期的に開く。"""
        generation, source = self.begin_load(file_path)
        document = self.load(source)
        self.finish_load(generation, document)
        return document

    def cancel(self) -> None:
        """読み込み中の要求を取り消す。"""
        self._generation += 1

    def close(self) -> None:
        """現在の文書と一時ハンドルを解放する。"""
        self._generation += 1
        self._release()

    def _release(self) -> None:
        if self.document is not None:
            self.renderer.close(self.document)
            self.document = None
        if self.handle is not None:
            self.handle.revoke()
            self.handle = None
