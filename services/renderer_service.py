# services/renderer_service.py
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

import fitz  # PyMuPDF
import requests

from models.document_models import DocumentInfo
from models.errors import LoadError, RenderError
from models.geometry_models import Rect, Size
from models.view_models import PageBitmap
from utils.coordinate_utils import VALID_ROTATIONS

logger = logging.getLogger(__name__)


class DocumentRenderer(ABC):
    """
    文書レンダラーの抽象基底クラス。

    コアはこのインターフェースだけを通じて文書を扱うため、実際のPDFレンダラーでも
    テスト用のスタブでも（処理時間を除き）同じように動作します。
    """

    @abstractmethod
    def load_document(self, source: str) -> DocumentInfo:
        """文書を読み込む。

        Raises:
            LoadError: 文書が存在しない、または壊れている場合。
        """

    @abstractmethod
    def render_page(self, document: DocumentInfo, page_number: int, scale: float, rotation: int) -> PageBitmap:
        """ページをラスタライズする。

        Raises:
            RenderError: ページのレンダリングに失敗した場合。
        """

    @abstractmethod
    def extract_text(self, document: DocumentInfo, page_number: int, clip: Optional[Rect] = None) -> str:
        """ページのプレーンテキストを抽出する。失敗時は例外を送出せず空文字列を返す。

        clip（ページ固有座標）を指定した場合は、その矩形内のテキストだけを返す。
        """

    def page_size(self, document: DocumentInfo, page_number: int) -> Optional[Size]:
        """ページの固有サイズ（拡大率1.0、回転0°）を返す。"""
        return document.page_size(page_number)

    def close(self, document: DocumentInfo) -> None:
        """文書ハンドルを解放する。"""

    @staticmethod
    def _check_page(document: DocumentInfo, page_number: int) -> None:
        if not 1 <= page_number <= document.page_count:
            raise RenderError(page_number, f"ページ番号が範囲外です: {page_number} / {document.page_count}")


class FitzRenderer(DocumentRenderer):
    """PyMuPDF（fitz）を使ったレンダラー。ローカルパスとhttp(s)のURLを受け付ける。"""

    def __init__(self, request_timeout: int = 15) -> None:
        self.request_timeout = request_timeout
        # fitz.Document はスレッドセーフではないため、ページへのアクセスを直列化する
        self._lock = threading.Lock()
        # 描画済みページの単語（x0, y0, x1, y1, 単語, ブロック番号, 行番号, 単語番号）
        self._words: Dict[Tuple[int, int], List[tuple]] = {}

    def load_document(self, source: str) -> DocumentInfo:
        try:
            if source.startswith(("http://", "https://")):
                response = requests.get(source, timeout=self.request_timeout)
                response.raise_for_status()
                doc = fitz.open(stream=response.content, filetype="pdf")
            else:
                if not os.path.exists(source):
                    raise LoadError(f"PDFファイルが見つかりません: {source}")
                doc = fitz.open(source)
        except LoadError:
            raise
        except requests.RequestException as e:
            raise LoadError(f"PDFファイルを取得できませんでした: {source}, {e}") from e
        except Exception as e:
            raise LoadError(f"PDFファイルを開けませんでした: {source}, {e}") from e

        if not doc.is_pdf or doc.page_count < 1:
            doc.close()
            raise LoadError(f"有効なPDF文書ではありません: {source}")

        page_sizes = [Size(page.rect.width, page.rect.height) for page in doc]
        logger.info("PDFを読み込みました: %s (%dページ)", source, doc.page_count)
        return DocumentInfo(
            source=source,
            page_count=doc.page_count,
            handle=doc,
            page_sizes=page_sizes,
            metadata=dict(doc.metadata or {}),
        )

    def render_page(self, document: DocumentInfo, page_number: int, scale: float, rotation: int) -> PageBitmap:
        self._check_page(document, page_number)
        if rotation not in VALID_ROTATIONS or scale <= 0:
            raise RenderError(page_number, f"不正な表示パラメータです: scale={scale}, rotation={rotation}")
        try:
            with self._lock:
                page = document.handle.load_page(page_number - 1)
                # 時計回りの回転。結果の画像は正の象限に平行移動される
                matrix = fitz.Matrix(scale, scale).prerotate(rotation)
                pix = page.get_pixmap(matrix=matrix, annots=False)
                key = (id(document.handle), page_number)
                if key not in self._words:
                    self._words[key] = page.get_text("words")
        except Exception as e:
            raise RenderError(page_number, f"ページ {page_number} の描画に失敗しました: {e}") from e
        return PageBitmap(
            page_number=page_number,
            width=pix.width,
            height=pix.height,
            stride=pix.stride,
            samples=bytes(pix.samples),
            alpha=bool(pix.alpha),
        )

    def extract_text(self, document: DocumentInfo, page_number: int, clip: Optional[Rect] = None) -> str:
        """ページのテキストを抽出する。

        描画済みのページで clip を指定した場合は、描画時に取得した単語から組み立てるため、
        別のページを描画中のワーカースレッドを待ちません。
        """
        try:
            self._check_page(document, page_number)
            words = self._words.get((id(document.handle), page_number))
            if clip is not None and words is not None:
                return self._words_in_clip(words, clip)
            with self._lock:
                page = document.handle.load_page(page_number - 1)
                if clip is None:
                    return page.get_text()
                return page.get_text("text", clip=fitz.Rect(clip.x, clip.y, clip.right, clip.bottom)).strip()
        except Exception:
            logger.warning("ページ %d のテキスト抽出に失敗しました", page_number, exc_info=True)
            return ""

    @staticmethod
    def _words_in_clip(words: List[tuple], clip: Rect) -> str:
        """矩形と重なる単語を、行ごとに空白で、行どうしを改行でつなぐ。"""
        lines: List[List[str]] = []
        current = None
        for x0, y0, x1, y1, word, block_no, line_no, _ in words:
            if x1 < clip.x or x0 > clip.right or y1 < clip.y or y0 > clip.bottom:
                continue
            if (block_no, line_no) != current:
                current = (block_no, line_no)
                lines.append([])
            lines[-1].append(word)
        return "\n".join(" ".join(line) for line in lines)

    def close(self, document: DocumentInfo) -> None:
        handle = document.handle
        with self._lock:
            for key in [k for k in self._words if k[0] == id(handle)]:
                del self._words[key]
            if handle is not None and not handle.is_closed:
                handle.close()


class StubRenderer(DocumentRenderer):
    """
    テスト用のレンダラー。ブラウザや実際のPDFなしで決定的に動作する。

    登録された文書ソースごとにページサイズとページテキストを保持し、
    白一色のRGBビットマップを返します。
    """

    def __init__(
        self,
        documents: Optional[Dict[str, Sequence[Size]]] = None,
        texts: Optional[Dict[str, List[str]]] = None,
        failing_pages: Sequence[int] = ()
    ) -> None:
        self.documents: Dict[str, List[Size]] = {k: list(v) for k, v in (documents or {}).items()}
        self.texts: Dict[str, List[str]] = dict(texts or {})
        self.failing_pages = set(failing_pages)
        self.render_calls: List[tuple] = []
        self.closed: List[str] = []

    def load_document(self, source: str) -> DocumentInfo:
        sizes = self.documents.get(source)
        if not sizes:
            raise LoadError(f"PDFファイルを開けませんでした: {source}")
        return DocumentInfo(source=source, page_count=len(sizes), handle=source, page_sizes=list(sizes))

    def render_page(self, document: DocumentInfo, page_number: int, scale: float, rotation: int) -> PageBitmap:
        self._check_page(document, page_number)
        self.render_calls.append((page_number, scale, rotation))
        if page_number in self.failing_pages:
            raise RenderError(page_number, f"ページ {page_number} の描画に失敗しました")
        size = document.page_sizes[page_number - 1]
        width, height = max(1, int(size.width * scale)), max(1, int(size.height * scale))
        if rotation in (90, 270):
            width, height = height, width
        stride = width * 3
        return PageBitmap(page_number, width, height, stride, b"\xff" * (stride * height))

    def extract_text(self, document: DocumentInfo, page_number: int, clip: Optional[Rect] = None) -> str:
        pages = self.texts.get(document.source, [])
        if 1 <= page_number <= len(pages):
            return pages[page_number - 1]
        return ""

    def close(self, document: DocumentInfo) -> None:
        self.closed.append(document.source)
