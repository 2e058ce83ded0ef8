# models/document_models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.geometry_models import Size


@dataclass(frozen=True)
class DocumentInfo:
    """読み込み済みのPDF文書を表現するデータモデル。読み込み後は変更されない。

    Attributes:
        source (str): 読み込み元（ファイルパスまたはURL）。
        page_count (int): 総ページ数。
        handle (Any): レンダラー固有の文書ハンドル（fitz.Documentなど）。
        page_sizes (List[Size]): 各ページの固有サイズ（拡大率1.0、回転0°）。
        metadata (Optional[Dict[str, Any]]): PDFのメタデータ（作者、タイトルなど）。
    """
    source: str
    page_count: int
    handle: Any = field(default=None, compare=False, repr=False)
    page_sizes: List[Size] = field(default_factory=list, compare=False)
    metadata: Optional[Dict[str, Any]] = field(default=None, compare=False)

    def page_size(self, page_number: int) -> Optional[Size]:
        """ページの固有サイズを返す。範囲外の場合はNone。"""
        if 1 <= page_number <= len(self.page_sizes):
            return self.page_sizes[page_number - 1]
        return None
