# utils/pdf_utils.py
"""ページ画像のQImage変換や、ハイライトのPDFへの書き出しなど、PDF操作に関連するユーティリティ機能を提供します。"""

import logging
import os
from typing import Iterable

import fitz  # PyMuPDF
from PyQt6.QtGui import QColor, QImage

from models.highlight_models import Annotation, Highlight
from models.view_models import PageBitmap

logger = logging.getLogger(__name__)


class PDFUtils:
    """PDF処理に関する共通機能を提供するユーティリティクラス。"""

    @staticmethod
    def bitmap_to_qimage(bitmap: PageBitmap) -> QImage:
        """レンダラーが生成したページ画像をQImageオブジェクトに変換する。

        Args:
            bitmap (PageBitmap): 変換するページ画像。

        Returns:
            QImage: 変換されたQImageオブジェクト。
        """
        if bitmap.alpha:
            image_format = QImage.Format.Format_RGBA8888
        else:
            image_format = QImage.Format.Format_RGB888

        qimage = QImage(bitmap.samples, bitmap.width, bitmap.height, bitmap.stride, image_format)

        # samplesの寿命に依存しないよう、データをコピーして返す
        return qimage.copy()

    @staticmethod
    def highlight_color(color: str, opacity: float) -> QColor:
        """#rrggbb形式の色と不透明度からQColorを作成する。"""
        qcolor = QColor(color)
        qcolor.setAlphaF(max(0.0, min(1.0, opacity)))
        return qcolor

    @staticmethod
    def export_highlights_to_pdf(
        pdf_path: str,
        output_path: str,
        highlights: Iterable[Highlight],
        annotations: Iterable[Annotation] = ()
    ) -> int:
        """ハイライトをPDFの注釈として書き込んだコピーを保存する。

        ハイライトの矩形はページ固有座標なので、そのままPDFのページ座標として使えます。

        Args:
            pdf_path (str): 元のPDFファイルのパス。
            output_path (str): 保存先のパス。
            highlights (Iterable[Highlight]): 書き込むハイライト。
            annotations (Iterable[Annotation]): ハイライトに付いた注釈。注釈本文はPDF注釈の内容になる。

        Returns:
            int: 書き込んだハイライトの件数。

        Raises:
            FileNotFoundError: 指定されたPDFファイルが存在しない場合。
        """
        notes = {}
        for annotation in annotations:
            notes.setdefault(annotation.highlight_id, []).append(f"{annotation.student_name}: {annotation.text}")

        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDFファイルが見つかりません: {pdf_path}")
        doc = fitz.open(pdf_path)

        written = 0
        try:
            for highlight in highlights:
                # ページ番号は0から始まるため、モデルのページ番号から1を引く
                page_index = highlight.page_number - 1
                if not 0 <= page_index < doc.page_count:
                    continue
                page = doc.load_page(page_index)
                r = highlight.rect
                annot = page.add_highlight_annot(fitz.Rect(r.x, r.y, r.right, r.bottom))
                color = QColor(highlight.color)
                annot.set_colors(stroke=(color.redF(), color.greenF(), color.blueF()))
                annot.set_opacity(highlight.opacity)
                annot.set_info(title=highlight.student_name, content="\n".join(notes.get(highlight.id, [])))
                annot.update()
                written += 1
            doc.save(output_path)
        finally:
            doc.close()
        logger.info("%d件のハイライトをPDFに書き出しました: %s", written, output_path)
        return written
