"""
アプリケーションのエントリーポイント。

このスクリプトは、設定とログ出力を初期化し、レッスンのレビューデータ（ハイライトと注釈）を
読み込んでから、メインウィンドウであるMainWindowを生成・表示して、イベントループを開始します。
保存済みのレビューデータがない場合は、同梱のサンプルデータ（data/sample_review.json）を使用します。
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from PyQt6.QtWidgets import QApplication

# このファイル(main.py)があるディレクトリを、モジュールの検索パスに追加します。
current_dir: str = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from config import AppConfig
from models.lesson_models import Lesson, LessonReview
from services.annotation_service import StudentIdentity
from services.storage_service import StorageService
from ui.handlers.annotation_handler import ROLE_STUDENT, ROLE_TEACHER
from ui.main_window import DEFAULT_STUDENT, MainWindow

SAMPLE_DATA_DIR: str = os.path.join(current_dir, "data")
SAMPLE_REVIEW_FILE: str = "sample_review.json"

logger = logging.getLogger(__name__)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="PDF教材にハイライトと注釈を付け、教師がまとめてレビューするビューア。")
    parser.add_argument("pdf", nargs="?", default="", help="開くPDFのパスまたはURL")
    parser.add_argument("--lesson", default="sample", help="レッスンID（review_<ID>.json を読み書きする）")
    parser.add_argument("--role", choices=[ROLE_TEACHER, ROLE_STUDENT], default=ROLE_TEACHER, help="表示モード")
    parser.add_argument("--student-id", default=DEFAULT_STUDENT.student_id, help="学生モードでの学生ID")
    parser.add_argument("--student-name", default=DEFAULT_STUDENT.student_name, help="学生モードでの表示名")
    # Qt固有の引数（-platform など）はQApplicationに任せる
    args, _ = parser.parse_known_args(argv)
    return args


def load_review(config: AppConfig, lesson_id: str) -> LessonReview:
    """保存済みのレビューデータ、なければサンプルデータ、それもなければ空のレビューを返す。"""
    review: Optional[LessonReview] = StorageService(config.data_dir).load_review(lesson_id)
    if review is not None:
        logger.info("保存済みのレビューデータを読み込みました: %s", lesson_id)
        return review

    review = StorageService(SAMPLE_DATA_DIR).load_review_file(SAMPLE_REVIEW_FILE)
    if review is not None and review.lesson.lesson_id == lesson_id:
        logger.info("サンプルデータを読み込みました: %s", SAMPLE_REVIEW_FILE)
        return review
    return LessonReview(Lesson(lesson_id=lesson_id, title=lesson_id))


def run() -> None:
    config = AppConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(sys.argv[1:])

    app: QApplication = QApplication(sys.argv)

    review = load_review(config, args.lesson)
    student = StudentIdentity(student_id=args.student_id, student_name=args.student_name)
    window: MainWindow = MainWindow(config, review, role=args.role, student=student)
    window.show()

    pdf_source = args.pdf or review.lesson.file_path
    if pdf_source:
        window.pdf_handler.load_pdf(pdf_source)

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
