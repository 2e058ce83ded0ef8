import subprocess
import sys
import os

from config import AppConfig
from main import load_review, parse_args
from services.highlight_store import HighlightStore
from services.storage_service import StorageService


def test_run_main_no_errors(tmp_path):
    """
    main.pyを短時間実行し、標準エラーに出力がないことを確認するテスト。
    """
    # main.pyへのパスを取得
    main_py_path = os.path.join(os.path.dirname(__file__), '..', 'main.py')

    # 環境変数を設定して、ヘッドレス環境でQtを実行できるようにする
    env = os.environ.copy()
    env['QT_QPA_PLATFORM'] = 'offscreen'
    # 通常のINFOログは標準エラーに出るため、警告以上のみにする
    env['LESSON_READER_LOG_LEVEL'] = 'WARNING'
    env['LESSON_READER_DATA_DIR'] = str(tmp_path)

    try:
        result = subprocess.run(
            [sys.executable, main_py_path],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,  # タイムアウト時に例外を発生させない
            env=env
        )
    except subprocess.TimeoutExpired as e:
        # タイムアウトは正常な動作（GUIが起動し、ユーザー入力を待っている状態）
        # なので、エラー出力がないかだけ確認する
        stderr_output = e.stderr.decode('utf-8', errors='ignore') if e.stderr else ""
        # Qtが生成する可能性のある無害なメッセージを除外
        filtered_stderr = [
            line for line in stderr_output.splitlines()
            if "QApplication" not in line and "qt." not in line.lower() and "This plugin does not support" not in line
        ]
        assert not filtered_stderr, f"main.py実行中に予期せぬエラーが発生しました (Timeout):\n{''.join(filtered_stderr)}"
        return

    # タイムアウトしなかった場合でも、標準エラーをチェック
    filtered_stderr = [
        line for line in result.stderr.splitlines()
        if "QApplication" not in line and "qt." not in line.lower() and "This plugin does not support" not in line
    ]
    assert not filtered_stderr, f"main.py実行中にエラーが発生しました:\n{''.join(filtered_stderr)}"


def test_parse_args():
    args = parse_args(["lesson.pdf", "--role", "student", "--student-id", "s9"])
    assert args.pdf == "lesson.pdf"
    assert args.role == "student"
    assert args.student_id == "s9"
    assert args.lesson == "sample"


def test_load_review_falls_back_to_sample(tmp_path):
    review = load_review(AppConfig(data_dir=str(tmp_path)), "sample")
    assert review.lesson.title == "Introduction to Neural Networks"
    assert len(review.highlights) == 6


def test_load_review_unknown_lesson_is_empty(tmp_path):
    review = load_review(AppConfig(data_dir=str(tmp_path)), "nn-999")
    assert review.lesson.lesson_id == "nn-999"
    assert review.highlights == []


def test_inconsistent_saved_review_falls_back_to_sample(tmp_path):
    storage = StorageService(str(tmp_path))
    sample = load_review(AppConfig(data_dir=str(tmp_path)), "sample")
    sample.highlights.append(sample.highlights[0])
    storage.save_review(sample)

    review = load_review(AppConfig(data_dir=str(tmp_path)), "sample")
    assert len(review.highlights) == 6
    assert len(HighlightStore(review.highlights, review.annotations)) == 6
