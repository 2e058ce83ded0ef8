# ui/main_window.py
import dataclasses
import logging
from typing import List, Optional

from PyQt6.QtWidgets import (
    QComboBox, QHBoxLayout, QLabel, QLineEdit, QMainWindow, QPushButton,
    QScrollArea, QSizePolicy, QSplitter, QTabWidget, QToolBar, QVBoxLayout, QWidget
)
from PyQt6.QtGui import QAction, QKeySequence, QShortcut
from PyQt6.QtCore import Qt

from config import AppConfig
from models.lesson_models import LessonReview
from models.view_models import DisplayOptions, ViewMode
from services.aggregator import Aggregator
from services.annotation_service import AnnotationService, StudentIdentity
from services.api_service import APIService
from services.document_service import DocumentIntakeService, DocumentSession
from services.highlight_store import HighlightStore
from services.layout_controller import PageLayoutController
from services.overlay_renderer import OverlayRenderer
from services.render_scheduler import RenderScheduler
from services.renderer_service import DocumentRenderer, FitzRenderer
from services.report_service import ReportService
from services.storage_service import StorageService
from ui.handlers.annotation_handler import ROLE_STUDENT, ROLE_TEACHER, AnnotationHandler
from ui.handlers.export_handler import ExportHandler
from ui.handlers.pdf_handler import PDFHandler
from ui.widgets import AnnotationPanel, PDFDisplayLabel, StudentPanel
from utils.submit_worker import AnnotationSubmitter

logger = logging.getLogger(__name__)

DEFAULT_STUDENT = StudentIdentity(student_id="current-user", student_name="Current User")


class MainWindow(QMainWindow):
    """
    レッスン閲覧アプリケーションのメインウィンドウ。

    ページ表示領域（単一/見開き）と、箇所別・学生別のレビューパネルで構成されます。
    サービス群はここで組み立てられ、各ハンドラから self.main 経由で参照されます。
    """
    def __init__(
        self,
        config: AppConfig,
        review: LessonReview,
        role: str = ROLE_TEACHER,
        student: Optional[StudentIdentity] = None,
        renderer: Optional[DocumentRenderer] = None
    ) -> None:
        super().__init__()
        self.config = config
        self.lesson = review.lesson
        self.role = role
        self.student = student or DEFAULT_STUDENT
        self.setWindowTitle(f"Lesson Reader - {self.lesson.title}")
        self.setGeometry(50, 50, 1400, 900)

        # --- サービスの組み立て ---
        self.store = HighlightStore(review.highlights, review.annotations)
        self.aggregator = Aggregator(self.store, config.group_prefix_length, config.overlap_tolerance)
        self.controller = PageLayoutController(
            0, ViewMode.DOUBLE, config.min_scale, config.max_scale, config.scale_step
        )
        self.overlay_renderer = OverlayRenderer(self.store, self.aggregator)
        self.renderer = renderer or FitzRenderer(config.api_timeout)
        self.session = DocumentSession(self.renderer, DocumentIntakeService(config.max_upload_mb))
        self.scheduler = RenderScheduler(self.controller, self.renderer)
        self.api_service = APIService(config.api_base_url, self.lesson.lesson_id, config.api_timeout)
        # 送信はワーカースレッドで行い、UIスレッドを待たせない
        self.submitter: Optional[AnnotationSubmitter] = None
        if self.api_service.is_available():
            self.submitter = AnnotationSubmitter(self.api_service, self)
        self.annotation_service = AnnotationService(self.store, self.submitter)
        self.storage_service = StorageService(config.data_dir)
        self.report_service = ReportService(self.aggregator)
        self.display_options = DisplayOptions()

        # --- UIの構築 ---
        self.page_labels: List[PDFDisplayLabel] = [PDFDisplayLabel(slot, self) for slot in range(2)]
        self.setup_toolbar()
        self.setCentralWidget(self.create_central_area())
        self.statusBar()

        # --- ハンドラの初期化 ---
        self.pdf_handler = PDFHandler(self)
        self.annotation_handler = AnnotationHandler(self)
        self.export_handler = ExportHandler(self)

        self.connect_signals()
        self.setup_shortcuts()
        self.set_role(role)
        self.update_navigation()
        self.refresh_panels()

    def createPopupMenu(self):
        return None

    def setup_toolbar(self) -> None:
        toolbar = QToolBar("メインツールバー")
        toolbar.setMovable(False)
        self.addToolBar(Qt.ToolBarArea.TopToolBarArea, toolbar)
        toolbar.setStyleSheet("""
            QToolBar { spacing: 4px; }
            QPushButton, QToolButton {
                background-color: #f0f0f0;
                border: 1px solid #c0c0c0;
                padding: 5px 10px;
                border-radius: 4px;
            }
            QPushButton:checked, QToolButton:checked {
                background-color: #cde;
                border: 1px solid #9ac;
            }
        """)

        self.open_pdf_button = QPushButton("PDFを開く")
        toolbar.addWidget(self.open_pdf_button)
        self.document_title_label = QLabel("PDFファイルを開いてください...")
        toolbar.addWidget(self.document_title_label)
        toolbar.addSeparator()

        self.prev_page_action = QAction("<", self)
        self.next_page_action = QAction(">", self)
        self.page_num_input = QLineEdit(); self.page_num_input.setFixedWidth(50)
        self.page_num_input.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.page_label = QLabel("- / -")
        toolbar.addAction(self.prev_page_action)
        toolbar.addWidget(self.page_num_input)
        toolbar.addWidget(self.page_label)
        toolbar.addAction(self.next_page_action)
        toolbar.addSeparator()

        self.zoom_out_action = QAction("縮小", self)
        self.zoom_in_action = QAction("拡大", self)
        self.reset_zoom_action = QAction("100%", self)
        self.zoom_label = QLabel("100%")
        self.rotate_action = QAction("回転", self)
        toolbar.addAction(self.zoom_out_action)
        toolbar.addWidget(self.zoom_label)
        toolbar.addAction(self.zoom_in_action)
        toolbar.addAction(self.reset_zoom_action)
        toolbar.addAction(self.rotate_action)
        toolbar.addSeparator()

        self.spread_toggle_action = QAction("見開き", self)
        self.spread_toggle_action.setCheckable(True)
        self.spread_toggle_action.setChecked(self.display_options.view_mode == ViewMode.DOUBLE)
        self.count_toggle_action = QAction("件数表示", self)
        self.count_toggle_action.setCheckable(True)
        self.count_toggle_action.setChecked(self.display_options.show_highlight_count)
        self.names_toggle_action = QAction("名前表示", self)
        self.names_toggle_action.setCheckable(True)
        self.names_toggle_action.setChecked(self.display_options.show_student_names)
        toolbar.addAction(self.spread_toggle_action)
        toolbar.addAction(self.count_toggle_action)
        toolbar.addAction(self.names_toggle_action)
        toolbar.addSeparator()

        self.word_save_button = QPushButton("Word保存")
        self.pdf_save_button = QPushButton("PDF保存")
        toolbar.addWidget(self.word_save_button)
        toolbar.addWidget(self.pdf_save_button)

        spacer = QWidget(); spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        toolbar.addWidget(spacer)

        self.role_combo = QComboBox()
        self.role_combo.addItem("教師", ROLE_TEACHER)
        self.role_combo.addItem("学生", ROLE_STUDENT)
        toolbar.addWidget(QLabel("表示："))
        toolbar.addWidget(self.role_combo)

    def create_central_area(self) -> QWidget:
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self.guidance_label = QLabel()
        self.guidance_label.setWordWrap(True)
        self.guidance_label.setStyleSheet(
            "QLabel { background-color: #e3f2fd; color: #0d47a1; padding: 6px; border-radius: 4px; }"
        )
        if self.lesson.reading_guidance:
            self.guidance_label.setText(f"読解の指示: {self.lesson.reading_guidance}")
        else:
            self.guidance_label.hide()
        layout.addWidget(self.guidance_label)

        pages_container = QWidget()
        pages_layout = QHBoxLayout(pages_container)
        pages_layout.setSpacing(20)
        pages_layout.addStretch()
        for label in self.page_labels:
            pages_layout.addWidget(label, 0, Qt.AlignmentFlag.AlignTop)
        pages_layout.addStretch()

        self.pdf_scroll_area = QScrollArea()
        self.pdf_scroll_area.setWidgetResizable(True)
        self.pdf_scroll_area.setStyleSheet("QScrollArea { background: #eeeeee; border: none; }")
        self.pdf_scroll_area.setWidget(pages_container)

        self.side_tabs = QTabWidget()
        self.annotation_panel = AnnotationPanel()
        self.student_panel = StudentPanel()
        self.side_tabs.addTab(self.annotation_panel, "箇所別")
        self.side_tabs.addTab(self.student_panel, "学生別")

        self.main_splitter = QSplitter(Qt.Orientation.Horizontal)
        self._configure_splitter(self.main_splitter)
        self.main_splitter.addWidget(self.pdf_scroll_area)
        self.main_splitter.addWidget(self.side_tabs)
        self.main_splitter.setStretchFactor(0, 3)
        self.main_splitter.setStretchFactor(1, 1)
        layout.addWidget(self.main_splitter)
        return central

    def _configure_splitter(self, splitter: QSplitter) -> None:
        splitter.setHandleWidth(8)
        splitter.setStyleSheet(
            """
            QSplitter::handle {
                background-color: #d0d8ec;
                border: 1px solid #7f91c8;
            }
            QSplitter::handle:hover {
                background-color: #b0bee6;
            }
            """
        )

    def connect_signals(self) -> None:
        self.open_pdf_button.clicked.connect(self.pdf_handler.open_pdf_file)
        self.prev_page_action.triggered.connect(self.pdf_handler.show_prev_page)
        self.next_page_action.triggered.connect(self.pdf_handler.show_next_page)
        self.page_num_input.returnPressed.connect(self.pdf_handler.goto_page_from_input)
        self.zoom_in_action.triggered.connect(self.pdf_handler.zoom_in)
        self.zoom_out_action.triggered.connect(self.pdf_handler.zoom_out)
        self.reset_zoom_action.triggered.connect(self.pdf_handler.reset_zoom)
        self.rotate_action.triggered.connect(self.pdf_handler.rotate)
        self.spread_toggle_action.toggled.connect(self.pdf_handler.toggle_spread_mode)
        self.count_toggle_action.toggled.connect(self.toggle_highlight_count)
        self.names_toggle_action.toggled.connect(self.toggle_student_names)
        self.word_save_button.clicked.connect(self.export_handler.save_report_as_word)
        self.pdf_save_button.clicked.connect(self.export_handler.save_annotated_pdf)
        self.role_combo.currentIndexChanged.connect(lambda _: self.set_role(self.role_combo.currentData()))
        if self.submitter is not None:
            self.submitter.failed.connect(lambda message: self.statusBar().showMessage(message, 5000))

    def setup_shortcuts(self) -> None:
        self.prev_shortcut = QShortcut(QKeySequence(Qt.Key.Key_Left), self)
        self.prev_shortcut.activated.connect(self.pdf_handler.show_prev_page)
        self.next_shortcut = QShortcut(QKeySequence(Qt.Key.Key_Right), self)
        self.next_shortcut.activated.connect(self.pdf_handler.show_next_page)
        self.zoom_in_shortcut = QShortcut(QKeySequence.StandardKey.ZoomIn, self)
        self.zoom_in_shortcut.activated.connect(self.pdf_handler.zoom_in)
        self.zoom_out_shortcut = QShortcut(QKeySequence.StandardKey.ZoomOut, self)
        self.zoom_out_shortcut.activated.connect(self.pdf_handler.zoom_out)
        self.open_shortcut = QShortcut(QKeySequence.StandardKey.Open, self)
        self.open_shortcut.activated.connect(self.pdf_handler.open_pdf_file)

    # --- 状態の反映 ---
    def set_role(self, role: str) -> None:
        """教師/学生の表示を切り替える。学生はハイライトを作成し、教師はフィードバックを返す。"""
        self.role = role
        index = self.role_combo.findData(role)
        if index >= 0 and index != self.role_combo.currentIndex():
            self.role_combo.blockSignals(True)
            self.role_combo.setCurrentIndex(index)
            self.role_combo.blockSignals(False)
        self.annotation_panel.set_feedback_enabled(role == ROLE_TEACHER)
        cursor = Qt.CursorShape.IBeamCursor if role == ROLE_STUDENT else Qt.CursorShape.PointingHandCursor
        for label in self.page_labels:
            label.setCursor(cursor)

    def update_navigation(self) -> None:
        """ページ表示・ボタンの有効状態・拡大率の表示を現在のViewStateに合わせる。"""
        controller = self.controller
        has_document = controller.total_pages > 0
        self.page_label.setText(controller.page_label() if has_document else "- / -")
        self.page_num_input.setText(str(controller.current_page) if has_document else "")
        self.prev_page_action.setEnabled(controller.can_go_prev())
        self.next_page_action.setEnabled(controller.can_go_next())
        self.zoom_label.setText(f"{round(controller.state.scale * 100)}%")

        self.spread_toggle_action.blockSignals(True)
        self.spread_toggle_action.setChecked(controller.state.view_mode == ViewMode.DOUBLE)
        self.spread_toggle_action.blockSignals(False)

    def refresh_panels(self) -> None:
        """レビューパネルを表示中のページ（文書がなければ全ページ）の内容で更新する。"""
        if self.session.document is not None:
            pages = self.controller.visible_pages()
        else:
            pages = self.store.pages()
        self.annotation_panel.set_groups(self.aggregator.group_pages(pages))
        self.student_panel.set_summaries(self.aggregator.group_by_student())

    def refresh_review(self) -> None:
        """ハイライトや注釈が変わったときに、表示を更新してレビューデータを保存する。"""
        self.pdf_handler.refresh_overlays()
        self.refresh_panels()
        self.save_review()

    def save_review(self) -> bool:
        review = LessonReview(self.lesson, self.store.highlights(), self.store.annotations())
        return self.storage_service.save_review(review)

    def toggle_highlight_count(self, checked: bool) -> None:
        self.display_options = dataclasses.replace(self.display_options, show_highlight_count=checked)
        self.pdf_handler.refresh_overlays()

    def toggle_student_names(self, checked: bool) -> None:
        self.display_options = dataclasses.replace(self.display_options, show_student_names=checked)
        self.pdf_handler.refresh_overlays()

    def closeEvent(self, event):
        self.pdf_handler.shutdown()
        if self.submitter is not None:
            self.submitter.wait_all()
        event.accept()
