import logging
from typing import List, Optional

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QComboBox, QCheckBox, QGroupBox, QTabWidget, QListWidget, QListWidgetItem,
    QFormLayout, QLineEdit, QSystemTrayIcon, QMenu, QApplication, QMessageBox, QStyle, QFileDialog
)
from PyQt6.QtCore import Qt, QTimer, QSettings
from PyQt6.QtGui import QGuiApplication, QShortcut, QKeySequence

from .config import (DEFAULT_MODEL_NAME, DEFAULT_SERVER_URL, SETTINGS_APP, SETTINGS_ORG,
                     load_pipeline_config, load_regions, save_regions, scan_targets)
from .image_viewer import ImageViewer
from .logging_config import set_debug
from .models import DisplayRect, LanguageCode, TranslationMode, TranslationRegion
from .ocr_engine import RecognitionRunner, create_engine
from .overlay_ui import StatusPanel, TranslationOverlay
from .pipeline import TranslationPipeline
from .region_selector import RegionSelector
from .screen_capture import ScreenCapture
from .translation_client import TranslationServerClient
from .translation_service import TransformersTranslator
from .translation_workers import ModelWarmupWorker, PipelineWorker, TranslatorStatusWorker

logger = logging.getLogger(__name__)

TARGET_LANGUAGES = [
    ("en", "English"),
    ("ja", "Japanese"),
    ("ko", "Korean"),
    ("zh", "Chinese (Simplified)"),
    ("zh-Hant", "Chinese (Traditional)"),
    ("es", "Spanish"),
    ("fr", "French"),
    ("de", "German"),
]

BACKENDS = [("server", "Translation server"), ("local", "Local model (Transformers)")]
ENGINES = [("tesseract", "Tesseract"), ("easyocr", "EasyOCR")]

DARK_STYLE = """
QMainWindow, QWidget#CentralWidget { background-color: #121212; }
QGroupBox { color: #4CAF50; font-weight: bold; border: 1px solid #333; border-radius: 8px;
            margin-top: 1.5ex; padding: 10px; }
QGroupBox::title { subcontrol-origin: margin; padding: 0 5px; }
QLabel, QCheckBox { color: #e0e0e0; }
QPushButton { background-color: #333; color: white; border: 1px solid #444; border-radius: 4px; padding: 6px 12px; }
QPushButton:hover { background-color: #444; }
QPushButton#SelectBtn, QPushButton#ScanBtn { background-color: #2e7d32; font-weight: bold; }
QComboBox, QLineEdit, QListWidget { background-color: #1e1e1e; color: #ddd; border: 1px solid #333; border-radius: 4px; }
QTabWidget::pane { border: 1px solid #333; }
QTabBar::tab { background: #1e1e1e; color: #888; padding: 8px 16px; }
QTabBar::tab:selected { background: #333; color: white; }
"""

class MainWindow(QMainWindow):
    """Main application window"""

    def __init__(self):
        super().__init__()
        self.settings = QSettings(SETTINGS_ORG, SETTINGS_APP)
        self.local_translator: Optional[TransformersTranslator] = None
        self.translation_overlay = TranslationOverlay(self)
        self.status_panel = StatusPanel()
        self.region_selector = None
        self.image_viewer: Optional[ImageViewer] = None
        self.regions: List[TranslationRegion] = []
        self.worker: Optional[PipelineWorker] = None
        self.translator_status_worker = None
        self.model_warmup_worker = None
        self._pending_run = None

        # Debounce timer for translator status checks
        self.api_check_timer = QTimer()
        self.api_check_timer.setSingleShot(True)
        self.api_check_timer.setInterval(1000)
        self.api_check_timer.timeout.connect(self._do_api_status_check)

        self.setup_ui()
        self.setup_tray_icon()
        self.load_settings()
        self.connect_signals()

        self.check_api_status()

    def setup_ui(self):
        self.setWindowTitle("Image Translator")
        self.setMinimumSize(520, 480)
        self.resize(560, 520)

        self.setStyleSheet(DARK_STYLE)

        central_widget = QWidget()
        central_widget.setObjectName("CentralWidget")
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(20, 20, 20, 20)

        # Header
        header = QHBoxLayout()
        title_label = QLabel("Image Translator")
        title_label.setStyleSheet("font-size: 24px; font-weight: bold; color: #4CAF50;")
        header.addWidget(title_label)
        header.addStretch()

        self.header_status = QLabel("Ready")
        self.header_status.setStyleSheet("color: #888;")
        header.addWidget(self.header_status)
        layout.addLayout(header)

        self.tabs = QTabWidget()
        layout.addWidget(self.tabs)
        self.tabs.addTab(self._create_general_tab(), "General")
        self.tabs.addTab(self._create_regions_tab(), "Regions")
        self.tabs.addTab(self._create_settings_tab(), "Advanced")

        controls_layout = QHBoxLayout()

        self.select_button = QPushButton("Select (Ctrl+Shift+S)")
        self.select_button.setObjectName("SelectBtn")
        self.select_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.select_button.setMinimumHeight(40)

        self.scan_button = QPushButton("Scan (Ctrl+Shift+A)")
        self.scan_button.setObjectName("ScanBtn")
        self.scan_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.scan_button.setMinimumHeight(40)

        self.open_image_button = QPushButton("Open Image (Ctrl+O)")
        self.open_image_button.setMinimumHeight(40)

        self.clear_translations_button = QPushButton("Clear (Ctrl+L)")
        self.clear_translations_button.setMinimumHeight(40)

        controls_layout.addWidget(self.select_button)
        controls_layout.addWidget(self.scan_button)
        controls_layout.addWidget(self.open_image_button)
        controls_layout.addWidget(self.clear_translations_button)
        layout.addLayout(controls_layout)

    def setup_tray_icon(self):
        """Initialize system tray icon and menu"""
        self.tray_icon = QSystemTrayIcon(self)
        self.tray_icon.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon))

        tray_menu = QMenu()

        show_action = tray_menu.addAction("Show Window")
        show_action.triggered.connect(self.show_and_activate)

        tray_menu.addSeparator()

        select_action = tray_menu.addAction("Select Area")
        select_action.triggered.connect(self.start_selection)

        scan_action = tray_menu.addAction("Scan")
        scan_action.triggered.connect(self.start_scan)

        open_image_action = tray_menu.addAction("Open Image...")
        open_image_action.triggered.connect(self.open_image)

        clear_action = tray_menu.addAction("Clear Translations")
        clear_action.triggered.connect(self.clear_all_translations)

        tray_menu.addSeparator()

        quit_action = tray_menu.addAction("Quit")
        quit_action.triggered.connect(QApplication.instance().quit)

        self.tray_icon.setContextMenu(tray_menu)
        self.tray_icon.activated.connect(self._on_tray_activated)
        self.tray_icon.show()

    def _on_tray_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.show_and_activate()

    def show_and_activate(self):
        self.show()
        self.raise_()
        self.activateWindow()

    def _create_general_tab(self) -> QWidget:
        """Create general settings tab"""
        widget = QWidget()
        layout = QVBoxLayout(widget)

        lang_group = QGroupBox("Languages")
        lang_layout = QFormLayout(lang_group)

        self.ocr_lang_combo = QComboBox()
        for code in LanguageCode:
            self.ocr_lang_combo.addItem(code.label, code.value)

        self.target_lang_combo = QComboBox()
        for code, label in TARGET_LANGUAGES:
            self.target_lang_combo.addItem(label, code)

        self.quick_detect_checkbox = QCheckBox("Detect script before OCR (auto only)")
        self.quick_detect_checkbox.setChecked(True)

        lang_layout.addRow("Text Language:", self.ocr_lang_combo)
        lang_layout.addRow("Translate To:", self.target_lang_combo)
        lang_layout.addRow("", self.quick_detect_checkbox)
        layout.addWidget(lang_group)

        self.hide_overlay_checkbox = QCheckBox("Hide All Translations (Ctrl+H)")
        self.hide_overlay_checkbox.setToolTip("Temporarily hide translations from the screen")
        layout.addWidget(self.hide_overlay_checkbox)

        log_group = QGroupBox("Activity Log")
        log_layout = QVBoxLayout(log_group)
        self.log_list = QListWidget()
        self.log_list.setMinimumHeight(120)
        self.log_list.setStyleSheet("font-size: 11px;")
        log_layout.addWidget(self.log_list)
        layout.addWidget(log_group)

        layout.addStretch()
        return widget

    def _create_regions_tab(self) -> QWidget:
        """Create region management tab"""
        widget = QWidget()
        layout = QVBoxLayout(widget)

        self.regions_list = QListWidget()
        layout.addWidget(QLabel("Scan Regions (full screen when empty):"))
        layout.addWidget(self.regions_list)

        controls_layout = QHBoxLayout()
        self.add_region_button = QPushButton("Add Region")
        self.remove_region_button = QPushButton("Remove Region")
        controls_layout.addWidget(self.add_region_button)
        controls_layout.addWidget(self.remove_region_button)
        controls_layout.addStretch()
        layout.addLayout(controls_layout)

        return widget

    def _create_settings_tab(self) -> QWidget:
        """Create settings tab"""
        widget = QWidget()
        layout = QVBoxLayout(widget)

        translator_group = QGroupBox("Translator Settings")
        translator_layout = QFormLayout(translator_group)

        self.backend_combo = QComboBox()
        for code, label in BACKENDS:
            self.backend_combo.addItem(label, code)

        self.server_url_edit = QLineEdit(DEFAULT_SERVER_URL)

        self.model_combo = QComboBox()
        self.model_combo.setEditable(True)
        self.model_combo.addItem(DEFAULT_MODEL_NAME)
        self.model_combo.addItem("facebook/nllb-200-distilled-1.3B")
        self.model_combo.addItem("facebook/m2m100_418M")
        self.model_combo.setToolTip("NLLB or M2M100 model name from Hugging Face.")

        self.api_status_label = QLabel("Checking...")

        translator_layout.addRow("Backend:", self.backend_combo)
        translator_layout.addRow("Server URL:", self.server_url_edit)
        translator_layout.addRow("Local Model:", self.model_combo)
        translator_layout.addRow("Status:", self.api_status_label)
        layout.addWidget(translator_group)

        ocr_group = QGroupBox("Recognition")
        ocr_layout = QFormLayout(ocr_group)
        self.engine_combo = QComboBox()
        for code, label in ENGINES:
            self.engine_combo.addItem(label, code)
        ocr_layout.addRow("OCR Engine:", self.engine_combo)

        self.debug_mode_checkbox = QCheckBox("Enable Debug Mode")
        ocr_layout.addRow(self.debug_mode_checkbox)
        layout.addWidget(ocr_group)

        self.reset_button = QPushButton("Reset All Settings")
        self.reset_button.setStyleSheet("background-color: #f44336; color: white; font-weight: bold;")
        layout.addWidget(self.reset_button)

        layout.addStretch()
        return widget

    def connect_signals(self):
        """Connect UI signals"""
        self.select_button.clicked.connect(self.start_selection)
        self.scan_button.clicked.connect(self.start_scan)
        self.open_image_button.clicked.connect(self.open_image)
        self.clear_translations_button.clicked.connect(self.clear_all_translations)
        self.add_region_button.clicked.connect(self.add_region)
        self.remove_region_button.clicked.connect(self.remove_region)
        self.reset_button.clicked.connect(self.reset_settings)
        self.hide_overlay_checkbox.toggled.connect(self.toggle_overlay_visibility)
        self.regions_list.itemChanged.connect(self._on_region_item_changed)

        # Shortcuts
        self.select_shortcut = QShortcut(QKeySequence("Ctrl+Shift+S"), self)
        self.select_shortcut.activated.connect(self.start_selection)

        self.scan_shortcut = QShortcut(QKeySequence("Ctrl+Shift+A"), self)
        self.scan_shortcut.activated.connect(self.start_scan)

        self.open_image_shortcut = QShortcut(QKeySequence("Ctrl+O"), self)
        self.open_image_shortcut.activated.connect(self.open_image)

        self.clear_shortcut = QShortcut(QKeySequence("Ctrl+L"), self)
        self.clear_shortcut.activated.connect(self.clear_all_translations)

        self.hide_shortcut = QShortcut(QKeySequence("Ctrl+H"), self)
        self.hide_shortcut.activated.connect(
            lambda: self.hide_overlay_checkbox.setChecked(not self.hide_overlay_checkbox.isChecked()))

        for combo in (self.ocr_lang_combo, self.target_lang_combo, self.engine_combo):
            combo.currentIndexChanged.connect(self.save_settings)
        self.quick_detect_checkbox.toggled.connect(self.save_settings)
        self.backend_combo.currentIndexChanged.connect(self.check_api_status)
        self.server_url_edit.editingFinished.connect(self.check_api_status)
        self.model_combo.editTextChanged.connect(self.check_api_status)
        self.debug_mode_checkbox.toggled.connect(self._on_debug_toggled)

    def add_log(self, message):
        """Add message to activity log"""
        self.log_list.insertItem(0, message)
        if self.log_list.count() > 50:
            self.log_list.takeItem(self.log_list.count() - 1)

    def _on_debug_toggled(self, enabled: bool):
        set_debug(enabled)
        logger.info(f"Debug mode {'enabled' if enabled else 'disabled'}")
        self.save_settings()

    def _backend(self) -> str:
        return self.backend_combo.currentData() or "server"

    def _build_translator(self):
        """Translator for the selected backend; the local model is kept between runs"""
        if self._backend() == "local":
            model_name = self.model_combo.currentText() or DEFAULT_MODEL_NAME
            if self.local_translator is None:
                self.local_translator = TransformersTranslator(model_name)
            else:
                self.local_translator.model_name = model_name
            return self.local_translator
        return TranslationServerClient(self.server_url_edit.text().strip() or DEFAULT_SERVER_URL)

    def check_api_status(self):
        """Start the translator status check with debouncing"""
        self.save_settings()
        self.api_status_label.setText("Checking...")
        self.api_status_label.setStyleSheet("color: #888")
        self.api_check_timer.start()

    def _do_api_status_check(self):
        """Perform the actual translator status check in a background thread"""
        if self.translator_status_worker and self.translator_status_worker.isRunning():
            self.api_check_timer.start()
            return
        self.translator_status_worker = TranslatorStatusWorker(self._build_translator())
        self.translator_status_worker.status_changed.connect(self._on_api_status_changed)
        self.translator_status_worker.start()

    def _on_api_status_changed(self, is_available: bool, models: list):
        if is_available:
            self.api_status_label.setText("✓ Available")
            self.api_status_label.setStyleSheet("color: #4CAF50")
        else:
            self.api_status_label.setText("✗ Unavailable")
            self.api_status_label.setStyleSheet("color: #f44336")

    def toggle_overlay_visibility(self, hidden: bool):
        if hidden:
            self.translation_overlay.hide()
            self.header_status.setText("Translations Hidden")
        else:
            self.translation_overlay.show()
            self.header_status.setText("Ready")

    def _is_busy(self) -> bool:
        busy = (self.worker is not None and self.worker.isRunning()) or self._pending_run is not None
        if busy:
            self.status_panel.show_message("Translation already in progress")
            logger.info("Ignoring trigger: a translation is already running")
        return busy

    def start_selection(self):
        """Let the user drag a region and translate it as one unit"""
        if self._is_busy() or self.region_selector is not None:
            return
        self.region_selector = RegionSelector()
        self.region_selector.region_selected.connect(self._on_selection_made)
        self.region_selector.cancelled.connect(self._on_selection_cancelled)
        self.region_selector.show()

    def _on_selection_made(self, rect: DisplayRect):
        self.region_selector = None
        self._start_run(TranslationMode.REGION_SELECT, [rect])

    def _on_selection_cancelled(self):
        self.region_selector = None

    def start_scan(self):
        """Translate saved regions block by block, or the whole screen when none are saved"""
        if self._is_busy():
            return
        screen = QGuiApplication.primaryScreen().geometry()
        rects = scan_targets(self.regions, DisplayRect(screen.x(), screen.y(), screen.width(), screen.height()))
        if not rects:
            self.status_panel.show_message("Error: No enabled regions large enough to scan")
            return
        self._start_run(TranslationMode.SCAN, rects)

    def open_image(self):
        """Show an image file and translate it block by block on top of the viewer"""
        if self._is_busy():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "",
                                              "Images (*.png *.jpg *.jpeg *.bmp *.webp *.gif)")
        if not path:
            return
        viewer = ImageViewer(path)
        if viewer.is_null:
            self.status_panel.show_message(f"Error: Could not load image: {path}")
            return
        if self.image_viewer is not None:
            self.image_viewer.close()
        self.clear_all_translations()
        self.image_viewer = viewer
        viewer.closed.connect(self._on_image_viewer_closed)
        viewer.show()
        # Wait for the window manager to place the viewer before reading its position
        QTimer.singleShot(300, lambda: self._start_run(TranslationMode.SCAN, [viewer.display_rect()], image_path=path))

    def _on_image_viewer_closed(self):
        self.image_viewer = None
        self.clear_all_translations()

    def _start_run(self, mode: TranslationMode, rects: List[DisplayRect], image_path: Optional[str] = None):
        self._pending_run = (mode, rects, load_pipeline_config(self.settings), image_path)
        translator = self._build_translator()
        if isinstance(translator, TransformersTranslator) and translator.model is None:
            # Warm the model up before the first run
            self.status_panel.start_run("Loading translation model...")
            self.model_warmup_worker = ModelWarmupWorker(translator)
            self.model_warmup_worker.warmup_finished.connect(self._on_model_warmup_finished)
            self.model_warmup_worker.start()
            return
        self._launch_pending(translator)

    def _on_model_warmup_finished(self, ok: bool, error: str):
        if not ok:
            self._pending_run = None
            self.header_status.setText("Model load failed")
            self.status_panel.finish(f"Model load failed: {error}", success=False)
            return
        self._launch_pending(self.local_translator)

    def _launch_pending(self, translator):
        mode, rects, config, image_path = self._pending_run
        self._pending_run = None

        engine = create_engine(self.engine_combo.currentData() or "tesseract")
        pipeline = TranslationPipeline(ScreenCapture, RecognitionRunner(engine), translator)

        # Keep earlier translations out of the screenshot
        self.translation_overlay.hide()

        self.worker = PipelineWorker(pipeline, mode, rects, config, image_path)
        self.worker.progress.connect(self.status_panel.update_status)
        self.worker.outcome_ready.connect(self._on_outcome_ready)
        self.worker.run_finished.connect(self._on_run_finished)

        self.select_button.setEnabled(False)
        self.scan_button.setEnabled(False)
        self.open_image_button.setEnabled(False)
        self.header_status.setText("Translating...")
        self.status_panel.start_run("Starting...")
        logger.info(f"Starting {mode.value} run on {len(rects)} region(s), "
                    f"OCR language {config.ocr_language.value}, target {config.target_language}")
        self.worker.start()

    def _on_outcome_ready(self, outcome):
        if outcome.ok:
            self.translation_overlay.show_items(outcome.overlays)
        self.add_log(outcome.message)

    def _on_run_finished(self, outcomes: list):
        self.select_button.setEnabled(True)
        self.scan_button.setEnabled(True)
        self.open_image_button.setEnabled(True)
        if not self.hide_overlay_checkbox.isChecked():
            self.translation_overlay.show()

        failures = [o for o in outcomes if not o.ok]
        if not failures:
            message = outcomes[-1].message if len(outcomes) == 1 else f"Translated {len(outcomes)} regions!"
            self.status_panel.finish(message, success=True)
        elif len(failures) == len(outcomes):
            self.status_panel.finish(failures[0].message, success=False)
        else:
            self.status_panel.finish(f"{len(failures)} of {len(outcomes)} regions failed: {failures[0].message}",
                                     success=False)
        self.header_status.setText("Ready")

    def add_region(self):
        """Add new scan region"""
        if self.region_selector is not None:
            return
        self.region_selector = RegionSelector()
        self.region_selector.region_selected.connect(self.on_region_selected)
        self.region_selector.cancelled.connect(self._on_selection_cancelled)
        self.region_selector.show()

    def on_region_selected(self, rect: DisplayRect):
        """Handle new region selection"""
        self.region_selector = None
        region = TranslationRegion(
            int(rect.left), int(rect.top), int(rect.width), int(rect.height),
            f"Region {len(self.regions) + 1}"
        )
        self.regions.append(region)
        self.update_regions_list()
        self.save_settings()

    def remove_region(self):
        """Remove selected region"""
        current_row = self.regions_list.currentRow()
        if 0 <= current_row < len(self.regions):
            del self.regions[current_row]
            self.update_regions_list()
            self.save_settings()

    def _on_region_item_changed(self, item: QListWidgetItem):
        row = self.regions_list.row(item)
        if 0 <= row < len(self.regions):
            self.regions[row].enabled = item.checkState() == Qt.CheckState.Checked
            self.save_settings()

    def update_regions_list(self):
        """Update regions list display"""
        self.regions_list.blockSignals(True)
        self.regions_list.clear()
        for region in self.regions:
            item_text = f"{region.name} ({region.x}, {region.y}, {region.width}x{region.height})"
            item = QListWidgetItem(item_text)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(Qt.CheckState.Checked if region.enabled else Qt.CheckState.Unchecked)
            self.regions_list.addItem(item)
        self.regions_list.blockSignals(False)

    def clear_all_translations(self):
        self.translation_overlay.clear_translations()
        self.header_status.setText("Translations Cleared")

    def reset_settings(self):
        """Reset all settings to default values"""
        reply = QMessageBox.question(
            self, 'Reset Settings',
            "Are you sure you want to reset all settings to their default values?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )

        if reply == QMessageBox.StandardButton.Yes:
            self.settings.clear()
            self.load_settings()
            self.check_api_status()
            self.header_status.setText("Settings Reset")

    @staticmethod
    def _select_data(combo: QComboBox, value):
        index = combo.findData(value)
        combo.setCurrentIndex(index if index >= 0 else 0)

    def load_settings(self):
        """Load application settings into the widgets"""
        self._loading = True
        config = load_pipeline_config(self.settings)
        self._select_data(self.ocr_lang_combo, config.ocr_language.value)
        self._select_data(self.target_lang_combo, config.target_language)
        self.quick_detect_checkbox.setChecked(config.quick_detect)
        self._select_data(self.backend_combo, self.settings.value("translator_backend", "server"))
        self.server_url_edit.setText(self.settings.value("server_url", DEFAULT_SERVER_URL))
        self.model_combo.setCurrentText(self.settings.value("model_name", DEFAULT_MODEL_NAME))
        self._select_data(self.engine_combo, self.settings.value("ocr_engine", "tesseract"))
        debug = self.settings.value("debug_mode", "false") == "true"
        self.debug_mode_checkbox.setChecked(debug)
        set_debug(debug)

        self.regions = load_regions(self.settings)
        self.update_regions_list()
        self._loading = False

    def save_settings(self):
        """Save application settings"""
        if getattr(self, "_loading", False):
            return
        self.settings.setValue("ocr_language", self.ocr_lang_combo.currentData())
        self.settings.setValue("target_language", self.target_lang_combo.currentData())
        self.settings.setValue("quick_detect", "true" if self.quick_detect_checkbox.isChecked() else "false")
        self.settings.setValue("translator_backend", self._backend())
        self.settings.setValue("server_url", self.server_url_edit.text().strip())
        self.settings.setValue("model_name", self.model_combo.currentText())
        self.settings.setValue("ocr_engine", self.engine_combo.currentData())
        self.settings.setValue("debug_mode", "true" if self.debug_mode_checkbox.isChecked() else "false")
        save_regions(self.settings, self.regions)

    def closeEvent(self, event):
        """Handle application close"""
        if self.worker is not None and self.worker.isRunning():
            self.worker.wait(2000)
        self.save_settings()
        self.status_panel.close()
        event.accept()
