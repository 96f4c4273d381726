from typing import List
import logging
import time
from PyQt6 import sip
from PyQt6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
    QPlainTextEdit,
    QProgressBar,
)
from PyQt6.QtCore import Qt, QTimer, QRect, QPoint, QObject, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QFont, QGuiApplication, QMouseEvent, QPaintEvent, QRegion
from .models import OverlayItem
from .progress import format_elapsed

logger = logging.getLogger(__name__)

SUCCESS_HIDE_MS = 5000
ERROR_HIDE_MS = 8000
OUTLINE_OFFSETS = [(-2, 0), (2, 0), (0, -2), (0, 2), (-1, -1), (1, -1), (-1, 1), (1, 1)]


class _LogEmitter(QObject):
    message = pyqtSignal(str)


class OverlayLogHandler(logging.Handler):
    """Mirrors log records into the status panel through a Qt signal"""

    def __init__(self, emitter: _LogEmitter):
        super().__init__()
        self._emitter = emitter

    def emit(self, record):
        try:
            msg = self.format(record)
            self._emitter.message.emit(msg)
        except RuntimeError:
            # Emitter deleted during shutdown
            self.handleError(record)


class StatusPanel(QWidget):
    """Always-on-top panel showing run progress, elapsed time and recent log lines."""

    request_clear = pyqtSignal()

    def __init__(self, parent: QWidget = None):
        super().__init__(parent)
        self.setWindowFlags(
            Qt.WindowType.Tool
            | Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)

        self.dragging = False
        self.drag_start_pos = QPoint()
        self._started_at = None

        root = QWidget(self)
        root.setObjectName("PanelRoot")
        root.setStyleSheet(
            "#PanelRoot { background: rgba(20, 20, 20, 220); border: 1px solid rgba(255,255,255,40);"
            " border-radius: 10px; } QLabel { color: #eee; }"
        )

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(root)

        layout = QVBoxLayout(root)
        layout.setContentsMargins(12, 12, 12, 12)

        header = QHBoxLayout()
        title = QLabel("Image Translator")
        title.setStyleSheet("font-size: 14px; font-weight: bold; color: #4CAF50;")
        header.addWidget(title)
        header.addStretch()

        self.timer_label = QLabel("0:00")
        self.timer_label.setStyleSheet("color: #aaa; font-family: monospace;")
        header.addWidget(self.timer_label)

        self.log_btn = QPushButton("Logs")
        self.log_btn.setCheckable(True)
        self.log_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.log_btn.toggled.connect(self._toggle_logs)
        header.addWidget(self.log_btn)

        close_btn = QPushButton("×")
        close_btn.setFixedWidth(24)
        close_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        close_btn.clicked.connect(self.hide)
        header.addWidget(close_btn)
        layout.addLayout(header)

        self.message_label = QLabel("Ready")
        self.message_label.setWordWrap(True)
        self.message_label.setStyleSheet("font-size: 13px;")
        layout.addWidget(self.message_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(8)
        layout.addWidget(self.progress_bar)

        self.detail_label = QLabel("")
        self.detail_label.setStyleSheet("color: #aaa; font-size: 11px;")
        layout.addWidget(self.detail_label)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(500)
        self.log_view.setStyleSheet(
            "color: #ddd; background: rgba(0,0,0,80); border: 1px solid rgba(255,255,255,20);"
            " font-family: monospace; font-size: 10px;"
        )
        self.log_view.hide()
        layout.addWidget(self.log_view)

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(250)
        self._tick_timer.timeout.connect(self._tick)

        self._hide_timer = QTimer(self)
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self.hide)

        self.resize(360, 120)
        self._move_to_default_position()

        # Wire python logging -> Qt
        self._emitter = _LogEmitter()
        self._emitter.message.connect(self._append_log)
        self._handler = OverlayLogHandler(self._emitter)
        self._handler.setLevel(logging.DEBUG)
        self._handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", "%H:%M:%S")
        )
        logging.getLogger("imtrans").addHandler(self._handler)

    def _move_to_default_position(self):
        screen = QGuiApplication.primaryScreen()
        if screen:
            geo = screen.availableGeometry()
            self.move(geo.right() - self.width() - 20, geo.bottom() - self.height() - 20)

    def _toggle_logs(self, checked: bool):
        self.log_view.setVisible(checked)
        self.resize(self.width(), 320 if checked else 120)

    def _append_log(self, line: str):
        self.log_view.appendPlainText(line)

    def _tick(self):
        if self._started_at is not None:
            self.timer_label.setText(format_elapsed(time.monotonic() - self._started_at))

    def start_run(self, message: str):
        """Reset the panel for a new run and start the elapsed timer"""
        self._hide_timer.stop()
        self._started_at = time.monotonic()
        self.timer_label.setText("0:00")
        self.progress_bar.setValue(0)
        self.detail_label.setText("")
        self.message_label.setText(message)
        self._tick_timer.start()
        self.show()
        self.raise_()

    def update_status(self, message: str, percent: float, detail: str = ""):
        self.message_label.setText(message)
        self.progress_bar.setValue(int(max(0, min(100, percent))))
        self.detail_label.setText(detail or "")
        if not self.isVisible():
            self.show()

    def finish(self, message: str, success: bool):
        """Stop the timer and auto-hide after the success or error delay"""
        self._tick()
        self._tick_timer.stop()
        self._started_at = None
        self.progress_bar.setValue(100)
        if success:
            self.message_label.setText(message)
            self._hide_timer.start(SUCCESS_HIDE_MS)
        else:
            if not message.startswith("Error: "):
                message = f"Error: {message}"
            self.message_label.setText(message)
            self._hide_timer.start(ERROR_HIDE_MS)
        self.show()

    def show_message(self, message: str, timeout_ms: int = SUCCESS_HIDE_MS):
        """Show a one-off message without touching the run timer"""
        self.message_label.setText(message)
        self.detail_label.setText("")
        self.show()
        if self._started_at is None:
            self._hide_timer.start(timeout_ms)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self.dragging = True
            self.drag_start_pos = event.globalPosition().toPoint() - self.frameGeometry().topLeft()
            event.accept()

    def mouseMoveEvent(self, event: QMouseEvent):
        if self.dragging:
            self.move(event.globalPosition().toPoint() - self.drag_start_pos)
            event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent):
        self.dragging = False
        event.accept()

    def closeEvent(self, event):
        logging.getLogger("imtrans").removeHandler(self._handler)
        super().closeEvent(event)


class OverlayWindow(QWidget):
    """Full-screen transparent container for translation labels to fix Wayland positioning"""
    def __init__(self):
        super().__init__()
        # On some Wayland compositors, keeping a window always-on-top requires
        # both WindowStaysOnTopHint and Tool flags, plus periodic raise_ calls.
        flags = (
            Qt.WindowType.Window
            | Qt.WindowType.Tool
            | Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.NoDropShadowWindowHint
        )

        self.setWindowFlags(flags)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)

        # Cover the entire virtual desktop
        total_geo = QRect()
        for screen in QGuiApplication.screens():
            total_geo = total_geo.united(screen.geometry())

        self.setGeometry(total_geo)
        # Initial mask is empty so it's click-through
        self.setMask(QRegion())
        self.show()

    def paintEvent(self, event: QPaintEvent):
        """Ensure the background is always transparent"""
        painter = QPainter(self)
        painter.fillRect(event.rect(), Qt.GlobalColor.transparent)
        painter.end()


class TranslationLabel(QWidget):
    """Translated text drawn white and bold with a black outline; click to dismiss"""

    dismissed = pyqtSignal(object)

    def __init__(self, item: OverlayItem, parent_overlay: QWidget = None):
        super().__init__(parent_overlay)
        self.item = item
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setToolTip(item.original_text)

        self.text_font = QFont()
        self.text_font.setBold(True)
        self.text_font.setPixelSize(max(1, int(round(item.placement.font_size))))

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.setFont(self.text_font)

        # Faint backing so the text stays legible over busy artwork
        painter.fillRect(self.rect(), QColor(0, 0, 0, 90 if not self.item.failed else 140))

        flags = Qt.AlignmentFlag.AlignCenter | Qt.TextFlag.TextWordWrap
        text = self.item.translated_text
        painter.setPen(QColor(0, 0, 0))
        for dx, dy in OUTLINE_OFFSETS:
            painter.drawText(self.rect().translated(dx, dy), flags, text)
        painter.setPen(QColor(255, 220, 120) if self.item.failed else QColor(255, 255, 255))
        painter.drawText(self.rect(), flags, text)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self.dismissed.emit(self)
            event.accept()


class TranslationOverlay(QObject):
    """Manager for TranslationLabel widgets using a full-screen container"""

    def __init__(self, parent_window=None):
        super().__init__(parent_window)
        self.labels: List[TranslationLabel] = []
        self.overlay_window = OverlayWindow()

        if parent_window:
            parent_window.destroyed.connect(self.overlay_window.deleteLater)

        # Keep overlay above other windows by periodically re-raising.
        self._keep_on_top_timer = QTimer(self)
        self._keep_on_top_timer.setInterval(2000)
        self._keep_on_top_timer.timeout.connect(self._ensure_on_top)
        self._keep_on_top_timer.start()

    def _ensure_on_top(self):
        if not sip.isdeleted(self.overlay_window) and self.overlay_window.isVisible():
            self.overlay_window.raise_()

    def show_items(self, items: List[OverlayItem]):
        """Add one label per item; placements are global logical screen coordinates"""
        origin = self.overlay_window.geometry().topLeft()
        for item in items:
            p = item.placement
            label = TranslationLabel(item, self.overlay_window)
            # Global -> overlay-local coordinates
            label.setGeometry(
                int(round(p.left)) - origin.x(),
                int(round(p.top)) - origin.y(),
                max(1, int(round(p.width))),
                max(1, int(round(p.height))),
            )
            label.dismissed.connect(self._remove_label)
            label.show()
            self.labels.append(label)
        logger.debug(f"Overlay showing {len(self.labels)} label(s)")
        self._update_mask()
        self.overlay_window.show()
        self.overlay_window.raise_()

    def _update_mask(self):
        """Only the labels receive clicks; everything else passes through"""
        if sip.isdeleted(self.overlay_window):
            return
        mask = QRegion()
        for label in self.labels:
            if not sip.isdeleted(label) and label.isVisible():
                mask += label.geometry()
        self.overlay_window.setMask(mask)
        self.overlay_window.update()

    def _remove_label(self, label: TranslationLabel):
        if label in self.labels:
            self.labels.remove(label)
        label.hide()
        label.deleteLater()
        self._update_mask()

    def clear_translations(self):
        for label in self.labels:
            if not sip.isdeleted(label):
                label.hide()
                label.deleteLater()
        self.labels = []
        self._update_mask()

    def hide(self):
        self.overlay_window.hide()

    def show(self):
        self.overlay_window.show()
        self.overlay_window.raise_()
