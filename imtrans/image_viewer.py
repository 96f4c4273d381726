import os

from PyQt6.QtWidgets import QWidget, QLabel, QVBoxLayout
from PyQt6.QtCore import pyqtSignal, QPoint, Qt
from PyQt6.QtGui import QCloseEvent, QGuiApplication, QPixmap

from .models import DisplayRect

# Largest share of the available screen an opened image may take
MAX_SCREEN_FRACTION = 0.8

class ImageViewer(QWidget):
    """Window showing an opened image file; translations are overlaid on top of it"""

    closed = pyqtSignal()

    def __init__(self, path: str):
        super().__init__()
        self.setWindowTitle(os.path.basename(path))
        self.setWindowFlags(Qt.WindowType.Window | Qt.WindowType.WindowStaysOnTopHint)

        pixmap = QPixmap(path)
        self.is_null = pixmap.isNull()
        if not self.is_null:
            available = QGuiApplication.primaryScreen().availableGeometry()
            max_width = int(available.width() * MAX_SCREEN_FRACTION)
            max_height = int(available.height() * MAX_SCREEN_FRACTION)
            if pixmap.width() > max_width or pixmap.height() > max_height:
                # Overlay placement scales boxes back from natural pixels
                pixmap = pixmap.scaled(max_width, max_height, Qt.AspectRatioMode.KeepAspectRatio,
                                       Qt.TransformationMode.SmoothTransformation)

        self.label = QLabel()
        self.label.setPixmap(pixmap)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.label)
        self.setFixedSize(pixmap.size())

    def display_rect(self) -> DisplayRect:
        """Global logical rectangle the image is drawn in"""
        top_left = self.label.mapToGlobal(QPoint(0, 0))
        return DisplayRect(top_left.x(), top_left.y(), self.label.width(), self.label.height())

    def closeEvent(self, event: QCloseEvent):
        self.closed.emit()
        super().closeEvent(event)
