from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import pyqtSignal, QRect, QPoint, Qt
from PyQt6.QtGui import QMouseEvent, QPaintEvent, QKeyEvent, QGuiApplication, QPainter, QPen, QColor

from .config import MIN_SELECTION_SIZE
from .models import DisplayRect

class RegionSelector(QWidget):
    """Full-screen translucent widget for dragging out a screen region"""

    region_selected = pyqtSignal(object)  # DisplayRect in global logical coordinates
    cancelled = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setWindowFlags(Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setStyleSheet("background-color: rgba(0, 0, 0, 100);")
        self.setCursor(Qt.CursorShape.CrossCursor)

        self.start_pos = QPoint()
        self.current_pos = QPoint()
        self.selecting = False

        screen = QGuiApplication.primaryScreen().geometry()
        self.setGeometry(screen)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self.start_pos = event.pos()
            self.current_pos = event.pos()
            self.selecting = True

    def mouseMoveEvent(self, event: QMouseEvent):
        if self.selecting:
            self.current_pos = event.pos()
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self.selecting:
            self.selecting = False

            rect = QRect(self.start_pos, self.current_pos).normalized()
            if rect.width() >= MIN_SELECTION_SIZE and rect.height() >= MIN_SELECTION_SIZE:
                top_left = self.mapToGlobal(rect.topLeft())
                self.region_selected.emit(DisplayRect(top_left.x(), top_left.y(), rect.width(), rect.height()))
            else:
                self.cancelled.emit()

            self.close()

    def paintEvent(self, event: QPaintEvent):
        if self.selecting:
            painter = QPainter(self)
            painter.setPen(QPen(QColor(0, 170, 255), 2))
            painter.fillRect(QRect(self.start_pos, self.current_pos).normalized(), QColor(0, 170, 255, 40))
            painter.drawRect(QRect(self.start_pos, self.current_pos).normalized())

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key.Key_Escape:
            self.selecting = False
            self.cancelled.emit()
            self.close()
