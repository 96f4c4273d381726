import logging
import os
import shutil
import subprocess
import tempfile
from typing import List, Optional

from PyQt6.QtCore import QBuffer, QIODevice, QRect
from PyQt6.QtGui import QGuiApplication, QImage

from .errors import AcquisitionError
from .layout import device_crop_rect
from .models import DisplayRect

logger = logging.getLogger(__name__)

def _check_screenshot_available():
    """Check if at least one screenshot method is likely available"""
    if os.environ.get("XDG_SESSION_TYPE") == "wayland":
        for tool in ["spectacle", "gnome-screenshot", "grim"]:
            if shutil.which(tool):
                return True
    # PyQt fallback works on X11 and other platforms
    return True

SCREENSHOT_AVAILABLE = _check_screenshot_available()

def _encode_png(image: QImage) -> bytes:
    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    return bytes(buffer.buffer())

class ScreenCapture:
    """Acquire screen pixels using multiple backends for Wayland/X11 compatibility"""

    @staticmethod
    def get_virtual_desktop_geometry() -> QRect:
        """Get the geometry of the entire virtual desktop (all screens combined)"""
        total_geo = QRect()
        for screen in QGuiApplication.screens():
            total_geo = total_geo.united(screen.geometry())
        return total_geo

    @staticmethod
    def device_pixel_ratio() -> float:
        screen = QGuiApplication.primaryScreen()
        return screen.devicePixelRatio() if screen else 1.0

    @staticmethod
    def capture_screen() -> bytes:
        """Capture the entire screen using the best available method"""
        is_wayland = os.environ.get("XDG_SESSION_TYPE") == "wayland"
        desktop = os.environ.get("XDG_CURRENT_DESKTOP", "").lower()

        if is_wayland:
            logger.debug(f"Wayland detected, desktop: {desktop}")
            attempts = []
            if "kde" in desktop:
                # -b: background, -n: no notification, -f: fullscreen, -o: output
                attempts.append(["spectacle", "-b", "-n", "-f", "-o"])
            if "gnome" in desktop:
                attempts.append(["gnome-screenshot", "-f"])
            for args in attempts:
                data = ScreenCapture._capture_to_file(args)
                if data:
                    return data
            data = ScreenCapture._capture_grim()
            if data:
                return data

        # Works on X11, usually returns black on Wayland
        logger.debug("Falling back to PyQt backend...")
        data = ScreenCapture._capture_pyqt()
        if data:
            return data
        raise AcquisitionError("Screen capture failed: no screenshot backend returned an image")

    @staticmethod
    def _capture_pyqt() -> Optional[bytes]:
        screen = QGuiApplication.primaryScreen()
        if not screen:
            return None
        pixmap = screen.grabWindow(0)
        if pixmap.isNull():
            return None
        data = _encode_png(pixmap.toImage())
        if ScreenCapture._is_image_empty(data):
            logger.debug("PyQt capture returned empty/black image")
            return None
        return data

    @staticmethod
    def _capture_to_file(args: List[str]) -> Optional[bytes]:
        """Run a CLI screenshot tool that writes a PNG to the path appended to args"""
        if not shutil.which(args[0]):
            return None
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as tmp:
            tmp_path = tmp.name
        try:
            result = subprocess.run(args + [tmp_path], capture_output=True, timeout=5)
            if result.returncode != 0 or not os.path.exists(tmp_path):
                logger.debug(f"{args[0]} failed: {result.stderr[:200]!r}")
                return None
            with open(tmp_path, "rb") as f:
                data = f.read()
            if ScreenCapture._is_image_empty(data):
                return None
            logger.debug(f"Captured screen via {args[0]}")
            return data
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"{args[0]} capture error: {e}")
            return None
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    @staticmethod
    def _capture_grim() -> Optional[bytes]:
        """Capture screen using grim (Generic Wayland)"""
        if not shutil.which("grim"):
            return None
        try:
            result = subprocess.run(["grim", "-"], capture_output=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"grim capture error: {e}")
            return None
        if result.returncode == 0 and not ScreenCapture._is_image_empty(result.stdout):
            logger.debug("Captured screen via grim")
            return result.stdout
        return None

    @staticmethod
    def _is_image_empty(data: bytes) -> bool:
        """Check if image is a single flat colour (failed Wayland captures look like this)"""
        if not data:
            return True
        img = QImage.fromData(data)
        if img.isNull():
            return True

        w, h = img.width(), img.height()
        if w < 2 or h < 2:
            return True

        points = [
            img.pixelColor(0, 0),
            img.pixelColor(w - 1, 0),
            img.pixelColor(0, h - 1),
            img.pixelColor(w - 1, h - 1),
            img.pixelColor(w // 2, h // 2)
        ]
        first = points[0]
        return all(p == first for p in points)

    @staticmethod
    def capture_region(rect: DisplayRect) -> bytes:
        """Capture a logical screen rectangle at physical resolution"""
        if rect.width <= 0 or rect.height <= 0:
            raise AcquisitionError("Region not visible")

        image = QImage.fromData(ScreenCapture.capture_screen())
        if image.isNull():
            raise AcquisitionError("Screen capture returned an unreadable image")

        # The screenshot starts at the virtual desktop origin, in physical pixels
        origin = ScreenCapture.get_virtual_desktop_geometry().topLeft()
        local = DisplayRect(rect.left - origin.x(), rect.top - origin.y(), rect.width, rect.height)
        x, y, width, height = device_crop_rect(local, ScreenCapture.device_pixel_ratio())
        crop = QRect(x, y, width, height).intersected(image.rect())

        if crop.isEmpty():
            raise AcquisitionError(
                f"Requested region {rect.left},{rect.top} {rect.width}x{rect.height} is outside screen bounds")

        logger.debug(f"Cropping at {crop.x()},{crop.y()} {crop.width()}x{crop.height()}")
        return _encode_png(image.copy(crop))

    @staticmethod
    def load_image_file(path: str) -> bytes:
        """Read an image file from disk as PNG bytes"""
        image = QImage(path)
        if image.isNull():
            raise AcquisitionError(f"Could not load image: {path}")
        return _encode_png(image)
