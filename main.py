#!/usr/bin/env python3
"""
Image Translator - on-screen OCR and translation overlay
A PyQt6 desktop tool for reading Chinese, Japanese and Korean text in images
"""

import sys
from PyQt6.QtWidgets import QApplication
from imtrans.logging_config import setup_logger
from imtrans.main_window import MainWindow
from imtrans.screen_capture import SCREENSHOT_AVAILABLE

def main():
    """Main application entry point"""
    logger = setup_logger()
    app = QApplication(sys.argv)
    app.setApplicationName("Image Translator")
    app.setQuitOnLastWindowClosed(False)

    if not SCREENSHOT_AVAILABLE:
        logger.warning("Screenshot dependencies not available")

    window = MainWindow()
    window.show()

    sys.exit(app.exec())

if __name__ == "__main__":
    main()
