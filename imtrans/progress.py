import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# (message, percent, detail)
StatusFn = Callable[[str, float, Optional[str]], None]

def notify(status: Optional[StatusFn], message: str, percent: float, detail: Optional[str] = None):
    """Push a progress update; a broken sink never affects the run"""
    if status is None:
        return
    try:
        status(message, percent, detail)
    except Exception as e:
        logger.debug(f"Progress sink error ignored: {e}")

def format_elapsed(seconds: float) -> str:
    """Elapsed time as m:ss"""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"
