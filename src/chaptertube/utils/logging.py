"""
Progress logging for long-running chapter work.
"""

import logging
import time

logger = logging.getLogger("chaptertube")


def log_timed(
    msg: str,
    start_time: float | None = None,
    *,
    step: int | None = None,
    total: int | None = None,
    level: int = logging.INFO,
) -> None:
    """Log a progress line prefixed with elapsed time and an optional step.

    Lines look like ``[3.2s] (2/5) Capturing "Intro"``.

    Args:
        msg: Message to log
        start_time: Start time from time.time(), or None for [START]
        step: 1-based position in a batch
        total: Batch size; the step prefix is only shown when both are set
        level: Logging level
    """
    elapsed = f"[{time.time() - start_time:.1f}s]" if start_time else "[START]"
    progress = f" ({step}/{total})" if step is not None and total else ""
    logger.log(level, f"{elapsed}{progress} {msg}")
