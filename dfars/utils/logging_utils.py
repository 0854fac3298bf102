# dfars/utils/logging_utils.py
from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

_HAS_RICH = False
try:  # Optional colored logging
    from rich.console import Console
    from rich.logging import RichHandler
    _HAS_RICH = True
except Exception:
    Console = None  # type: ignore

_HAS_TQDM = False
try:
    from tqdm import tqdm as _tqdm  # type: ignore
    _HAS_TQDM = True
except Exception:
    _tqdm = None  # type: ignore


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level {level!r}")
        return resolved
    return int(level)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    *,
    use_rich: Optional[bool] = None,
) -> logging.Logger:
    """Attach console and optional file handlers to the ``dfars`` logger.

    ``level`` may be a number or a level name such as ``"DEBUG"`` (as read
    from a YAML config). ``use_rich=None`` picks ``RichHandler`` when rich is
    importable; ``False`` forces a plain stderr handler. Calling again
    replaces the handlers instead of stacking them.
    """
    level = _coerce_level(level)
    logger = logging.getLogger("dfars")
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_console = _HAS_RICH if use_rich is None else (use_rich and _HAS_RICH)
    if rich_console:
        console: logging.Handler = RichHandler(
            console=Console(stderr=True), show_time=True, show_path=False, markup=False
        )
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s",
                                               datefmt="%H:%M:%S"))
    console.setLevel(level)
    logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    logger.debug("dfars logging at %s%s", logging.getLevelName(level),
                 f", mirrored to {log_file}" if log_file else "")
    return logger


@dataclass
class Timer:
    """Context timer for measuring code block durations."""
    name: str = "task"
    logger: Optional[logging.Logger] = None
    level: int = logging.INFO
    start: float = 0.0
    elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start = time.perf_counter()
        if self.logger:
            self.logger.debug("[%s] started.", self.name)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self.start
        if self.logger:
            if exc_type is None:
                self.logger.log(self.level, "[%s] finished in %.3fs.", self.name, self.elapsed)
            else:
                self.logger.warning("[%s] errored after %.3fs.", self.name, self.elapsed)


def progress_bar(total: int, desc: Optional[str] = None, enabled: bool = True):
    """Return a tqdm bar counting up to ``total``, or ``None`` when disabled or tqdm is missing."""
    if not (enabled and _HAS_TQDM):
        return None
    return _tqdm(total=total, desc=desc, leave=False)
