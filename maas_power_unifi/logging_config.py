import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def configure_logging(level: str = "WARNING", log_dir: Optional[Path] = None) -> None:
    """Configure root logger with console and optional file handlers.

    Console output goes to stderr; stdout is reserved for power status replies.

    Args:
        level: Log level name (WARNING, INFO, DEBUG, etc.). Unknown names fall
            back to WARNING.
        log_dir: If provided, create a timestamped log file in this directory.
    """
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    root = logging.getLogger()
    level_name = level.strip().upper()
    valid_level = isinstance(logging.getLevelName(level_name), int)
    root.setLevel(level_name if valid_level else logging.WARNING)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if not valid_level:
        root.warning("Unknown log level %r; using WARNING", level)

    if log_dir:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y-%m-%d__%H_%M_%S")
            log_file = log_dir / f"maas-power-unifi_{timestamp}.log"
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
            root.debug("Logging to file: %s", log_file)
        except OSError as exc:
            root.error("Cannot write log file under %s, logging to stderr only: %s", log_dir, exc)
