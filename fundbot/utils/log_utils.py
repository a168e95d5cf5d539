import logging, os, sys
from pathlib import Path
from typing import Optional


def setup_root_logging(log_file: Optional[str] = None, level: str = None) -> None:
    """
    Console + optional append-mode file handler on the root logger.
    Safe to call more than once: existing handlers are not duplicated.
    """
    lvl = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, lvl, logging.INFO))
    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(fmt)
        root.addHandler(ch)

    # Avoid duplicate handlers on reload
    if log_file and not any(isinstance(h, logging.FileHandler) for h in root.handlers):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
