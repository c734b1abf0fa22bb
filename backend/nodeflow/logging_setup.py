"""Logging configuration for the ``nodeflow`` logger tree."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    root = logging.getLogger("nodeflow")
    root.setLevel(level)
    if not any(getattr(h, "_nodeflow", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._nodeflow = True
        root.addHandler(handler)
    return root
