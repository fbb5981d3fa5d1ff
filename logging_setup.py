import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with one stderr handler.

    Call this once at startup, before the first log line.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    # uvicorn's access log is noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
