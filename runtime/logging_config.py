import logging
from typing import Optional

LOGGER_NAME = "quadfield"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_file: Optional[str] = None,
    *,
    quiet: bool = False,
    debug: bool = False,
    capture_warnings: bool = True,
) -> logging.Logger:
    """Configure and return the shared ``quadfield`` logger.

    No file is written unless ``log_file`` is given. With ``capture_warnings``
    Python warnings (e.g. numpy division warnings from degenerate quads) are
    routed through the same handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    # Records keep reaching root handlers (e.g. caplog) in quiet mode.
    logger.propagate = True

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handlers = []
    if log_file:
        try:
            handlers.append(_handler(logging.FileHandler(log_file, mode="w"), level))
        except OSError as exc:
            print(f"[logging] Could not open log file '{log_file}': {exc}")
    if not quiet:
        handlers.append(_handler(logging.StreamHandler(), logging.INFO))

    for handler in handlers:
        logger.addHandler(handler)

    warnings_logger = logging.getLogger("py.warnings")
    for handler in list(warnings_logger.handlers):
        warnings_logger.removeHandler(handler)
    logging.captureWarnings(capture_warnings)
    if capture_warnings:
        for handler in handlers:
            warnings_logger.addHandler(handler)

    return logger
