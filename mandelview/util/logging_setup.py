import logging
import logging.handlers
import multiprocessing as mp
from contextlib import contextmanager
from typing import Iterator, Optional

_LOGGER_NAME = "mandelview"


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """Package logger, or a ``mandelview.<component>`` child that propagates to it."""
    if component:
        return logging.getLogger(f"{_LOGGER_NAME}.{component}")
    return logging.getLogger(_LOGGER_NAME)


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _reset_package_logger(level: int) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    return logger


def configure_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    logger = _reset_package_logger(level)
    fmt = _build_formatter()
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger


def configure_worker_logging(queue, *, level: int = logging.INFO) -> None:
    """Send every ``mandelview`` record of a render worker process into ``queue``."""
    logger = _reset_package_logger(level)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)


@contextmanager
def logging_session(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
) -> Iterator[mp.Queue]:
    """Configure the package logger for one CLI run.

    Yields the queue that process-pool workers log into. Its listener feeds
    the same handlers and is stopped when the block exits.
    """
    logger = configure_logging(level=level, console=console, log_file=log_file)
    queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(queue, *logger.handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()
        queue.close()
