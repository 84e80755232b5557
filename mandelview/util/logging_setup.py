import logging
import logging.handlers
import multiprocessing as mp
from contextlib import contextmanager
from typing import Iterator, Optional

_LOGGER_NAME = "mandelview"

def get_logger(child: Optional[str] = None) -> logging.Logger:
    name = f"{_LOGGER_NAME}.{child}" if child else _LOGGER_NAME
    return logging.getLogger(name)

def parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level

def _formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

def _detach_handlers(logger: logging.Logger) -> None:
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = "mandelview.log",
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the package logger.

    Child loggers (``mandelview.render`` and friends) propagate into it, so
    this is the only place handlers are installed in the parent process.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    _detach_handlers(logger)
    fmt = _formatter()
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

@contextmanager
def logging_session(
    *, level: int = logging.INFO, console: bool = True, log_file: Optional[str] = None
) -> Iterator[mp.Queue]:
    """Configure parent logging and yield a queue for process-pool workers.

    Records put on the queue by :func:`worker_initialiser`-configured workers
    are dispatched to the parent's handlers until the block exits.
    """
    parent = configure_root_logging(level=level, console=console, log_file=log_file)
    queue: mp.Queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(queue, *parent.handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()

def worker_initialiser(queue: mp.Queue, level: int) -> None:
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    _detach_handlers(logger)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)
