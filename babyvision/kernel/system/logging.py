import logging
import sys
import io

ROOT_LOGGER_NAME = "babyvision"


class _DummyStream(io.TextIOBase):
    """
    A file-like object that discards all input.
    Prevents AttributeError when sys.stdout/stderr are None (pythonw, frozen apps).
    """

    def write(self, x: str) -> int:
        return len(x)

    def flush(self) -> None:
        pass


def init_streams() -> None:
    """
    Ensures sys.stdout and sys.stderr are not None.
    """
    if sys.stdout is None:
        sys.stdout = _DummyStream()
    if sys.stderr is None:
        sys.stderr = _DummyStream()


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Sets up the global logging configuration for the simulator.
    """
    init_streams()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Helper to get a sub-logger for a specific module.
    """
    if name:
        if name.startswith(f"{ROOT_LOGGER_NAME}."):
            name = name[len(ROOT_LOGGER_NAME) + 1 :]
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
