import logging
import os
import threading
import time
from datetime import datetime, timedelta

from alphaxic.exceptions import OperationCancelledError

# global variable which tracks if any logger has been initiated
__is_initiated__ = False

# Add a new logging level to the default logger, level 21 is just above INFO (20)
# This has to happen at load time to make the .progress() method available even if no logger is instantiated
PROGRESS_LEVELV_NUM = 21
logging.PROGRESS = PROGRESS_LEVELV_NUM
logging.addLevelName(PROGRESS_LEVELV_NUM, "PROGRESS")

LOG_FILE_NAME = "log.txt"


def progress(self, message, *args, **kws):
    if self.isEnabledFor(PROGRESS_LEVELV_NUM):
        # Yes, logger takes its '*args' as 'args'.
        self._log(PROGRESS_LEVELV_NUM, message, args, **kws)


logging.Logger.progress = progress

logger = logging.getLogger()


class DefaultFormatter(logging.Formatter):
    template = "%(levelname)s: %(message)s"

    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    green = "\x1b[32;20m"
    reset = "\x1b[0m"

    def __init__(self, use_ansi: bool = True):
        """
        Default formatter adding elapsed time and optional ANSI colors.

        Parameters
        ----------

        use_ansi : bool, default True
            Whether to use ANSI escape codes to color the output.

        """
        super().__init__()
        self.start_time = time.time()

        colors = {
            logging.PROGRESS: self.green,
            logging.WARNING: self.yellow,
            logging.ERROR: self.red,
            logging.CRITICAL: self.bold_red,
        }

        self.formatter = {}
        for level in [
            logging.DEBUG,
            logging.INFO,
            logging.PROGRESS,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ]:
            if use_ansi and level in colors:
                self.formatter[level] = logging.Formatter(
                    colors[level] + self.template + self.reset
                )
            else:
                self.formatter[level] = logging.Formatter(self.template)

    def format(self, record: logging.LogRecord):
        """Format the log record, prefixed by the time elapsed since the formatter was created."""

        elapsed = timedelta(seconds=record.created - self.start_time)
        formatter = self.formatter.get(record.levelno, self.formatter[logging.INFO])

        return f"{elapsed} {formatter.format(record)}"


def init_logging(
    log_folder: str = None, log_level: int = logging.INFO, overwrite: bool = True
):
    """Initialize the default logger.
    Sets the formatter and the console and file handlers.

    Parameters
    ----------

    log_folder : str, default None
        Path to the folder where the log file will be saved. If None, the log file will not be saved.

    log_level : int, default logging.INFO
        Log level to use. Can be logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR or logging.CRITICAL.

    overwrite : bool, default True
        Whether to overwrite the log file if it already exists.
    """

    global __is_initiated__

    logger.handlers = []
    logger.setLevel(log_level)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(DefaultFormatter(use_ansi=True))
    logger.addHandler(ch)

    if log_folder is not None:
        os.makedirs(log_folder, exist_ok=True)
        log_name = os.path.join(log_folder, LOG_FILE_NAME)
        if os.path.exists(log_name) and overwrite:
            os.remove(log_name)
        fh = logging.FileHandler(log_name, encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(DefaultFormatter(use_ansi=False))
        logger.addHandler(fh)

    __is_initiated__ = True


def move_existing_file(file_path: str) -> str | None:
    """Rename an existing file by appending its modification time, return the new path or None if nothing was moved."""
    if not os.path.exists(file_path):
        return None

    timestamp = datetime.fromtimestamp(os.path.getmtime(file_path)).strftime(
        "%Y%m%d%H%M%S"
    )
    stem, ext = os.path.splitext(file_path)
    new_path = f"{stem}.{timestamp}{ext}"
    counter = 1
    while os.path.exists(new_path):
        new_path = f"{stem}.{timestamp}_{counter}{ext}"
        counter += 1

    os.rename(file_path, new_path)
    return new_path


class ProgressReporter:
    """Progress reporting and cooperative cancellation shared by all workers of an extraction.

    Messages are forwarded to the root logger at PROGRESS level.
    Cancellation is requested from any thread and polled by the workers.
    """

    def __init__(self):
        self._cancel_event = threading.Event()

    def set_message(self, message: str) -> None:
        logger.progress(message)

    def request_cancellation(self) -> None:
        logger.warning("Cancellation requested, stopping after the current scan.")
        self._cancel_event.set()

    def is_cancellation_pending(self) -> bool:
        return self._cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._cancel_event.is_set():
            raise OperationCancelledError()
