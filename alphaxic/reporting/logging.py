import logging
import os
import platform
import socket
from datetime import datetime
from importlib import metadata
from typing import TYPE_CHECKING, Any

import alpharaw
import numba
import numpy as np
import pandas as pd
import scipy

import alphaxic
from alphaxic.reporting import reporting  # noqa: F401 # registers logger.progress
from alphaxic.utils import USE_NUMBA_CACHING

# Type stub for extended Logger with progress method
# The progress method is added in reporting.py at module load time
if TYPE_CHECKING:

    class _ExtendedLogger(logging.Logger):
        def progress(self, message: str, *args: Any, **kws: Any) -> None: ...

    logger: _ExtendedLogger = logging.getLogger()  # type: ignore[assignment]
else:
    logger = logging.getLogger()


def print_logo() -> None:
    """Print the alphaxic logo and version."""
    logger.progress("          _      _         __  _____ ___ ")
    logger.progress(r"     __ _| |_ __| |_  __ _\ \/ /_ _/ __|")
    logger.progress(r"    / _` | | '_ \ ' \/ _` |>  < | | (__ ")
    logger.progress(r"    \__,_|_| .__/_||_\__,_/_/\_\___\___|")
    logger.progress("           |_|                          ")
    logger.progress("")
    logger.progress(f"version: {alphaxic.__version__}")


def print_environment() -> None:
    """Log information about the python environment."""

    logger.info(f"hostname: {socket.gethostname()}")
    logger.progress(
        f"os: {platform.system()} {platform.release()} ({platform.machine()})"
    )
    logger.progress(
        f"python: {platform.python_version()} ({platform.python_implementation()})"
    )
    logger.info(f"cpu count: {os.cpu_count()}")

    now = datetime.today().strftime("%Y-%m-%d %H:%M:%S")
    logger.info(f"date: {now}")

    logger.info("================ AlphaX Environment ===============")
    logger.info(f"{'alpharaw':<15} : {alpharaw.__version__}")
    logger.info(f"{'numpy':<15} : {np.__version__}")
    logger.info(f"{'pandas':<15} : {pd.__version__}")
    logger.info(f"{'numba':<15} : {numba.__version__}")
    logger.info(f"{'scipy':<15} : {scipy.__version__}")
    logger.info("===================================================")

    logger.info("================= Pip Environment =================")
    pip_env = [
        f"{dist.metadata['Name']}=={dist.version}" for dist in metadata.distributions()
    ]
    logger.info(" ".join(pip_env))
    logger.info("===================================================")

    if USE_NUMBA_CACHING:
        logger.info("Numba caching is activated.")
