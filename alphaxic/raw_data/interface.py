"""Interface for raw data readers."""

from abc import ABC, abstractmethod

import numpy as np


class RawReader(ABC):
    """Abstract class providing the spectrum access needed for profile extraction.

    Scan numbers are the native, 1-based spectrum numbers of the raw file.
    Retention times are given in minutes.
    Readers are opened and closed by a single worker and are never shared between threads.
    """

    @abstractmethod
    def first_spectrum_number(self) -> int:
        """Number of the first spectrum in the file."""

    @abstractmethod
    def last_spectrum_number(self) -> int:
        """Number of the last spectrum in the file."""

    @abstractmethod
    def ms_level(self, scan: int) -> int:
        """Acquisition level of a spectrum, 1 for precursor scans."""

    @abstractmethod
    def retention_time(self, scan: int) -> float:
        """Retention time of a spectrum in minutes."""

    @abstractmethod
    def peak_list(
        self, scan: int
    ) -> tuple[
        np.ndarray[tuple[int], np.dtype[np.float64]],
        np.ndarray[tuple[int], np.dtype[np.float64]],
    ]:
        """m/z and intensity arrays of a spectrum, sorted by ascending m/z."""

    def close(self) -> None:  # noqa: B027 # no-op by default
        """Release the resources held by the reader."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
