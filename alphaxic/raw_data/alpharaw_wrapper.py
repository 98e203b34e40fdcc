"""Module providing raw file readers based on the alpharaw data model for Thermo, mzML and AlphaRaw HDF files."""

import logging
import os

import numpy as np
import pandas as pd
from alpharaw.ms_data_base import MSData_Base

from alphaxic.exceptions import UnsupportedRawFormatError
from alphaxic.raw_data.interface import RawReader

logger = logging.getLogger()


class SpectrumDataFrameReader(RawReader):
    def __init__(self, spectrum_df: pd.DataFrame, peak_df: pd.DataFrame):
        """Reader on top of the alpharaw spectrum and peak dataframes.

        Parameters
        ----------
        spectrum_df : pd.DataFrame
            One row per spectrum with the columns `spec_idx` (0-based), `rt` (minutes), `ms_level`,
            `peak_start_idx` and `peak_stop_idx`.
        peak_df : pd.DataFrame
            One row per peak with the columns `mz` and `intensity`.
        """
        spectrum_df = spectrum_df.sort_values("spec_idx")

        # alpharaw numbers spectra from 0, raw files from 1
        self._scans = spectrum_df["spec_idx"].values.astype(np.int64) + 1
        self._rt_values = spectrum_df["rt"].values.astype(np.float64)
        self._ms_levels = spectrum_df["ms_level"].values.astype(np.int64)
        self._peak_start_idx = spectrum_df["peak_start_idx"].values.astype(np.int64)
        self._peak_stop_idx = spectrum_df["peak_stop_idx"].values.astype(np.int64)

        self._mz_values = peak_df["mz"].values.astype(np.float64)
        self._intensity_values = peak_df["intensity"].values.astype(np.float64)

    def _row(self, scan: int) -> int:
        row = int(np.searchsorted(self._scans, scan))
        if row >= len(self._scans) or self._scans[row] != scan:
            return -1
        return row

    def _checked_row(self, scan: int) -> int:
        row = self._row(scan)
        if row < 0:
            raise KeyError(f"Spectrum {scan} not found")
        return row

    def first_spectrum_number(self) -> int:
        return int(self._scans[0]) if len(self._scans) else 0

    def last_spectrum_number(self) -> int:
        return int(self._scans[-1]) if len(self._scans) else -1

    def ms_level(self, scan: int) -> int:
        """Acquisition level of a spectrum, 0 if the spectrum is not part of the data."""
        row = self._row(scan)
        return int(self._ms_levels[row]) if row >= 0 else 0

    def retention_time(self, scan: int) -> float:
        return float(self._rt_values[self._checked_row(scan)])

    def peak_list(self, scan: int) -> tuple[np.ndarray, np.ndarray]:
        row = self._checked_row(scan)
        start, stop = self._peak_start_idx[row], self._peak_stop_idx[row]

        mz = self._mz_values[start:stop]
        intensity = self._intensity_values[start:stop]

        if len(mz) > 1 and np.any(np.diff(mz) < 0):
            order = np.argsort(mz, kind="stable")
            mz, intensity = mz[order], intensity[order]

        return mz, intensity


class AlphaRawReader(SpectrumDataFrameReader):
    def __init__(self, raw_file_path: str, process_count: int = 1):
        """Read a raw file with alpharaw and provide its spectra.

        Parameters
        ----------
        raw_file_path : str
            Path to a Thermo (.raw), mzML (.mzml) or AlphaRaw HDF (.hdf) file.
        process_count : int, optional
            Number of processes used by alpharaw to read Thermo files, by default 1
        """
        self.raw_file_path = raw_file_path

        ms_data = _load_ms_data(raw_file_path, process_count)
        super().__init__(ms_data.spectrum_df, ms_data.peak_df)

        logger.info(
            f"Loaded {len(self._scans):,} spectra and {len(self._mz_values):,} peaks from {os.path.basename(raw_file_path)}"
        )

    def close(self) -> None:
        # the peak arrays are the only large resource
        self._mz_values = np.empty(0, dtype=np.float64)
        self._intensity_values = np.empty(0, dtype=np.float64)


def _load_ms_data(raw_file_path: str, process_count: int) -> MSData_Base:
    """Load a raw file into the alpharaw data model, choosing the reader by file extension."""
    extension = os.path.splitext(raw_file_path)[1].lower()

    if extension == ".hdf":
        ms_data = MSData_Base()
        ms_data.load_hdf(raw_file_path)
        return ms_data

    # vendor readers are imported lazily as they require additional runtimes
    if extension == ".raw":
        from alpharaw.thermo import ThermoRawData

        ms_data = ThermoRawData(process_count=process_count)
    elif extension == ".mzml":
        from alpharaw.mzml import MzMLReader

        ms_data = MzMLReader()
    else:
        raise UnsupportedRawFormatError(raw_file_path)

    ms_data.load_raw(raw_file_path)
    return ms_data


def get_raw_reader(raw_file_path: str) -> RawReader:
    """Default reader factory used by the file scheduler."""
    return AlphaRawReader(raw_file_path)
