"""Index of the precursor (MS1) scans of a single raw file."""

import logging
from dataclasses import dataclass

import numpy as np

from alphaxic.raw_data.interface import RawReader

logger = logging.getLogger()


@dataclass
class ScanRecord:
    """A single MS1 scan, its peaks are read on first access."""

    scan: int
    retention_time: float
    peaks: tuple[np.ndarray, np.ndarray] | None = None


class ScanIndex:
    def __init__(self, reader: RawReader, records: list[ScanRecord]):
        """Ordered MS1 scans of one raw file with lazily cached peak lists.

        Use `ScanIndex.build` to create the index from a reader.
        The index is owned by a single worker and discarded together with its reader.

        Parameters
        ----------
        reader : RawReader
            Open reader of the raw file, used to fetch peak lists on demand.
        records : list[ScanRecord]
            MS1 scans ordered by ascending scan number.
        """
        self._reader = reader
        self._records = records

        self._scans = np.array([r.scan for r in records], dtype=np.int64)
        self._rt_values = np.array([r.retention_time for r in records], dtype=np.float64)

    @classmethod
    def build(cls, reader: RawReader) -> "ScanIndex":
        """Enumerate all MS1 scans between the first and last spectrum of the reader."""
        first_scan = reader.first_spectrum_number()
        last_scan = reader.last_spectrum_number()

        records = [
            ScanRecord(scan, reader.retention_time(scan))
            for scan in range(first_scan, last_scan + 1)
            if reader.ms_level(scan) == 1
        ]

        index = cls(reader, records)
        if len(index) > 1 and np.any(np.diff(index._rt_values) < 0):
            logger.warning(
                "Retention times of MS1 scans are not monotonic, master scan lookup may be inaccurate."
            )

        logger.info(
            f"Indexed {len(records):,} MS1 scans between spectrum {first_scan} and {last_scan}"
        )
        return index

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> ScanRecord:
        return self._records[index]

    @property
    def scans(self) -> np.ndarray:
        return self._scans

    @property
    def rt_values(self) -> np.ndarray:
        return self._rt_values

    def peaks_at(self, index: int) -> tuple[np.ndarray, np.ndarray]:
        """Peak list (m/z, intensity) of the MS1 scan at `index`, read from the raw file only once."""
        record = self._records[index]
        if record.peaks is None:
            record.peaks = self._reader.peak_list(record.scan)
        return record.peaks

    def retention_time_at(self, scan: int) -> float:
        """Retention time of an MS1 scan given by its scan number.

        Raises
        ------
        KeyError
            if `scan` is not an MS1 scan of this file
        """
        position = int(np.searchsorted(self._scans, scan))
        if position >= len(self._scans) or self._scans[position] != scan:
            raise KeyError(f"Scan {scan} is not an MS1 scan")
        return float(self._rt_values[position])

    def master_index_for(self, retention_time: float) -> int:
        """Index of the first MS1 scan with a retention time at or after `retention_time`.

        Scans sharing a retention time are ordered by scan number, the lowest one wins.
        A retention time beyond the last scan resolves to the last scan.
        Lookups are binary searches on the retention times, the query order does not matter.
        """
        n_records = len(self._records)
        if n_records == 0:
            raise IndexError("Cannot resolve a master scan in a file without MS1 scans")

        position = int(np.searchsorted(self._rt_values, retention_time, side="left"))
        return min(position, n_records - 1)

    def index_for_scan(self, scan: int) -> int:
        """Index of the last MS1 scan with a scan number at or below `scan`, the precursor scan of an MS2 spectrum."""
        if len(self._records) == 0:
            raise IndexError("Cannot resolve a master scan in a file without MS1 scans")

        position = int(np.searchsorted(self._scans, scan, side="right")) - 1
        return max(position, 0)

    def resolve_identified_scan(self, retention_time: float) -> int:
        """Derive the scan number of an identification which only carries a retention time.

        The result is the spectrum following the last MS1 scan acquired at or before `retention_time`.
        """
        position = int(np.searchsorted(self._rt_values, retention_time, side="right")) - 1
        return int(self._scans[max(position, 0)]) + 1
