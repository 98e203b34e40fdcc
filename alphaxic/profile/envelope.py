"""Matching of isotopic envelopes in MS1 peak lists."""

from abc import ABC, abstractmethod

import numba as nb
import numpy as np

from alphaxic.profile.containers import ChromatographProfile, ProfileScan
from alphaxic.profile.isotopes import IsotopicReference
from alphaxic.raw_data.scan_index import ScanRecord
from alphaxic.utils import USE_NUMBA_CACHING


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def match_isotopes(
    mz_values: np.ndarray,
    intensity_values: np.ndarray,
    isotope_mzs: np.ndarray,
    ppm_tolerance: float,
) -> np.ndarray:
    """Find the most intense peak within the ppm tolerance of each expected isotope.

    Parameters
    ----------
    mz_values : np.ndarray
        m/z values of the peak list, sorted ascending.
    intensity_values : np.ndarray
        Intensities of the peak list.
    isotope_mzs : np.ndarray
        Expected m/z of each isotope, sorted ascending.
    ppm_tolerance : float
        Tolerance in parts per million of each expected m/z.

    Returns
    -------
    np.ndarray
        Matched intensity per isotope, 0 where no peak was found.
    """
    n_isotopes = len(isotope_mzs)
    n_peaks = len(mz_values)
    matched = np.zeros(n_isotopes, dtype=np.float64)

    if n_peaks == 0 or n_isotopes == 0:
        return matched

    first_lower = isotope_mzs[0] * (1.0 - ppm_tolerance * 1e-6)
    j = np.searchsorted(mz_values, first_lower)

    for i in range(n_isotopes):
        mz_tol = isotope_mzs[i] * ppm_tolerance * 1e-6
        lower = isotope_mzs[i] - mz_tol
        upper = isotope_mzs[i] + mz_tol

        while j < n_peaks and mz_values[j] < lower:
            j += 1

        k = j
        while k < n_peaks and mz_values[k] <= upper:
            if intensity_values[k] > matched[i]:
                matched[i] = intensity_values[k]
            k += 1

    return matched


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def pearson_correlation(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation of two vectors, 0 for fewer than two values or zero variance."""
    n = len(x)
    if n < 2 or n != len(y):
        return 0.0

    x_mean = np.mean(x)
    y_mean = np.mean(y)

    xy_sum = 0.0
    xx_sum = 0.0
    yy_sum = 0.0
    for i in range(n):
        dx = x[i] - x_mean
        dy = y[i] - y_mean
        xy_sum += dx * dy
        xx_sum += dx * dx
        yy_sum += dy * dy

    if xx_sum == 0 or yy_sum == 0:
        return 0.0

    return xy_sum / np.sqrt(xx_sum * yy_sum)


def envelope_correlation(
    envelope: ProfileScan, reference: IsotopicReference
) -> float:
    """Correlation of the observed isotope intensities with the theoretical pattern."""
    n = min(len(envelope.isotope_intensities), reference.n_isotopes)
    return pearson_correlation(
        np.ascontiguousarray(envelope.isotope_intensities[:n], dtype=np.float64),
        np.ascontiguousarray(reference.intensities[:n], dtype=np.float64),
    )


class EnvelopeFinder(ABC):
    """Strategy to locate the isotopic envelope of a profile in a single MS1 scan."""

    @abstractmethod
    def find(
        self,
        scan: ScanRecord,
        profile: ChromatographProfile,
        ppm_tolerance: float,
        isotope_count: int,
    ) -> ProfileScan | None:
        """Return the envelope observed in `scan` or None if there is none.

        The peaks of `scan` have to be loaded.
        """


class ObservedEnvelopeFinder(EnvelopeFinder):
    """Match the theoretical isotope m/z series of a profile against the peaks of a scan.

    The envelope is rejected if the monoisotopic peak is missing.
    Missing higher isotopes are reported with zero intensity.
    """

    def find(
        self,
        scan: ScanRecord,
        profile: ChromatographProfile,
        ppm_tolerance: float,
        isotope_count: int,
    ) -> ProfileScan | None:
        if scan.peaks is None:
            raise ValueError(f"Peaks of scan {scan.scan} are not loaded")

        mz_values, intensity_values = scan.peaks
        isotope_mzs = profile.reference.isotope_mzs[:isotope_count]

        intensities = match_isotopes(
            np.ascontiguousarray(mz_values, dtype=np.float64),
            np.ascontiguousarray(intensity_values, dtype=np.float64),
            isotope_mzs,
            float(ppm_tolerance),
        )

        if intensities[0] <= 0:
            return None

        return ProfileScan(scan.scan, scan.retention_time, intensities)
