import numpy as np
import pandas as pd

from alphaxic.profile.containers import ChromatographProfile
from alphaxic.profile.isotopes import averagine_reference
from alphaxic.raw_data.alpharaw_wrapper import SpectrumDataFrameReader

PEPTIDE_MZ = 500.0
PEPTIDE_CHARGE = 2

# unrelated peak present in every scan
NOISE_PEAK = (300.0, 50.0)


def mock_profile(
    retention_time: float,
    scan: int = 1,
    peptide_id: str = "PEPTIDEK",
    experiment: str = "exp1",
    mz: float = PEPTIDE_MZ,
    charge: int = PEPTIDE_CHARGE,
) -> ChromatographProfile:
    """Create an empty profile as it is seeded from an identification."""
    return ChromatographProfile(
        experiment=experiment,
        sequence=peptide_id,
        peptide_id=peptide_id,
        charge=charge,
        theoretical_mz=mz,
        observed_mz=mz,
        identified_scan=scan,
        identified_retention_time=retention_time,
        reference=averagine_reference(mz, charge, 5.0, 4),
        file_name=f"/out/chros/{experiment}/{experiment}_{peptide_id}_{round(mz)}_{scan}.chro.tsv",
        sub_file_name=f"/out/chros/{experiment}/sub/{experiment}_{peptide_id}_{round(mz)}_{scan}.chro.sub.tsv",
    )


def envelope_peaks(
    scale: float,
    mz: float = PEPTIDE_MZ,
    charge: int = PEPTIDE_CHARGE,
) -> tuple[np.ndarray, np.ndarray]:
    """Peaks of a perfect isotopic envelope scaled to `scale`, empty if `scale` is 0."""
    if scale <= 0:
        return np.empty(0), np.empty(0)
    reference = averagine_reference(mz, charge, 5.0, 4)
    return reference.isotope_mzs.copy(), reference.intensities * scale


def mock_spectrum_dfs(
    rt_values: list[float] | np.ndarray,
    scales: list[float] | np.ndarray,
    ms_levels: list[int] | np.ndarray | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Create alpharaw style spectrum and peak dataframes.

    Parameters
    ----------
    rt_values : list[float]
        Retention time of each spectrum in minutes.
    scales : list[float]
        Intensity of the envelope of the mock peptide in each spectrum, 0 means no envelope.
    ms_levels : list[int], optional
        Acquisition level of each spectrum, all MS1 by default. MS2 spectra only contain the noise peak.

    Returns
    -------
    tuple[pd.DataFrame, pd.DataFrame]
        spectrum_df and peak_df
    """
    n_spectra = len(rt_values)
    if ms_levels is None:
        ms_levels = np.ones(n_spectra, dtype=np.int64)

    mz_list, intensity_list, start_idx, stop_idx = [], [], [], []
    n_peaks = 0
    for scale, ms_level in zip(scales, ms_levels, strict=True):
        mz, intensity = envelope_peaks(scale if ms_level == 1 else 0)
        mz = np.concatenate([[NOISE_PEAK[0]], mz])
        intensity = np.concatenate([[NOISE_PEAK[1]], intensity])

        mz_list.append(mz)
        intensity_list.append(intensity)
        start_idx.append(n_peaks)
        n_peaks += len(mz)
        stop_idx.append(n_peaks)

    spectrum_df = pd.DataFrame(
        {
            "spec_idx": np.arange(n_spectra),
            "rt": np.asarray(rt_values, dtype=np.float64),
            "ms_level": np.asarray(ms_levels, dtype=np.int64),
            "peak_start_idx": start_idx,
            "peak_stop_idx": stop_idx,
        }
    )
    peak_df = pd.DataFrame(
        {
            "mz": np.concatenate(mz_list),
            "intensity": np.concatenate(intensity_list),
        }
    )
    return spectrum_df, peak_df


def mock_reader(
    rt_values: list[float] | np.ndarray,
    scales: list[float] | np.ndarray,
    ms_levels: list[int] | np.ndarray | None = None,
) -> SpectrumDataFrameReader:
    return SpectrumDataFrameReader(*mock_spectrum_dfs(rt_values, scales, ms_levels))


def regular_rt_values(n_scans: int, start: float = 9.0, step: float = 0.05):
    """Equally spaced retention times, rounded to avoid accumulated floating point errors."""
    return np.round(start + np.arange(n_scans) * step, 4)

