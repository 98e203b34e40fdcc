"""Reading of the identification table and creation of the profile seeds."""

import logging

import numpy as np
import pandas as pd

from alphaxic.constants.keys import IdentificationCols
from alphaxic.exceptions import MalformedIdentificationError, NoIdentificationError
from alphaxic.outputtransform.profile_writer import get_profile_paths
from alphaxic.profile.containers import ChromatographProfile
from alphaxic.profile.isotopes import averagine_reference

logger = logging.getLogger()

REQUIRED_COLUMNS = [
    IdentificationCols.EXPERIMENT,
    IdentificationCols.SEQUENCE,
    IdentificationCols.CHARGE,
    IdentificationCols.THEORETICAL_MZ,
    IdentificationCols.OBSERVED_MZ,
    IdentificationCols.SCAN,
    IdentificationCols.RETENTION_TIME,
]

NUMERIC_COLUMNS = [
    IdentificationCols.CHARGE,
    IdentificationCols.THEORETICAL_MZ,
    IdentificationCols.OBSERVED_MZ,
    IdentificationCols.SCAN,
    IdentificationCols.RETENTION_TIME,
]


def load_identifications(path: str) -> pd.DataFrame:
    """Read the tab separated list of identified spectra.

    If the header contains the `predicted_rt` column, the predicted retention time replaces the observed one
    and all scans are set to 0, they are resolved from the retention time once the raw file is indexed.

    Parameters
    ----------
    path : str
        Path to the identification table.

    Returns
    -------
    pd.DataFrame
        One row per identification with the required columns and the derived `peptide_id`.

    Raises
    ------
    NoIdentificationError
        if the table contains no identification
    MalformedIdentificationError
        if columns are missing or rows are invalid, all problems are listed
    """
    logger.info(f"Reading identifications from {path}")

    try:
        df = pd.read_csv(path, sep="\t")
    except pd.errors.EmptyDataError as e:
        raise NoIdentificationError(path) from e

    if IdentificationCols.PREDICTED_RT in df.columns:
        logger.info(
            "Found predicted retention times, scans will be resolved from the raw files"
        )
        df[IdentificationCols.RETENTION_TIME] = df[IdentificationCols.PREDICTED_RT]
        df[IdentificationCols.SCAN] = 0

    missing_columns = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing_columns:
        raise MalformedIdentificationError(
            path, [f"Missing column: {c}" for c in missing_columns]
        )

    if len(df) == 0:
        raise NoIdentificationError(path)

    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce")

    problems = _find_invalid_rows(df)
    if problems:
        raise MalformedIdentificationError(path, problems)

    df[IdentificationCols.EXPERIMENT] = df[IdentificationCols.EXPERIMENT].astype(str)
    df[IdentificationCols.SEQUENCE] = df[IdentificationCols.SEQUENCE].astype(str)
    df[IdentificationCols.CHARGE] = df[IdentificationCols.CHARGE].astype(np.int64)
    df[IdentificationCols.SCAN] = df[IdentificationCols.SCAN].astype(np.int64)

    if IdentificationCols.MODIFIED_SEQUENCE in df.columns:
        df[IdentificationCols.PEPTIDE_ID] = (
            df[IdentificationCols.MODIFIED_SEQUENCE]
            .fillna(df[IdentificationCols.SEQUENCE])
            .astype(str)
        )
    else:
        df[IdentificationCols.PEPTIDE_ID] = df[IdentificationCols.SEQUENCE]

    logger.info(
        f"Read {len(df):,} identifications of {df[IdentificationCols.PEPTIDE_ID].nunique():,} peptides "
        f"in {df[IdentificationCols.EXPERIMENT].nunique():,} experiments"
    )

    return df.reset_index(drop=True)


def _find_invalid_rows(df: pd.DataFrame) -> list[str]:
    """Describe every invalid row, lines are counted from the header line 1."""
    checks = [
        (df[REQUIRED_COLUMNS].isna().any(axis=1), "missing or non-numeric value"),
        (df[IdentificationCols.CHARGE] <= 0, "non-positive charge"),
        (
            (df[IdentificationCols.CHARGE] % 1).fillna(0) != 0,
            "charge is not an integer",
        ),
        (df[IdentificationCols.THEORETICAL_MZ] <= 0, "non-positive theoretical m/z"),
        (df[IdentificationCols.OBSERVED_MZ] <= 0, "non-positive observed m/z"),
        (df[IdentificationCols.SCAN] < 0, "negative scan"),
        (
            (df[IdentificationCols.SCAN] == 0)
            & (df[IdentificationCols.RETENTION_TIME] <= 0),
            "neither scan nor retention time given",
        ),
    ]

    reasons: dict[int, list[str]] = {}
    for mask, reason in checks:
        # comparisons with NaN are False, missing values are only reported once
        for position in np.flatnonzero(mask.to_numpy()):
            reasons.setdefault(int(position), []).append(reason)

    return [
        f"line {position + 2}: {', '.join(row_reasons)}"
        for position, row_reasons in sorted(reasons.items())
    ]


def create_profiles(
    df: pd.DataFrame,
    output_folder: str,
    minimum_isotopic_percentage: float,
    profile_length: int,
) -> dict[str, list[ChromatographProfile]]:
    """Create one empty profile per identification.

    Parameters
    ----------
    df : pd.DataFrame
        Identifications as returned by `load_identifications`.
    output_folder : str
        Root folder of the profile files.
    minimum_isotopic_percentage : float
        Isotopes below this percentage of the most abundant isotope are not tracked.
    profile_length : int
        Maximum number of tracked isotopes.

    Returns
    -------
    dict[str, list[ChromatographProfile]]
        Profiles keyed by the lower-cased experiment name, in order of first appearance.
    """
    references = {}
    file_groups: dict[str, list[ChromatographProfile]] = {}

    for row in df.itertuples(index=False):
        experiment = getattr(row, IdentificationCols.EXPERIMENT)
        sequence = getattr(row, IdentificationCols.SEQUENCE)
        charge = int(getattr(row, IdentificationCols.CHARGE))
        theoretical_mz = float(getattr(row, IdentificationCols.THEORETICAL_MZ))
        scan = int(getattr(row, IdentificationCols.SCAN))

        key = (theoretical_mz, charge)
        if key not in references:
            references[key] = averagine_reference(
                theoretical_mz, charge, minimum_isotopic_percentage, profile_length
            )

        file_name, sub_file_name = get_profile_paths(
            output_folder, experiment, sequence, theoretical_mz, scan
        )

        profile = ChromatographProfile(
            experiment=experiment,
            sequence=sequence,
            peptide_id=getattr(row, IdentificationCols.PEPTIDE_ID),
            charge=charge,
            theoretical_mz=theoretical_mz,
            observed_mz=float(getattr(row, IdentificationCols.OBSERVED_MZ)),
            identified_scan=scan,
            identified_retention_time=float(
                getattr(row, IdentificationCols.RETENTION_TIME)
            ),
            reference=references[key],
            file_name=file_name,
            sub_file_name=sub_file_name,
        )
        file_groups.setdefault(experiment.lower(), []).append(profile)

    return file_groups
