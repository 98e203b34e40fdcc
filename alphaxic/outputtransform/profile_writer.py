"""Writing of chromatographic profiles and of the manifest consumed by the boundary fitting step."""

import json
import logging
import os

import numpy as np
import pandas as pd

from alphaxic.constants.keys import ManifestCols, OutputFiles, ProfileCols
from alphaxic.profile.containers import ChromatographProfile, ManifestRow

logger = logging.getLogger()


def get_profile_paths(
    output_folder: str,
    experiment: str,
    sequence: str,
    theoretical_mz: float,
    identified_scan: int,
) -> tuple[str, str]:
    """Output paths of the main and the sub profile of an identification.

    Returns
    -------
    tuple[str, str]
        `<output>/chros/<experiment>/<experiment>_<sequence>_<mz>_<scan>.chro.tsv` and
        `<output>/chros/<experiment>/sub/<experiment>_<sequence>_<mz>_<scan>.chro.sub.tsv`
    """
    experiment = experiment.replace(" ", "_")
    target_folder = os.path.join(
        os.path.abspath(output_folder), OutputFiles.PROFILE_FOLDER_NAME, experiment
    )
    stem = f"{experiment}_{sequence}_{int(round(float(theoretical_mz)))}_{identified_scan}"

    file_name = os.path.join(target_folder, stem + OutputFiles.PROFILE_SUFFIX)
    sub_file_name = os.path.join(
        target_folder,
        OutputFiles.SUB_FOLDER_NAME,
        os.path.splitext(stem + OutputFiles.PROFILE_SUFFIX)[0]
        + OutputFiles.SUB_PROFILE_SUFFIX,
    )
    return file_name, sub_file_name


def profile_to_df(profile: ChromatographProfile) -> pd.DataFrame:
    """Scan table of a profile with one column per tracked isotope."""
    intensity_matrix = profile.intensity_matrix()

    df = pd.DataFrame(
        {
            ProfileCols.SCAN: np.array([s.scan for s in profile.scans], dtype=np.int64),
            ProfileCols.RETENTION_TIME: np.array(
                [s.retention_time for s in profile.scans], dtype=np.float64
            ),
        }
    )
    for i in range(intensity_matrix.shape[1]):
        df[f"{ProfileCols.ISOTOPE_PREFIX}{i}"] = intensity_matrix[:, i]
    df[ProfileCols.IDENTIFIED] = np.array(
        [s.identified for s in profile.scans], dtype=bool
    )

    return df


def profile_to_dict(profile: ChromatographProfile) -> dict:
    """Self-describing representation of a profile including its identity."""
    return {
        "experiment": profile.experiment,
        "sequence": profile.sequence,
        "peptide_id": profile.peptide_id,
        "charge": int(profile.charge),
        "theoretical_mz": float(profile.theoretical_mz),
        "observed_mz": float(profile.observed_mz),
        "identified_scan": int(profile.identified_scan),
        "identified_retention_time": float(profile.identified_retention_time),
        "isotopic_reference": [float(i) for i in profile.reference.intensities],
        "scans": [
            {
                ProfileCols.SCAN: int(s.scan),
                ProfileCols.RETENTION_TIME: float(s.retention_time),
                "isotope_intensities": [float(i) for i in s.isotope_intensities],
                ProfileCols.IDENTIFIED: bool(s.identified),
            }
            for s in profile.scans
        ],
    }


class ProfileWriter:
    """Persist the accepted profiles of a peptide identity group."""

    def write(self, profile: ChromatographProfile, path: str) -> None:
        """Write the scan table to `path` and the structured export to `path` + '.json'."""
        os.makedirs(os.path.dirname(path), exist_ok=True)

        profile_to_df(profile).to_csv(path, sep="\t", index=False)

        with open(path + OutputFiles.STRUCTURED_SUFFIX, "w") as f:
            json.dump(profile_to_dict(profile), f, indent=2)

    def write_group(self, profiles: list[ChromatographProfile]) -> ManifestRow | None:
        """Write the main profile (first) and all sub profiles of a group.

        Returns
        -------
        ManifestRow | None
            The manifest row of the main profile, None for an empty group.
        """
        for i, profile in enumerate(profiles):
            self.write(profile, profile.file_name if i == 0 else profile.sub_file_name)

        if not profiles:
            return None
        return ManifestRow.from_profile(profiles[0])


def manifest_to_df(rows: list[ManifestRow]) -> pd.DataFrame:
    """Manifest table sorted by output path."""
    rows = sorted(rows, key=lambda row: row.output_path)

    return pd.DataFrame(
        {
            ManifestCols.DIRECTORY: [
                os.path.dirname(row.output_path).replace("\\", "/") for row in rows
            ],
            ManifestCols.FILE: [
                os.path.splitext(os.path.basename(row.output_path))[0] for row in rows
            ],
            ManifestCols.EXPERIMENT: [row.experiment for row in rows],
            ManifestCols.PEPTIDE_ID: [row.peptide_id for row in rows],
            ManifestCols.THEORETICAL_MZ: [row.theoretical_mz for row in rows],
            ManifestCols.CHARGE: [row.charge for row in rows],
            ManifestCols.IDENTIFIED_SCAN: [row.identified_scan for row in rows],
        },
        columns=ManifestCols.get_values(),
    )


def write_manifest(rows: list[ManifestRow], path: str) -> None:
    """Write the manifest table handed to the boundary fitting step."""
    df = manifest_to_df(rows)
    df.to_csv(path, sep="\t", index=False)
    logger.info(f"Written manifest with {len(df):,} profiles to {path}")
