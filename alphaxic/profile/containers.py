"""Containers for chromatographic profiles and the manifest rows derived from them."""

from dataclasses import dataclass, field

import numpy as np

from alphaxic.profile.isotopes import IsotopicReference


@dataclass
class ProfileScan:
    """Isotopic envelope of a precursor observed in a single MS1 scan."""

    scan: int
    retention_time: float
    isotope_intensities: np.ndarray
    identified: bool = False


@dataclass
class ChromatographProfile:
    """Chromatographic profile of one identified precursor in one raw file.

    A profile is created for every identification before any scan is searched.
    Scans are appended by the walker and are ordered by ascending scan number once the profile is finished.
    Exactly one scan of a finished, non-empty profile is marked as identified: the master scan.
    """

    experiment: str
    sequence: str
    peptide_id: str
    charge: int
    theoretical_mz: float
    observed_mz: float
    identified_scan: int
    identified_retention_time: float
    reference: IsotopicReference = field(repr=False)
    file_name: str = ""
    sub_file_name: str = ""
    scans: list[ProfileScan] = field(default_factory=list, repr=False)

    def __len__(self) -> int:
        return len(self.scans)

    @property
    def master_scan(self) -> ProfileScan | None:
        """The scan closest to the identification, None for an empty profile."""
        for profile_scan in self.scans:
            if profile_scan.identified:
                return profile_scan
        return None

    def contains_scan(self, scan: int) -> bool:
        return any(profile_scan.scan == scan for profile_scan in self.scans)

    def intensity_matrix(self) -> np.ndarray:
        """Isotope intensities as array of shape (n_scans, n_isotopes)."""
        if not self.scans:
            return np.zeros((0, self.reference.n_isotopes), dtype=np.float64)
        return np.vstack([s.isotope_intensities for s in self.scans])


@dataclass(frozen=True)
class ManifestRow:
    """One row of the manifest consumed by the boundary fitting step, one per main profile."""

    output_path: str
    experiment: str
    peptide_id: str
    theoretical_mz: float
    charge: int
    identified_scan: int

    @classmethod
    def from_profile(cls, profile: ChromatographProfile) -> "ManifestRow":
        return cls(
            output_path=profile.file_name,
            experiment=profile.experiment,
            peptide_id=profile.peptide_id,
            theoretical_mz=profile.theoretical_mz,
            charge=profile.charge,
            identified_scan=profile.identified_scan,
        )
