"""Theoretical isotope patterns of peptides."""

from dataclasses import dataclass, field

import numpy as np
from scipy.stats import poisson

from alphaxic.utils import ISOTOPE_DIFF, PROTON_MASS

AVERAGINE_MASS = 111.1254

# average number of atoms per averagine residue and natural abundance of their M+1 isotope
AVERAGINE_COMPOSITION = {
    "C": (4.9384, 0.0107),
    "H": (7.7583, 0.000115),
    "N": (1.3577, 0.00364),
    "O": (1.4773, 0.00038),
    "S": (0.0417, 0.0075),
}

HEAVY_ATOMS_PER_DALTON = (
    sum(count * abundance for count, abundance in AVERAGINE_COMPOSITION.values())
    / AVERAGINE_MASS
)


@dataclass(frozen=True, eq=False)
class IsotopicReference:
    """Expected relative intensities of the isotopic envelope of a precursor at one charge state.

    Parameters
    ----------
    mz : float
        Monoisotopic m/z.
    charge : int
        Charge state.
    intensities : np.ndarray
        Relative intensities starting at the monoisotopic peak, the most abundant isotope is 1.
    """

    mz: float
    charge: int
    intensities: np.ndarray = field(repr=False)

    def __post_init__(self):
        intensities = np.asarray(self.intensities, dtype=np.float64)
        intensities.setflags(write=False)
        object.__setattr__(self, "intensities", intensities)

    @property
    def n_isotopes(self) -> int:
        return len(self.intensities)

    @property
    def isotope_mzs(self) -> np.ndarray:
        """m/z of each tracked isotope."""
        return self.mz + np.arange(self.n_isotopes) * ISOTOPE_DIFF / self.charge


def averagine_distribution(neutral_mass: float, n_isotopes: int) -> np.ndarray:
    """Relative isotope intensities of a peptide approximated by the averagine model.

    The number of heavy atoms is Poisson distributed with a mean proportional to the mass.

    Parameters
    ----------
    neutral_mass : float
        Monoisotopic neutral mass in Da.
    n_isotopes : int
        Number of isotopes to return, starting at the monoisotopic peak.

    Returns
    -------
    np.ndarray
        Intensities relative to the most abundant of the returned isotopes.
    """
    expected_heavy_atoms = max(neutral_mass, 0.0) * HEAVY_ATOMS_PER_DALTON
    probabilities = poisson.pmf(np.arange(n_isotopes), expected_heavy_atoms)
    return probabilities / probabilities.max()


def averagine_reference(
    mz: float,
    charge: int,
    minimum_isotopic_percentage: float,
    profile_length: int,
) -> IsotopicReference:
    """Build the isotopic reference of an identified precursor.

    Isotopes are tracked from the monoisotopic peak onwards as long as their intensity is at least
    `minimum_isotopic_percentage` percent of the most abundant isotope,
    at most `profile_length` and never fewer than two isotopes.
    """
    neutral_mass = (mz - PROTON_MASS) * charge
    intensities = averagine_distribution(neutral_mass, profile_length)

    n_isotopes = 2
    while (
        n_isotopes < profile_length
        and intensities[n_isotopes] * 100 >= minimum_isotopic_percentage
    ):
        n_isotopes += 1

    return IsotopicReference(mz, charge, intensities[:n_isotopes])
