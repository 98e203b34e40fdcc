"""Bidirectional extension of a chromatographic profile from its master scan."""

from alphaxic.profile.containers import ChromatographProfile, ProfileScan
from alphaxic.profile.envelope import EnvelopeFinder, envelope_correlation
from alphaxic.raw_data.scan_index import ScanIndex
from alphaxic.reporting.reporting import ProgressReporter


class ProfileWalker:
    def __init__(
        self,
        scan_index: ScanIndex,
        envelope_finder: EnvelopeFinder,
        mz_tolerance_ppm: float,
        retention_time_window: float,
        minimum_correlation: float,
        progress: ProgressReporter | None = None,
    ):
        """Walk scan by scan away from the master scan while the isotopic envelope can be followed.

        Each direction stops at the first scan which is further than `retention_time_window` minutes from the
        master scan, or at the first scan without an envelope correlating at least `minimum_correlation` with the
        theoretical isotope pattern.

        Parameters
        ----------
        scan_index : ScanIndex
            MS1 scans of the raw file.
        envelope_finder : EnvelopeFinder
            Strategy to locate the envelope in a single scan.
        mz_tolerance_ppm : float
            Mass tolerance in ppm.
        retention_time_window : float
            Maximum distance from the master scan in minutes, in both directions.
        minimum_correlation : float
            Minimum pearson correlation between observed and theoretical isotope intensities.
        progress : ProgressReporter, optional
            Polled for cancellation before every scan.
        """
        self._scan_index = scan_index
        self._envelope_finder = envelope_finder
        self._mz_tolerance_ppm = mz_tolerance_ppm
        self._retention_time_window = retention_time_window
        self._minimum_correlation = minimum_correlation
        self._progress = progress

    def master_index(self, profile: ChromatographProfile) -> int:
        """Index of the master scan: the first MS1 scan at or after the identification retention time.

        Identifications without retention time are resolved by scan number to their preceding MS1 scan.
        """
        if profile.identified_retention_time > 0:
            return self._scan_index.master_index_for(profile.identified_retention_time)
        return self._scan_index.index_for_scan(profile.identified_scan)

    def walk(
        self, profile: ChromatographProfile, master_index: int | None = None
    ) -> ChromatographProfile:
        """Fill the scans of `profile`, ordered by ascending scan number.

        The profile stays empty if no envelope is found in the master scan.

        Raises
        ------
        OperationCancelledError
            if cancellation was requested while walking
        """
        if profile.scans:
            raise ValueError(f"Profile of {profile.peptide_id} was already walked")

        if master_index is None:
            master_index = self.master_index(profile)
        master_rt = self._scan_index[master_index].retention_time

        backward = []
        for index in range(master_index, -1, -1):
            self._poll_cancellation()

            if master_rt - self._scan_index[index].retention_time > self._retention_time_window:
                break

            envelope = self._envelope_at(profile, index)
            if envelope is None:
                break
            backward.append(envelope)

        if not backward:
            return profile

        backward[0].identified = True
        backward.reverse()
        profile.scans.extend(backward)

        for index in range(master_index + 1, len(self._scan_index)):
            self._poll_cancellation()

            if self._scan_index[index].retention_time - master_rt > self._retention_time_window:
                break

            envelope = self._envelope_at(profile, index)
            if envelope is None:
                break
            profile.scans.append(envelope)

        return profile

    def _poll_cancellation(self) -> None:
        if self._progress is not None:
            self._progress.raise_if_cancelled()

    def _envelope_at(
        self, profile: ChromatographProfile, index: int
    ) -> ProfileScan | None:
        """Envelope of the profile in the scan at `index` if it passes the correlation filter."""
        self._scan_index.peaks_at(index)

        envelope = self._envelope_finder.find(
            self._scan_index[index],
            profile,
            self._mz_tolerance_ppm,
            profile.reference.n_isotopes,
        )
        if envelope is None:
            return None

        if envelope_correlation(envelope, profile.reference) < self._minimum_correlation:
            return None

        return envelope
