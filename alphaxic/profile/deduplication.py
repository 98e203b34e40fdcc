"""Deduplication of profiles of the same peptide which claim the same elution peak."""

import logging
from collections import defaultdict

from alphaxic.profile.containers import ChromatographProfile
from alphaxic.profile.walker import ProfileWalker
from alphaxic.raw_data.scan_index import ScanIndex

logger = logging.getLogger()


def group_by_peptide(
    profiles: list[ChromatographProfile],
) -> dict[str, list[ChromatographProfile]]:
    """Group the profiles of one raw file by peptide id, groups keep the order of first appearance."""
    groups = defaultdict(list)
    for profile in profiles:
        groups[profile.peptide_id].append(profile)
    return dict(groups)


class ApexDeduplicator:
    def __init__(
        self,
        scan_index: ScanIndex,
        walker: ProfileWalker,
        minimum_scan_count: int,
    ):
        """Build the profiles of a peptide identity group without extracting the same elution peak twice.

        Parameters
        ----------
        scan_index : ScanIndex
            MS1 scans of the raw file.
        walker : ProfileWalker
            Walker used to fill the profiles.
        minimum_scan_count : int
            Profiles with fewer scans are dropped.
        """
        self._scan_index = scan_index
        self._walker = walker
        self._minimum_scan_count = minimum_scan_count

    def build_group(
        self, candidates: list[ChromatographProfile]
    ) -> list[ChromatographProfile]:
        """Walk the candidates of one group and return the accepted profiles.

        Candidates are processed by ascending identification retention time.
        A candidate whose master scan is already part of a profile of the group is skipped.

        Returns
        -------
        list[ChromatographProfile]
            Profiles with at least `minimum_scan_count` scans, ordered by descending scan count.
            The first one is the main profile of the group, all others are sub profiles.
        """
        built: list[ChromatographProfile] = []

        for candidate in sorted(
            candidates,
            key=lambda p: (p.identified_retention_time, p.identified_scan),
        ):
            master_index = self._walker.master_index(candidate)
            master_scan = self._scan_index[master_index].scan

            if any(profile.contains_scan(master_scan) for profile in built):
                logger.debug(
                    f"Skipping {candidate.peptide_id} (scan {candidate.identified_scan}): "
                    f"master scan {master_scan} already covered"
                )
                continue

            self._walker.walk(candidate, master_index)
            built.append(candidate)

        accepted = [
            profile for profile in built if len(profile) >= self._minimum_scan_count
        ]
        accepted.sort(key=len, reverse=True)

        return accepted
