"""Parallel extraction of chromatographic profiles over many raw files."""

import logging
import multiprocessing.pool
import os
import threading
from collections.abc import Callable

from tqdm import tqdm

from alphaxic.constants.keys import ConfigKeys
from alphaxic.exceptions import MissingRawFileError
from alphaxic.outputtransform.profile_writer import ProfileWriter, get_profile_paths
from alphaxic.profile.containers import ChromatographProfile, ManifestRow
from alphaxic.profile.deduplication import ApexDeduplicator, group_by_peptide
from alphaxic.profile.envelope import EnvelopeFinder, ObservedEnvelopeFinder
from alphaxic.profile.walker import ProfileWalker
from alphaxic.raw_data.alpharaw_wrapper import get_raw_reader
from alphaxic.raw_data.interface import RawReader
from alphaxic.raw_data.scan_index import ScanIndex
from alphaxic.reporting.reporting import ProgressReporter
from alphaxic.utils import get_thread_count

logger = logging.getLogger()


def find_raw_files(raw_directory: str, extensions: list[str]) -> dict[str, list[str]]:
    """Recursively collect the raw files below `raw_directory`.

    Returns
    -------
    dict[str, list[str]]
        Paths keyed by the lower-cased file name without extension.
    """
    extensions = {e.lower() for e in extensions}
    raw_files: dict[str, list[str]] = {}

    for root, _, files in os.walk(raw_directory):
        for file in sorted(files):
            stem, extension = os.path.splitext(file)
            if extension.lower() in extensions:
                raw_files.setdefault(stem.lower(), []).append(os.path.join(root, file))

    logger.info(
        f"Found {sum(len(v) for v in raw_files.values()):,} raw files in {raw_directory}"
    )
    return raw_files


def resolve_raw_files(
    experiments: list[str], raw_files: dict[str, list[str]], raw_directory: str = ""
) -> dict[str, str]:
    """Map every experiment to exactly one raw file.

    Raises
    ------
    MissingRawFileError
        listing all experiments without a raw file and all experiments with more than one raw file
    """
    missing = [e for e in experiments if e not in raw_files]
    ambiguous = {
        e: raw_files[e] for e in experiments if e in raw_files and len(raw_files[e]) > 1
    }

    if missing or ambiguous:
        raise MissingRawFileError(raw_directory, missing, ambiguous)

    return {e: raw_files[e][0] for e in experiments}


class FileScheduler:
    def __init__(
        self,
        config: dict,
        output_folder: str,
        reader_factory: Callable[[str], RawReader] = get_raw_reader,
        progress: ProgressReporter | None = None,
        writer: ProfileWriter | None = None,
        envelope_finder: EnvelopeFinder | None = None,
    ):
        """Run the profile extraction of each raw file in its own worker thread.

        Parameters
        ----------
        config : dict
            Full configuration, the `general` and `extraction` sections are used.
        output_folder : str
            Root folder of the profile files.
        reader_factory : Callable[[str], RawReader], optional
            Opens a raw file, by default the alpharaw based reader.
        progress : ProgressReporter, optional
            Receives progress messages and signals cancellation.
        writer : ProfileWriter, optional
            Persists the accepted profiles.
        envelope_finder : EnvelopeFinder, optional
            Envelope matching strategy, by default the observed isotope m/z series is matched.
        """
        self._config = config
        self._output_folder = output_folder
        self._reader_factory = reader_factory
        self._progress = progress if progress is not None else ProgressReporter()
        self._writer = writer if writer is not None else ProfileWriter()
        self._envelope_finder = (
            envelope_finder if envelope_finder is not None else ObservedEnvelopeFinder()
        )

        self._lock = threading.Lock()
        self._rows: list[ManifestRow] = []
        self._first_error: BaseException | None = None
        self._progress_bar: tqdm | None = None

    def run(
        self,
        file_groups: dict[str, list[ChromatographProfile]],
        raw_files: dict[str, list[str]],
    ) -> list[ManifestRow]:
        """Extract, deduplicate and write the profiles of all raw files.

        Parameters
        ----------
        file_groups : dict[str, list[ChromatographProfile]]
            Profiles keyed by lower-cased experiment name.
        raw_files : dict[str, list[str]]
            Raw file paths keyed by lower-cased file name without extension.

        Returns
        -------
        list[ManifestRow]
            One row per main profile, sorted by output path.

        Raises
        ------
        MissingRawFileError
            before any file is processed, if an experiment has no or more than one raw file
        OperationCancelledError
            if cancellation was requested
        Exception
            the first error raised by a worker, after all workers finished
        """
        raw_directory = self._config.get(ConfigKeys.RAW_DIRECTORY) or ""
        raw_file_map = resolve_raw_files(list(file_groups), raw_files, raw_directory)

        self._rows = []
        self._first_error = None

        if not file_groups:
            return []

        thread_count = get_thread_count(
            self._config[ConfigKeys.GENERAL][ConfigKeys.THREAD_COUNT], len(file_groups)
        )
        logger.progress(
            f"Extracting profiles from {len(file_groups):,} raw files using {thread_count} threads"
        )

        self._progress_bar = tqdm(total=len(file_groups), desc="raw files")
        with multiprocessing.pool.ThreadPool(thread_count) as pool:
            for experiment, profiles in file_groups.items():
                pool.apply_async(
                    self._process_file,
                    (raw_file_map[experiment], profiles),
                    callback=self._collect,
                    error_callback=self._record_error,
                )
            pool.close()
            pool.join()
        self._progress_bar.close()

        if self._first_error is not None:
            raise self._first_error

        return sorted(self._rows, key=lambda row: row.output_path)

    def _collect(self, rows: list[ManifestRow]) -> None:
        with self._lock:
            self._rows.extend(rows)
            self._progress_bar.update(1)

    def _record_error(self, error: BaseException) -> None:
        with self._lock:
            if self._first_error is None:
                self._first_error = error
            self._progress_bar.update(1)
        logger.error(f"Extraction of a raw file failed: {error}")

    def _process_file(
        self, raw_file: str, profiles: list[ChromatographProfile]
    ) -> list[ManifestRow]:
        """Extract all profiles of one raw file and write the accepted ones."""
        self._progress.raise_if_cancelled()
        self._progress.set_message(f"Reading full ms list from {raw_file} ...")

        extraction = self._config[ConfigKeys.EXTRACTION]
        rows = []

        with self._reader_factory(raw_file) as reader:
            scan_index = ScanIndex.build(reader)
            if len(scan_index) == 0:
                logger.warning(f"No MS1 scan found in {raw_file}, skipping file")
                return rows

            self._resolve_identified_scans(scan_index, profiles)

            walker = ProfileWalker(
                scan_index,
                self._envelope_finder,
                extraction[ConfigKeys.MZ_TOLERANCE_PPM],
                extraction[ConfigKeys.RETENTION_TIME_WINDOW],
                extraction[ConfigKeys.MINIMUM_CORRELATION],
                progress=self._progress,
            )
            deduplicator = ApexDeduplicator(
                scan_index, walker, extraction[ConfigKeys.MINIMUM_SCAN_COUNT]
            )

            self._progress.set_message(
                f"Extracting {len(profiles):,} profiles from {os.path.basename(raw_file)} ..."
            )
            for candidates in group_by_peptide(profiles).values():
                row = self._writer.write_group(deduplicator.build_group(candidates))
                if row is not None:
                    rows.append(row)

        logger.info(
            f"Accepted {len(rows):,} main profiles from {os.path.basename(raw_file)}"
        )
        return rows

    def _resolve_identified_scans(
        self, scan_index: ScanIndex, profiles: list[ChromatographProfile]
    ) -> None:
        """Assign scan numbers and output paths to identifications given only by retention time."""
        for profile in profiles:
            if profile.identified_scan != 0 or profile.identified_retention_time <= 0:
                continue

            profile.identified_scan = scan_index.resolve_identified_scan(
                profile.identified_retention_time
            )
            profile.file_name, profile.sub_file_name = get_profile_paths(
                self._output_folder,
                profile.experiment,
                profile.sequence,
                profile.theoretical_mz,
                profile.identified_scan,
            )
