import os
import threading
from unittest.mock import MagicMock

import numpy as np
import pytest
from conftest import mock_profile, mock_reader, regular_rt_values

from alphaxic.exceptions import MissingRawFileError, OperationCancelledError
from alphaxic.reporting.reporting import ProgressReporter
from alphaxic.scheduler import FileScheduler, find_raw_files, resolve_raw_files
from alphaxic.workflow.config import Config


def _config(thread_count=2, minimum_scan_count=5):
    config = Config.default()
    config.update(
        [
            Config(
                {
                    "general": {"thread_count": thread_count},
                    "extraction": {"minimum_scan_count": minimum_scan_count},
                },
                name="test",
            )
        ]
    )
    return config


def _reader_factory(*args, **kwargs):
    return mock_reader(regular_rt_values(41), np.full(41, 1000.0))


def _file_groups(tmp_path, experiments=("exp1", "exp2")):
    file_groups = {}
    for experiment in experiments:
        profiles = [
            mock_profile(10.0, scan=22, experiment=experiment, peptide_id="PEPTIDEK"),
            mock_profile(10.1, scan=24, experiment=experiment, peptide_id="PEPTIDEK"),
            mock_profile(10.0, scan=22, experiment=experiment, peptide_id="OTHERK"),
        ]
        for profile in profiles:
            profile.file_name = os.path.join(
                str(tmp_path), experiment, f"{profile.peptide_id}.chro.tsv"
            )
            profile.sub_file_name = os.path.join(
                str(tmp_path), experiment, "sub", f"{profile.peptide_id}.chro.sub.tsv"
            )
        file_groups[experiment] = profiles
    return file_groups


def _raw_files(experiments=("exp1", "exp2")):
    return {e: [f"/raw/{e}.raw"] for e in experiments}


def test_find_raw_files(tmp_path):
    os.makedirs(os.path.join(tmp_path, "nested"))
    for name in ["Exp1.raw", "nested/exp2.mzML", "notes.txt", "nested/exp1.RAW"]:
        with open(os.path.join(tmp_path, name), "w") as f:
            f.write("")

    raw_files = find_raw_files(str(tmp_path), [".raw", ".mzml"])

    assert sorted(raw_files) == ["exp1", "exp2"]
    assert len(raw_files["exp1"]) == 2
    assert raw_files["exp2"] == [os.path.join(str(tmp_path), "nested", "exp2.mzML")]


def test_resolve_raw_files_lists_all_problems():
    raw_files = {"exp1": ["/raw/exp1.raw"], "exp3": ["/a/exp3.raw", "/b/exp3.raw"]}

    with pytest.raises(MissingRawFileError) as e:
        resolve_raw_files(["exp1", "exp2", "exp3", "exp4"], raw_files, "/raw")

    assert e.value.missing == ["exp2", "exp4"]
    assert list(e.value.ambiguous) == ["exp3"]


def test_resolve_raw_files():
    assert resolve_raw_files(["exp1"], {"exp1": ["/raw/exp1.raw"]}) == {
        "exp1": "/raw/exp1.raw"
    }


def test_run(tmp_path):
    scheduler = FileScheduler(_config(), str(tmp_path), reader_factory=_reader_factory)

    rows = scheduler.run(_file_groups(tmp_path), _raw_files())

    # one main profile per peptide and file, the second PEPTIDEK candidate shares the apex
    assert len(rows) == 4
    assert [r.output_path for r in rows] == sorted(r.output_path for r in rows)
    assert {(r.experiment, r.peptide_id) for r in rows} == {
        ("exp1", "PEPTIDEK"),
        ("exp1", "OTHERK"),
        ("exp2", "PEPTIDEK"),
        ("exp2", "OTHERK"),
    }
    for row in rows:
        assert os.path.exists(row.output_path)


def _written_files(folder):
    written = {}
    for root, _, files in os.walk(folder):
        for name in files:
            path = os.path.join(root, name)
            with open(path, "rb") as f:
                written[path] = f.read()
    return written


def test_run_is_idempotent(tmp_path):
    first = FileScheduler(_config(), str(tmp_path), reader_factory=_reader_factory).run(
        _file_groups(tmp_path), _raw_files()
    )
    first_files = _written_files(tmp_path)
    second = FileScheduler(_config(), str(tmp_path), reader_factory=_reader_factory).run(
        _file_groups(tmp_path), _raw_files()
    )
    second_files = _written_files(tmp_path)

    assert first == second
    assert any(path.endswith(".chro.tsv") for path in first_files)
    assert any(path.endswith(".json") for path in first_files)
    assert first_files == second_files


def test_run_missing_raw_file_before_any_work(tmp_path):
    reader_factory = MagicMock()
    scheduler = FileScheduler(_config(), str(tmp_path), reader_factory=reader_factory)

    with pytest.raises(MissingRawFileError) as e:
        scheduler.run(_file_groups(tmp_path), {})

    assert e.value.missing == ["exp1", "exp2"]
    reader_factory.assert_not_called()


def test_run_reraises_first_worker_error(tmp_path):
    lock = threading.Lock()
    opened = []

    def failing_reader_factory(raw_file):
        with lock:
            opened.append(raw_file)
        if raw_file == "/raw/exp1.raw":
            raise OSError("cannot read exp1")
        return _reader_factory()

    scheduler = FileScheduler(
        _config(), str(tmp_path), reader_factory=failing_reader_factory
    )

    with pytest.raises(OSError, match="cannot read exp1"):
        scheduler.run(_file_groups(tmp_path), _raw_files())

    # siblings are not cancelled
    assert sorted(opened) == ["/raw/exp1.raw", "/raw/exp2.raw"]
    assert os.path.exists(os.path.join(tmp_path, "exp2", "PEPTIDEK.chro.tsv"))


def test_run_cancelled(tmp_path):
    progress = ProgressReporter()
    progress.request_cancellation()
    reader_factory = MagicMock()
    scheduler = FileScheduler(
        _config(), str(tmp_path), reader_factory=reader_factory, progress=progress
    )

    with pytest.raises(OperationCancelledError):
        scheduler.run(_file_groups(tmp_path), _raw_files())

    reader_factory.assert_not_called()


def test_run_without_ms1_scans(tmp_path):
    def reader_factory(raw_file):
        return mock_reader([1.0, 2.0], [0, 0], [2, 2])

    scheduler = FileScheduler(_config(), str(tmp_path), reader_factory=reader_factory)

    assert scheduler.run(_file_groups(tmp_path), _raw_files()) == []


def test_run_resolves_scans_from_retention_time(tmp_path):
    profile = mock_profile(10.0, scan=0)
    scheduler = FileScheduler(
        _config(thread_count=1), str(tmp_path), reader_factory=_reader_factory
    )

    rows = scheduler.run({"exp1": [profile]}, _raw_files(["exp1"]))

    # spectrum after the last MS1 scan at or before 10.0 min (scan 21)
    assert profile.identified_scan == 22
    assert rows[0].identified_scan == 22
    assert rows[0].output_path == os.path.join(
        str(tmp_path), "chros", "exp1", "exp1_PEPTIDEK_500_22.chro.tsv"
    )
