import json
import os

import numpy as np
import pandas as pd
import pytest
from conftest import mock_profile

from alphaxic.outputtransform.profile_writer import (
    ProfileWriter,
    get_profile_paths,
    manifest_to_df,
    profile_to_df,
    write_manifest,
)
from alphaxic.profile.containers import ManifestRow, ProfileScan


def _filled_profile(tmp_path, retention_time=10.0, scan=21, n_scans=3):
    profile = mock_profile(retention_time, scan=scan)
    profile.file_name, profile.sub_file_name = get_profile_paths(
        str(tmp_path), profile.experiment, profile.sequence, profile.theoretical_mz, scan
    )
    for i in range(n_scans):
        profile.scans.append(
            ProfileScan(
                scan - 1 + i,
                retention_time + (i - 1) * 0.05,
                profile.reference.intensities * 100.0 * (i + 1),
                identified=(i == 1),
            )
        )
    return profile


def test_get_profile_paths(tmp_path):
    file_name, sub_file_name = get_profile_paths(
        str(tmp_path), "my exp", "PEPTIDEK", 500.4, 1234
    )

    assert file_name == os.path.join(
        str(tmp_path), "chros", "my_exp", "my_exp_PEPTIDEK_500_1234.chro.tsv"
    )
    assert sub_file_name == os.path.join(
        str(tmp_path), "chros", "my_exp", "sub", "my_exp_PEPTIDEK_500_1234.chro.sub.tsv"
    )


def test_profile_to_df(tmp_path):
    profile = _filled_profile(tmp_path)

    df = profile_to_df(profile)

    n_isotopes = profile.reference.n_isotopes
    assert list(df.columns) == ["scan", "retentionTime"] + [
        f"isotope_{i}" for i in range(n_isotopes)
    ] + ["identified"]
    assert df["scan"].tolist() == [20, 21, 22]
    assert df["identified"].tolist() == [False, True, False]
    np.testing.assert_allclose(df["isotope_0"], [100.0, 200.0, 300.0])


def test_write_creates_table_and_structured_export(tmp_path):
    profile = _filled_profile(tmp_path)

    ProfileWriter().write(profile, profile.file_name)

    df = pd.read_csv(profile.file_name, sep="\t")
    assert len(df) == 3
    assert df["identified"].sum() == 1

    with open(profile.file_name + ".json") as f:
        exported = json.load(f)
    assert exported["peptide_id"] == "PEPTIDEK"
    assert exported["identified_scan"] == 21
    assert len(exported["scans"]) == 3
    assert exported["scans"][1]["identified"] is True
    assert len(exported["isotopic_reference"]) == profile.reference.n_isotopes


def test_write_group(tmp_path):
    main = _filled_profile(tmp_path, scan=21, n_scans=5)
    sub = _filled_profile(tmp_path, retention_time=20.0, scan=221, n_scans=3)

    row = ProfileWriter().write_group([main, sub])

    assert os.path.exists(main.file_name)
    assert not os.path.exists(main.sub_file_name)
    assert os.path.exists(sub.sub_file_name)
    assert not os.path.exists(sub.file_name)
    assert row == ManifestRow.from_profile(main)


def test_write_group_empty():
    assert ProfileWriter().write_group([]) is None


def test_manifest_is_sorted_by_output_path():
    rows = [
        ManifestRow("/out/chros/b/b_PEPK_500_3.chro.tsv", "b", "PEPK", 500.0, 2, 3),
        ManifestRow("/out/chros/a/a_PEPK_500_9.chro.tsv", "a", "PEPK", 500.0, 2, 9),
    ]

    df = manifest_to_df(rows)

    assert list(df.columns) == [
        "directory",
        "file",
        "experiment",
        "peptideId",
        "theoreticalMz",
        "charge",
        "identifiedScan",
    ]
    assert df["experiment"].tolist() == ["a", "b"]
    assert df["directory"].tolist() == ["/out/chros/a", "/out/chros/b"]
    assert df["file"].tolist() == ["a_PEPK_500_9.chro", "b_PEPK_500_3.chro"]


@pytest.mark.parametrize("reverse", [False, True])
def test_write_manifest_is_idempotent(tmp_path, reverse):
    rows = [
        ManifestRow(f"/out/chros/e/e_PEP{i}K_500_{i}.chro.tsv", "e", f"PEP{i}K", 500.0, 2, i)
        for i in range(5)
    ]
    if reverse:
        rows = rows[::-1]

    first_path = os.path.join(tmp_path, "first.tsv")
    second_path = os.path.join(tmp_path, "second.tsv")
    write_manifest(rows, first_path)
    write_manifest(rows[::-1], second_path)

    with open(first_path) as f1, open(second_path) as f2:
        assert f1.read() == f2.read()


def test_written_headers(tmp_path):
    profile = _filled_profile(tmp_path)
    ProfileWriter().write(profile, profile.file_name)
    manifest_path = os.path.join(tmp_path, "chros.tsv")
    write_manifest([ManifestRow.from_profile(profile)], manifest_path)

    with open(profile.file_name) as f:
        profile_header = f.readline().rstrip("\n")
    with open(manifest_path) as f:
        manifest_header = f.readline().rstrip("\n")

    isotope_columns = "\t".join(
        f"isotope_{i}" for i in range(profile.reference.n_isotopes)
    )
    assert profile_header == f"scan\tretentionTime\t{isotope_columns}\tidentified"
    assert (
        manifest_header
        == "directory\tfile\texperiment\tpeptideId\ttheoreticalMz\tcharge\tidentifiedScan"
    )
