import os

import pytest

from alphaxic.exceptions import MalformedIdentificationError, NoIdentificationError
from alphaxic.identification import create_profiles, load_identifications

HEADER = "experiment\tsequence\tmodified_sequence\tcharge\ttheoretical_mz\tobserved_mz\tscan\tretention_time\n"


def _write(tmp_path, content: str, name="identifications.tsv") -> str:
    path = os.path.join(tmp_path, name)
    with open(path, "w") as f:
        f.write(content)
    return path


def test_load_identifications(tmp_path):
    path = _write(
        tmp_path,
        HEADER
        + "Exp1\tPEPTIDEK\tPEPTM(ox)IDEK\t2\t500.25\t500.26\t1200\t10.5\n"
        + "Exp1\tPEPTIDEK\t\t3\t333.5\t333.5\t1300\t10.9\n",
    )

    df = load_identifications(path)

    assert len(df) == 2
    assert df["peptide_id"].tolist() == ["PEPTM(ox)IDEK", "PEPTIDEK"]
    assert df["charge"].tolist() == [2, 3]
    assert df["scan"].tolist() == [1200, 1300]


def test_load_identifications_without_modified_sequence(tmp_path):
    path = _write(
        tmp_path,
        "experiment\tsequence\tcharge\ttheoretical_mz\tobserved_mz\tscan\tretention_time\n"
        + "Exp1\tPEPTIDEK\t2\t500.25\t500.26\t1200\t10.5\n",
    )

    df = load_identifications(path)

    assert df["peptide_id"].tolist() == ["PEPTIDEK"]


def test_load_identifications_predicted_retention_time(tmp_path):
    path = _write(
        tmp_path,
        "experiment\tsequence\tcharge\ttheoretical_mz\tobserved_mz\tpredicted_rt\n"
        + "Exp1\tPEPTIDEK\t2\t500.25\t500.26\t42.0\n",
    )

    df = load_identifications(path)

    assert df["retention_time"].tolist() == [42.0]
    assert df["scan"].tolist() == [0]


def test_load_identifications_predicted_rt_replaces_observed(tmp_path):
    path = _write(
        tmp_path,
        HEADER.rstrip("\n")
        + "\tpredicted_rt\n"
        + "Exp1\tPEPTIDEK\tPEPTIDEK\t2\t500.25\t500.26\t1200\t10.5\t12.5\n",
    )

    df = load_identifications(path)

    assert df["retention_time"].tolist() == [12.5]
    assert df["scan"].tolist() == [0]


def test_load_identifications_empty_file(tmp_path):
    with pytest.raises(NoIdentificationError):
        load_identifications(_write(tmp_path, ""))


def test_load_identifications_header_only(tmp_path):
    with pytest.raises(NoIdentificationError):
        load_identifications(_write(tmp_path, HEADER))


def test_load_identifications_missing_columns(tmp_path):
    path = _write(tmp_path, "experiment\tsequence\nExp1\tPEPTIDEK\n")

    with pytest.raises(MalformedIdentificationError) as e:
        load_identifications(path)

    assert e.value.problems == [
        "Missing column: charge",
        "Missing column: theoretical_mz",
        "Missing column: observed_mz",
        "Missing column: scan",
        "Missing column: retention_time",
    ]


def test_load_identifications_lists_all_invalid_rows(tmp_path):
    path = _write(
        tmp_path,
        HEADER
        + "Exp1\tPEPTIDEK\tPEPTIDEK\t2\t500.25\t500.26\t1200\t10.5\n"
        + "Exp1\tPEPTIDEK\tPEPTIDEK\t0\t500.25\t500.26\t1200\t10.5\n"
        + "Exp1\tPEPTIDEK\tPEPTIDEK\t2\t-1\t500.26\t-5\t10.5\n"
        + "Exp1\tPEPTIDEK\tPEPTIDEK\tabc\t500.25\t500.26\t1200\t10.5\n",
    )

    with pytest.raises(MalformedIdentificationError) as e:
        load_identifications(path)

    assert e.value.problems == [
        "line 3: non-positive charge",
        "line 4: non-positive theoretical m/z, negative scan",
        "line 5: missing or non-numeric value",
    ]


def test_create_profiles(tmp_path):
    path = _write(
        tmp_path,
        HEADER
        + "Exp1\tPEPTIDEK\tPEPTIDEK\t2\t500.25\t500.26\t1200\t10.5\n"
        + "exp2\tAAAK\tAAAK\t1\t390.2\t390.2\t50\t2.5\n"
        + "EXP1\tPEPTIDEK\tPEPTIDEK\t2\t500.25\t500.25\t1250\t10.8\n",
    )
    df = load_identifications(path)

    file_groups = create_profiles(df, str(tmp_path), 5.0, 4)

    assert list(file_groups) == ["exp1", "exp2"]
    assert [p.identified_scan for p in file_groups["exp1"]] == [1200, 1250]

    profile = file_groups["exp1"][0]
    assert profile.experiment == "Exp1"
    assert profile.charge == 2
    assert profile.identified_retention_time == 10.5
    assert len(profile) == 0
    assert profile.file_name == os.path.join(
        str(tmp_path), "chros", "Exp1", "Exp1_PEPTIDEK_500_1200.chro.tsv"
    )
    # identical precursors share their reference
    assert file_groups["exp1"][1].reference is profile.reference
