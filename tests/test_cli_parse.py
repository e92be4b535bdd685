import json

import pytest
from typer.testing import CliRunner

from orcajobs.cli import app

from test_parse import OPT_OUT, SLURM_LOG, SP_OUT


runner = CliRunner()


@pytest.fixture
def results(tmp_path, monkeypatch):
    (tmp_path / "water_sp.out").write_text(SP_OUT)
    (tmp_path / "water_opt.out").write_text(OPT_OUT)
    (tmp_path / "water_opt_atom1.out").write_text(SP_OUT)
    (tmp_path / "water_opt-77.out").write_text(SLURM_LOG)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_parse_single_file_verbose(results):
    result = runner.invoke(app, ["parse", "water_opt.out"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "water_opt.out: geometry optimization + frequencies"
    assert lines[1].startswith("Final Gibbs free energy")
    assert lines[2].startswith("G-E(el)")


def test_parse_single_unknown_file_is_silent(results):
    result = runner.invoke(app, ["parse", "water_opt-77.out"])
    assert result.exit_code == 0
    assert result.output == ""


def test_parse_missing_file_exits_1(results):
    result = runner.invoke(app, ["parse", "ghost.out"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_parse_directory_condensed(results):
    result = runner.invoke(app, ["parse"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("water_opt.out  Final Gibbs free energy")
    assert lines[1] == "water_sp.out  FINAL SINGLE POINT ENERGY -76.412345678901"


def test_parse_dir_mode(tmp_path, monkeypatch):
    for name, text in (("a", SP_OUT), ("b", OPT_OUT)):
        (tmp_path / name).mkdir()
        (tmp_path / name / f"{name}.out").write_text(text)
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["parse", "dir"])

    assert result.exit_code == 0, result.output
    assert [l.split()[0] for l in result.output.splitlines()] == ["a.out", "b.out"]


def test_parse_writes_csv_and_jsonl(results):
    result = runner.invoke(app, ["parse", "--csv", "out/energies.csv", "--jsonl", "out/energies.jsonl"])
    assert result.exit_code == 0, result.output
    assert (results / "out" / "energies.csv").read_text().count("\n") == 3
    recs = [json.loads(l) for l in (results / "out" / "energies.jsonl").read_text().splitlines()]
    assert {r["job_type"] for r in recs} == {"single_point", "optimization"}
