import dataclasses

import pytest
import yaml
from typer.testing import CliRunner

from orcajobs.cli import app
from orcajobs.config import PartitionLimits, Settings, load_settings, settings_from_dict
from orcajobs.errors import ConfigError


runner = CliRunner()


def test_builtin_defaults_when_no_file():
    s = load_settings()
    assert s == Settings()
    assert s.limits("teaching") == PartitionLimits(max_cpus=16, max_hours=24, max_mem_per_core=2000)


def test_settings_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        Settings().default_hours = 1


def test_yaml_overrides(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(yaml.safe_dump({
        "default_account": "grp-smith",
        "module": "orca/6.0.1",
        "partitions": {"bigmem": {"max_hours": 168}},
        "split_keywords": {"sp": "! r2SCAN-3c"},
    }))

    s = load_settings(cfg)

    assert s.default_account == "grp-smith"
    assert s.module == "orca/6.0.1"
    assert s.limits("bigmem") == PartitionLimits(40, 168, 16000)
    assert s.limits("standard") == Settings().limits("standard")
    assert s.split_keywords["sp"] == "! r2SCAN-3c"
    assert s.split_keywords["opt"] == Settings().split_keywords["opt"]


def test_env_var_points_to_config(tmp_path, monkeypatch):
    cfg = tmp_path / "env.yaml"
    cfg.write_text("default_hours: 6\n")
    monkeypatch.setenv("ORCAJOBS_CONFIG", str(cfg))
    assert load_settings().default_hours == 6


@pytest.mark.parametrize(
    "data, match",
    [
        ({"walltime": 3}, "Unknown config keys"),
        ({"partitions": {"gpu": {"max_cpus": 4}}}, "Unknown partition"),
        ({"partitions": {"standard": {"max_gpus": 4}}}, "Unknown keys"),
        ({"partitions": {"standard": {"max_cpus": "many"}}}, "integers"),
        ({"partitions": []}, "mapping"),
        ({"partitions": {"standard": {"max_hours": 1.5}}}, "integers"),
        ({"default_hours": "soon"}, "default_hours"),
        ({"confirm_submit": "maybe"}, "confirm_submit"),
        ({"module": ["orca", "openmpi"]}, "module"),
    ],
)
def test_bad_config_rejected(data, match):
    with pytest.raises(ConfigError, match=match):
        settings_from_dict(data)


def test_yaml_strings_are_coerced_to_field_types():
    s = settings_from_dict({"confirm_submit": "no", "overwrite_scripts": "yes", "default_hours": "6"})
    assert s.confirm_submit is False
    assert s.overwrite_scripts is True
    assert s.default_hours == 6


def test_missing_explicit_config(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


def test_config_init_roundtrip(tmp_path):
    path = tmp_path / "orcajobs.yaml"
    result = runner.invoke(app, ["config-init", str(path)])
    assert result.exit_code == 0, result.output
    assert load_settings(path) == Settings()

    again = runner.invoke(app, ["config-init", str(path)])
    assert again.exit_code != 0


def test_bad_config_exits_1(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("- just\n- a list\n")
    result = runner.invoke(app, ["--config", str(cfg), "config-show"])
    assert result.exit_code == 1
    assert "mapping" in result.output


def test_config_show_json():
    result = runner.invoke(app, ["config-show", "--json"])
    assert result.exit_code == 0
    assert '"default_partition": "standard"' in result.output


def test_mistyped_config_value_exits_1(tmp_path, make_inp, monkeypatch):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("default_hours: soon\n")
    monkeypatch.chdir(tmp_path)
    make_inp(tmp_path / "w.inp")
    result = runner.invoke(app, ["--config", str(cfg), "submit", "w.inp", "--yes", "--dry-run"])
    assert result.exit_code == 1
    assert "default_hours" in result.output
