import pytest

from orcajobs.config import Settings
from orcajobs.errors import ConfirmationDeclined
from orcajobs.schemas.models import JobRequest
from orcajobs.slurm import script as script_mod
from orcajobs.slurm.script import render_job_script, script_path_for, write_job_script


SETTINGS = Settings()


def _job(tmp_path, **overrides):
    base = dict(
        input_file=str(tmp_path / "water.inp"),
        cpus=8,
        mem_per_core=2000,
        hours=5,
        partition="standard",
        account="chem",
    )
    base.update(overrides)
    return JobRequest(**base)


def test_rendered_script_layout(tmp_path):
    text = render_job_script(_job(tmp_path), SETTINGS)
    lines = text.splitlines()

    assert lines[0] == "#!/bin/bash"
    directives = [l for l in lines if l.startswith("#SBATCH")]
    assert directives == [
        "#SBATCH --export=NONE",
        "#SBATCH --partition=standard",
        "#SBATCH --account=chem",
        "#SBATCH --ntasks=8",
        "#SBATCH --nodes=1",
        "#SBATCH --time=05:00:00",
        "#SBATCH --job-name=water",
        "#SBATCH --output=%x-%j.out",
    ]
    assert "module load orca" in lines
    assert lines[-1] == "$(which orca) water.inp > water.out"


def test_wall_time_two_digit_hours(tmp_path):
    text = render_job_script(_job(tmp_path, hours=48), SETTINGS)
    assert "#SBATCH --time=48:00:00" in text


def test_module_comes_from_settings(tmp_path):
    settings = Settings(module="orca/6.0.1")
    assert "module load orca/6.0.1" in render_job_script(_job(tmp_path), settings)


def test_script_path_swaps_extension(tmp_path):
    assert script_path_for(tmp_path / "a.b.inp", SETTINGS).name == "a.b.sh"


def test_write_creates_script_next_to_input(tmp_path):
    path = write_job_script(_job(tmp_path), SETTINGS)
    assert path == tmp_path / "water.sh"
    assert path.read_text().startswith("#!/bin/bash\n")


def test_existing_script_overwritten_when_configured(tmp_path):
    old = tmp_path / "water.sh"
    old.write_text("old\n")
    write_job_script(_job(tmp_path), Settings(overwrite_scripts=True))
    assert "#SBATCH" in old.read_text()


def test_declined_overwrite_leaves_script_untouched(tmp_path, monkeypatch):
    old = tmp_path / "water.sh"
    old.write_bytes(b"#!/bin/bash\necho previous\r\n")
    monkeypatch.setattr(script_mod, "ask_yes_no", lambda question: False)

    with pytest.raises(ConfirmationDeclined):
        write_job_script(_job(tmp_path), SETTINGS)

    assert old.read_bytes() == b"#!/bin/bash\necho previous\r\n"


def test_accepted_overwrite_regenerates(tmp_path, monkeypatch):
    old = tmp_path / "water.sh"
    old.write_text("old\n")
    asked = []
    monkeypatch.setattr(script_mod, "ask_yes_no", lambda question: asked.append(question) or True)

    write_job_script(_job(tmp_path, cpus=4), SETTINGS)

    assert asked and "water.sh" in asked[0]
    assert "#SBATCH --ntasks=4" in old.read_text()
