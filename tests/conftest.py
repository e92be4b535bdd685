import subprocess
from types import SimpleNamespace

import pytest


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Never pick up a real ~/.config/orcajobs/config.yaml."""
    monkeypatch.delenv("ORCAJOBS_CONFIG", raising=False)
    monkeypatch.setattr("orcajobs.config.USER_CONFIG", tmp_path / "no-such-config.yaml")


class FakeSbatch:
    """Stands in for subprocess.run; records (argv, cwd) per call."""

    def __init__(self):
        self.calls = []
        self.returncode = 0

    def __call__(self, cmd, cwd=None, capture_output=False, text=False, **kw):
        self.calls.append((list(cmd), cwd))
        if self.returncode == 0:
            jobid = 1000 + len(self.calls)
            return SimpleNamespace(returncode=0, stdout=f"Submitted batch job {jobid}\n", stderr="")
        return SimpleNamespace(
            returncode=self.returncode, stdout="", stderr="sbatch: error: invalid account\n"
        )

    @property
    def scripts(self):
        return [argv[-1] for argv, _ in self.calls]


@pytest.fixture
def fake_sbatch(monkeypatch):
    fake = FakeSbatch()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def write_inp(path, nprocs=8, maxcore=2000):
    path.parent.mkdir(parents=True, exist_ok=True)
    body = "! B3LYP def2-SVP\n"
    if nprocs is not None:
        body += f"%pal nprocs {nprocs} end\n"
    if maxcore is not None:
        body += f"%maxcore {maxcore}\n"
    body += "* xyz 0 1\nO 0.0 0.0 0.0\nH 0.0 0.0 0.96\nH 0.93 0.0 -0.24\n*\n"
    path.write_text(body)
    return path


@pytest.fixture
def make_inp():
    return write_inp
