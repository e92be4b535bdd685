"""
orca-jobs | submit.py

Hand a rendered batch script to sbatch, optionally after a y/n prompt.
The scheduler's own exit status and output are reported, never raised;
only an sbatch that cannot be started at all is an error.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Optional

import typer

from orcajobs.errors import NotFound
from orcajobs.logs import get_logger
from orcajobs.prompts import ask_yes_no

log = get_logger("submit")

SBATCH = "sbatch"
JOBID_RE = re.compile(r"Submitted batch job (\d+)")


def sbatch(script: Path) -> Optional[str]:
    """Run sbatch from the script's directory and return the job id, if any."""
    script = Path(script).resolve()
    try:
        proc = subprocess.run(
            [SBATCH, script.name],
            cwd=str(script.parent),
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise NotFound(f"Could not run {SBATCH} ({exc.strerror}); is SLURM available on this host?") from None
    if proc.stdout.strip():
        typer.echo(proc.stdout.strip())
    if proc.returncode != 0:
        if proc.stderr.strip():
            typer.secho(proc.stderr.strip(), fg=typer.colors.RED, err=True)
        log.warning("%s exited with status %d for %s", SBATCH, proc.returncode, script.name)
        return None

    m = JOBID_RE.search(proc.stdout)
    jobid = m.group(1) if m else None
    typer.secho(f"Submitted {script.name}", fg=typer.colors.GREEN)
    return jobid


def submit_script(script: Path, *, confirm: bool, dry_run: bool = False) -> Optional[str]:
    """
    Submit ``script``.

    With ``confirm`` the user is asked first; "n" skips this job and is
    not an error. ``dry_run`` prints the script instead of submitting it.
    """
    script = Path(script)
    if confirm and not ask_yes_no(f"Submit {script.name}?"):
        typer.echo(f"Skipped {script.name}")
        log.debug("user skipped %s", script)
        return None

    if dry_run:
        typer.echo(f"\n--- SBATCH DRY RUN: {script.name} ---\n")
        typer.echo(script.read_text())
        return None

    return sbatch(script)
