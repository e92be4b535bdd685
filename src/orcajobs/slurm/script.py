"""
Batch-script generation for a single ORCA input.

The script lives next to the input as ``<stem>.sh``; sbatch is later run
from that directory so only basenames appear inside it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from orcajobs.config import Settings
from orcajobs.errors import ConfirmationDeclined
from orcajobs.logs import get_logger
from orcajobs.prompts import ask_yes_no
from orcajobs.schemas.models import JobRequest
from orcajobs.slurm.render import render_template

log = get_logger("script")

SBATCH_TEMPLATE = "sbatch/orca_job.sbatch.j2"


def script_path_for(input_file: Path, settings: Settings) -> Path:
    input_file = Path(input_file)
    return input_file.with_suffix(settings.script_ext)


def script_params(job: JobRequest, settings: Settings) -> Dict[str, Any]:
    inp = Path(job.input_file)
    return {
        "partition": job.partition,
        "account": job.account,
        "cpus": job.cpus,
        "hours": job.hours,
        "job_name": inp.stem,
        "module": settings.module,
        "program": settings.program,
        "inp_basename": inp.name,
        "out_basename": inp.with_suffix(settings.output_ext).name,
    }


def render_job_script(job: JobRequest, settings: Settings) -> str:
    return render_template(SBATCH_TEMPLATE, None, script_params(job, settings), return_text=True)


def write_job_script(
    job: JobRequest,
    settings: Settings,
    *,
    overwrite: Optional[bool] = None,
) -> Path:
    """
    Render the batch script for ``job``.

    An existing script is replaced silently when ``overwrite`` (or
    ``settings.overwrite_scripts``) is set; otherwise the user must confirm.
    Declining raises ConfirmationDeclined and leaves the file untouched.
    """
    script = script_path_for(Path(job.input_file), settings)
    if overwrite is None:
        overwrite = settings.overwrite_scripts

    if script.exists():
        if not overwrite and not ask_yes_no(f"{script.name} already exists. Overwrite?"):
            raise ConfirmationDeclined(f"Not overwriting {script}")
        log.info("replacing %s", script.name)
        script.unlink()

    render_template(SBATCH_TEMPLATE, script, script_params(job, settings))
    log.debug("wrote %s", script)
    return script
