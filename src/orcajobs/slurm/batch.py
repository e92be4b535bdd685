"""
Dispatch for ``orcajobs submit``.

TARGET is a single input file or one of the batch keywords:

    all     every input in the current directory, no prompts
    conall  same, confirming each job
    dir     every input in every subdirectory, no prompts
    condir  same, confirming each job

Any failure aborts the remaining batch.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from orcajobs.config import Settings
from orcajobs.errors import UsageError
from orcajobs.logs import get_logger
from orcajobs.schemas.models import ResourceRequest
from orcajobs.slurm.script import write_job_script
from orcajobs.slurm.submit import submit_script
from orcajobs.slurm.validate import inspect_input, validate_request

log = get_logger("batch")

USAGE = "usage: orcajobs submit <input-file>|all|dir|conall|condir [hours] [partition] [account]"

# keyword -> (descend into subdirectories, confirm each job)
BATCH_MODES = {
    "all":    (False, False),
    "conall": (False, True),
    "dir":    (True, False),
    "condir": (True, True),
}


def iter_inputs(directory: Path, settings: Settings) -> Iterator[Path]:
    yield from sorted(p for p in Path(directory).glob(f"*{settings.input_ext}") if p.is_file())


def iter_subdirs(directory: Path) -> Iterator[Path]:
    yield from sorted(p for p in Path(directory).iterdir() if p.is_dir() and not p.name.startswith("."))


def submit_one(
    input_file: Path,
    request: ResourceRequest,
    settings: Settings,
    *,
    confirm: bool,
    overwrite: Optional[bool] = None,
    dry_run: bool = False,
) -> Optional[str]:
    """Inspect, render and submit a single input. Returns the SLURM job id if known."""
    job = inspect_input(input_file, request, settings)
    script = write_job_script(job, settings, overwrite=overwrite)
    return submit_script(script, confirm=confirm, dry_run=dry_run)


def collect_targets(target: str, cwd: Path, settings: Settings) -> Tuple[List[Path], Optional[bool]]:
    """
    Resolve TARGET to the list of inputs to submit.

    The second element is the per-job confirmation of the batch mode, or
    None for single-file mode (confirmation then follows the settings).
    """
    if target in BATCH_MODES:
        recurse, confirm = BATCH_MODES[target]
        dirs = list(iter_subdirs(cwd)) if recurse else [cwd]
        files: List[Path] = []
        for d in dirs:
            files.extend(iter_inputs(d, settings))
        return files, confirm
    return [cwd / target], None


def run_batch(
    target: Optional[str],
    settings: Settings,
    hours: Optional[str] = None,
    partition: Optional[str] = None,
    account: Optional[str] = None,
    *,
    cwd: Optional[Path] = None,
    assume_yes: bool = False,
    overwrite: Optional[bool] = None,
    dry_run: bool = False,
) -> List[Optional[str]]:
    if not target:
        raise UsageError(USAGE)

    cwd = Path(cwd) if cwd else Path.cwd()
    request = validate_request(settings, hours, partition, account)

    files, confirm = collect_targets(target, cwd, settings)
    if confirm is None:
        confirm = settings.confirm_submit
    if assume_yes:
        confirm = False
        overwrite = True

    if not files:
        log.info("no %s files found for '%s'", settings.input_ext, target)

    job_ids: List[Optional[str]] = []
    for inp in files:
        log.debug("processing %s", inp)
        job_ids.append(
            submit_one(inp, request, settings, confirm=confirm, overwrite=overwrite, dry_run=dry_run)
        )
    return job_ids
