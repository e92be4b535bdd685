# src/orcajobs/slurm/validate.py
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import typer

from orcajobs.config import PARTITION_NAMES, PartitionLimits, Settings
from orcajobs.errors import (
    InvalidFormat,
    InvalidInput,
    MissingField,
    NotFound,
    ResourceExceeded,
)
from orcajobs.logs import get_logger
from orcajobs.schemas.models import JobRequest, ResourceRequest

log = get_logger("validate")

HOURS_RE = re.compile(r"[0-9]+")

# %pal nprocs 8 end  |  nprocs 8 (inside a %pal block)  |  ! ... PAL8
NPROCS_RE = re.compile(r"^\s*(?:%pal\b.*?)?\bnprocs\s*=?\s*(\d+)", re.IGNORECASE | re.MULTILINE)
PAL_KEYWORD_RE = re.compile(r"^\s*!.*?\bPAL(\d+)\b", re.IGNORECASE | re.MULTILINE)
MAXCORE_RE = re.compile(r"^\s*%maxcore\s+(\d+)", re.IGNORECASE | re.MULTILINE)


def validate_request(
    settings: Settings,
    hours: Optional[str] = None,
    partition: Optional[str] = None,
    account: Optional[str] = None,
    *,
    echo: bool = True,
) -> ResourceRequest:
    """
    Check the requested wall time, partition and account, filling the
    omitted ones from ``settings``.
    """
    if hours is not None and not HOURS_RE.fullmatch(str(hours)):
        raise InvalidInput(f"Wall time must be a whole number of hours, got '{hours}'")

    if partition is not None and partition not in PARTITION_NAMES:
        raise InvalidInput(
            f"Unknown partition '{partition}'. Choose one of {list(PARTITION_NAMES)}"
        )

    part = partition or settings.default_partition
    limits = settings.limits(part)
    h = int(hours) if hours is not None else settings.default_hours

    if h > limits.max_hours:
        raise ResourceExceeded(
            f"Requested {h}h exceeds the {limits.max_hours}h limit of partition '{part}'"
        )

    if account is None:
        account = settings.teaching_account if part == settings.teaching_partition else settings.default_account

    is_teaching_account = account == settings.teaching_account
    is_teaching_partition = part == settings.teaching_partition
    if is_teaching_account != is_teaching_partition:
        raise InvalidInput(
            f"Account '{settings.teaching_account}' can only be used with partition "
            f"'{settings.teaching_partition}' (got account '{account}', partition '{part}')"
        )

    req = ResourceRequest(hours=h, partition=part, account=account)
    log.debug("resolved request %s", req)
    if echo:
        typer.echo(f"time={req.hours}h partition={req.partition} account={req.account}")
    return req


# ---------------------------------------------------------------------------
# Input inspection
# ---------------------------------------------------------------------------
def _read_cpus(text: str) -> Optional[int]:
    m = NPROCS_RE.search(text) or PAL_KEYWORD_RE.search(text)
    return int(m.group(1)) if m else None


def _read_maxcore(text: str) -> Optional[int]:
    m = MAXCORE_RE.search(text)
    return int(m.group(1)) if m else None


def check_limits(cpus: int, mem_per_core: int, limits: PartitionLimits, partition: str) -> None:
    if cpus <= 0 or cpus > limits.max_cpus:
        raise ResourceExceeded(
            f"nprocs={cpus} is outside 1..{limits.max_cpus} for partition '{partition}'"
        )
    if mem_per_core <= 0 or mem_per_core > limits.max_mem_per_core:
        raise ResourceExceeded(
            f"%maxcore {mem_per_core} MB is outside 1..{limits.max_mem_per_core} MB "
            f"for partition '{partition}'"
        )


def inspect_input(path: Path, request: ResourceRequest, settings: Settings) -> JobRequest:
    """Read the CPU count and per-core memory of an ORCA input and check them."""
    path = Path(path)
    if not path.is_file():
        raise NotFound(f"{path} not found")
    if path.suffix != settings.input_ext:
        raise InvalidFormat(f"{path.name}: expected a '{settings.input_ext}' file")

    text = path.read_text(errors="ignore")

    cpus = _read_cpus(text)
    if cpus is None:
        raise MissingField(f"{path.name}: no '%pal nprocs' directive found")
    mem = _read_maxcore(text)
    if mem is None:
        raise MissingField(f"{path.name}: no '%maxcore' directive found")

    check_limits(cpus, mem, settings.limits(request.partition), request.partition)

    log.debug("%s: nprocs=%d maxcore=%d", path.name, cpus, mem)
    return JobRequest(
        input_file=str(path),
        cpus=cpus,
        mem_per_core=mem,
        hours=request.hours,
        partition=request.partition,
        account=request.account,
    )
