"""
orca-jobs | split.py

Split a multi-structure XYZ file (``../<root>.xyz``) into one ORCA input
per structure, each moved into its own directory ``<root><n>/``.

Records are fixed size: the atom count on the first line N gives
N + 2 lines per record (count line, comment line, N atoms).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from orcajobs.config import Settings
from orcajobs.errors import (
    EmptyInput,
    InvalidFormat,
    InvalidInput,
    NotFound,
    TooManyRecords,
)
from orcajobs.logs import get_logger
from orcajobs.slurm.batch import submit_one
from orcajobs.slurm.render import render_template
from orcajobs.slurm.validate import validate_request

log = get_logger("split")

JOB_TYPES = ("sp", "opt", "topt")
CHARGES = (-2, -1, 0, 1, 2)
MAX_RECORDS = 10_000
INPUT_TEMPLATE = "orca/split_input.inp.j2"

_POSITIVE_INT_RE = re.compile(r"[0-9]+")
_LINE_RE = re.compile(rb"[^\n]*\n|[^\n]+\Z")


@dataclass(frozen=True)
class SplitOptions:
    jobtype: str = "sp"
    cpus: int = 8
    charge: int = 0
    mult: int = 1


def _positive_int(value: str, what: str) -> int:
    value = str(value).strip()
    if not _POSITIVE_INT_RE.fullmatch(value) or int(value) < 1:
        raise InvalidInput(f"{what} must be a positive integer, got '{value}'")
    return int(value)


def parse_split_options(
    jobtype: Optional[str] = None,
    cpus: Optional[str] = None,
    charge: Optional[str] = None,
    mult: Optional[str] = None,
) -> SplitOptions:
    """Validate the positional split arguments; omitted ones take their defaults."""
    defaults = SplitOptions()

    jt = defaults.jobtype if jobtype is None else jobtype.strip().lower()
    if jt not in JOB_TYPES:
        raise InvalidInput(f"Unknown job type '{jobtype}'. Choose one of {list(JOB_TYPES)}")

    n_cpus = defaults.cpus if cpus is None else _positive_int(cpus, "CPU count")

    if charge is None:
        q = defaults.charge
    else:
        try:
            q = int(str(charge).strip())
        except ValueError:
            q = None
        if q not in CHARGES:
            raise InvalidInput(f"Charge must be one of {list(CHARGES)}, got '{charge}'")

    m = defaults.mult if mult is None else _positive_int(mult, "Multiplicity")

    return SplitOptions(jobtype=jt, cpus=n_cpus, charge=q, mult=m)


def suffix_width(n_records: int) -> int:
    if n_records < 10:
        return 1
    if n_records < 100:
        return 2
    if n_records < 1000:
        return 3
    if n_records < MAX_RECORDS:
        return 4
    raise TooManyRecords(f"{n_records} records; at most {MAX_RECORDS - 1} are supported")


def aggregate_path(root: str, workdir: Path) -> Path:
    return Path(workdir).parent / f"{root}.xyz"


def split_lines(data: bytes) -> List[bytes]:
    """Cut ``data`` after every ``\\n`` only; endings are kept."""
    return _LINE_RE.findall(data)


def read_aggregate(path: Path) -> Tuple[int, List[bytes]]:
    """
    Return (atom count, raw lines with their original endings).

    Raises EmptyInput for an empty file and InvalidFormat when the first
    line is not an atom count.
    """
    lines = split_lines(Path(path).read_bytes())
    if len(lines) < 1:
        raise EmptyInput(f"{path} is empty")
    head = lines[0].decode("ascii", errors="replace").strip()
    if not _POSITIVE_INT_RE.fullmatch(head) or int(head) < 1:
        raise InvalidFormat(f"{path}: first line must be the atom count, got '{head}'")
    return int(head), lines


def count_records(natoms: int, total_lines: int) -> int:
    if total_lines < 1:
        raise EmptyInput("aggregate file is empty")
    n = total_lines // (natoms + 2)
    if n >= MAX_RECORDS:
        raise TooManyRecords(f"{n} records; at most {MAX_RECORDS - 1} are supported")
    if n == 0:
        raise EmptyInput(f"{total_lines} line(s) do not hold one complete {natoms}-atom record")
    return n


def split_records(lines: List[bytes], natoms: int, root: str, workdir: Path) -> List[Path]:
    """Write every complete record to ``<root><suffix>`` and return the chunk paths."""
    workdir = Path(workdir)
    rec_len = natoms + 2
    n = count_records(natoms, len(lines))
    width = suffix_width(n)

    chunks = [workdir / f"{root}{i:0{width}d}" for i in range(1, n + 1)]
    taken = [c for c in chunks if c.exists()]
    if taken:
        raise InvalidInput(
            f"{taken[0].name} already exists in {workdir}; remove previous split output first"
        )

    for i, chunk in enumerate(chunks):
        chunk.write_bytes(b"".join(lines[i * rec_len:(i + 1) * rec_len]))
    log.debug("split %d records of %d lines (suffix width %d)", n, rec_len, width)
    return chunks


def _atom_lines(chunk: Path, natoms: int) -> List[str]:
    # The comment line is never decoded; atom lines must be text.
    atoms = []
    for raw in split_lines(chunk.read_bytes())[-natoms:]:
        try:
            atoms.append(raw.decode("utf-8").rstrip("\r\n"))
        except UnicodeDecodeError:
            raise InvalidFormat(f"{chunk.name}: atom line {raw!r} is not valid UTF-8") from None
    return atoms


def write_input(chunk: Path, natoms: int, opts: SplitOptions, settings: Settings) -> Path:
    """Turn one chunk into ``<chunk><input_ext>`` and delete the chunk."""
    atoms = _atom_lines(chunk, natoms)
    inp = chunk.with_name(chunk.name + settings.input_ext)
    render_template(
        INPUT_TEMPLATE,
        inp,
        {
            "keywords": settings.split_keywords[opts.jobtype],
            "cpus": opts.cpus,
            "maxcore": settings.split_maxcore,
            "charge": opts.charge,
            "mult": opts.mult,
            "geometry_block": "".join(a + "\n" for a in atoms),
        },
    )
    chunk.unlink()
    return inp


def relocate(inp: Path) -> Path:
    """Move ``<name>.inp`` into a new directory ``<name>/``."""
    jobdir = inp.parent / inp.stem
    jobdir.mkdir(exist_ok=True)
    inp.replace(jobdir / inp.name)
    return jobdir


def split_structures(
    root: str,
    opts: SplitOptions,
    settings: Settings,
    *,
    workdir: Optional[Path] = None,
) -> List[Path]:
    """
    Split ``../<root>.xyz`` into per-structure job directories under
    ``workdir`` (default: current directory). Returns the directories in
    record order.
    """
    workdir = Path(workdir) if workdir else Path.cwd()
    agg = aggregate_path(root, workdir)
    if not agg.is_file():
        raise NotFound(f"Aggregate coordinate file {agg} not found")

    natoms, lines = read_aggregate(agg)
    chunks = split_records(lines, natoms, root, workdir)
    inputs = [write_input(c, natoms, opts, settings) for c in chunks]
    dirs = [relocate(i) for i in inputs]

    typer.secho(f"Created {len(dirs)} job director{'y' if len(dirs) == 1 else 'ies'} from {agg.name}",
                fg=typer.colors.GREEN)
    return dirs


def submit_job_dirs(
    dirs: List[Path],
    settings: Settings,
    hours: str,
    *,
    confirm: bool,
    dry_run: bool = False,
) -> List[Optional[str]]:
    """Submit the input inside each split directory with the default partition/account."""
    request = validate_request(settings, hours)
    job_ids = []
    for d in dirs:
        inp = d / f"{d.name}{settings.input_ext}"
        job_ids.append(submit_one(inp, request, settings, confirm=confirm, dry_run=dry_run))
    return job_ids
