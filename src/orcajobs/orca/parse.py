from __future__ import annotations
import re, pathlib
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from orcajobs.config import Settings
from orcajobs.errors import NotFound
from orcajobs.schemas.models import ResultRecord

# Run-type banners
SP_MARKER = "* Single Point Calculation *"
OPT_MARKER = "* Geometry Optimization Run *"

# Energy lines
SP_ENERGY_MARKER = "FINAL SINGLE POINT ENERGY"
GIBBS_MARKER = "Final Gibbs free energy"
G_CORR_MARKER = "G-E(el)"

# Helper outputs ORCA writes next to the main .out (atomic guesses)
SKIP_SUBSTRING = "atom"

_E_FLOAT = re.compile(r"[-+]?\d+\.\d+(?:[Ee][+-]?\d+)?")

Producer = Callable[[List[str]], List[Tuple[str, str]]]


def _last_line_with(lines: List[str], marker: str) -> Optional[str]:
    for line in reversed(lines):
        if marker in line:
            return line.rstrip()
    return None


def _first_float(line: str) -> Optional[float]:
    m = _E_FLOAT.search(line)
    return float(m.group(0)) if m else None


# Record key -> marker of the line carrying that value
ENERGY_MARKERS: Dict[str, str] = {
    "single_point_energy_Eh": SP_ENERGY_MARKER,
    "gibbs_free_energy_Eh": GIBBS_MARKER,
    "g_minus_eel_Eh": G_CORR_MARKER,
}


def _pick(lines: List[str], keys: List[str]) -> List[Tuple[str, str]]:
    out = []
    for key in keys:
        line = _last_line_with(lines, ENERGY_MARKERS[key])
        if line:
            out.append((key, line))
    return out


def _single_point(lines: List[str]) -> List[Tuple[str, str]]:
    return _pick(lines, ["single_point_energy_Eh"])


def _optimization(lines: List[str]) -> List[Tuple[str, str]]:
    return _pick(lines, ["gibbs_free_energy_Eh", "g_minus_eel_Eh"])


# Evaluated in order, first marker found wins.
RULES: List[Tuple[str, str, Producer]] = [
    (SP_MARKER, "single_point", _single_point),
    (OPT_MARKER, "optimization", _optimization),
]


def classify_text(text: str) -> Tuple[str, Optional[Producer]]:
    for marker, job_type, producer in RULES:
        if marker in text:
            return job_type, producer
    return "unknown", None


def extract_result(path: str | pathlib.Path) -> ResultRecord:
    p = pathlib.Path(path)
    if not p.is_file():
        raise NotFound(f"{p} not found")
    text = p.read_text(errors="ignore")

    job_type, producer = classify_text(text)
    if producer is None:
        return ResultRecord(file=str(p), job_type=job_type)

    found = producer(text.splitlines())
    return ResultRecord(
        file=str(p),
        job_type=job_type,
        lines=[line for _, line in found],
        energies={key: _first_float(line.split(ENERGY_MARKERS[key], 1)[-1]) for key, line in found},
    )


def iter_result_files(directory: pathlib.Path, settings: Settings) -> Iterator[pathlib.Path]:
    for p in sorted(pathlib.Path(directory).glob(f"*{settings.output_ext}")):
        if p.is_file() and SKIP_SUBSTRING not in p.name:
            yield p


def scan_results(directory: pathlib.Path, settings: Settings, *, recurse: bool = False) -> List[ResultRecord]:
    """Extract every output in ``directory`` (or in each of its subdirectories)."""
    directory = pathlib.Path(directory)
    if recurse:
        dirs = sorted(d for d in directory.iterdir() if d.is_dir() and not d.name.startswith("."))
    else:
        dirs = [directory]
    return [extract_result(p) for d in dirs for p in iter_result_files(d, settings)]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------
JOB_TYPE_LABELS: Dict[str, str] = {
    "single_point": "single point calculation",
    "optimization": "geometry optimization + frequencies",
    "unknown": "unrecognised output",
}


def format_verbose(rec: ResultRecord) -> List[str]:
    if rec.job_type == "unknown":
        return []
    name = pathlib.Path(rec.file).name
    out = [f"{name}: {JOB_TYPE_LABELS[rec.job_type]}"]
    out.extend(rec.lines)
    return out


def format_condensed(rec: ResultRecord) -> Optional[str]:
    if rec.job_type == "unknown":
        return None
    name = pathlib.Path(rec.file).name
    return "  ".join([name] + [" ".join(line.split()) for line in rec.lines])
