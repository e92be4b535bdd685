from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from orcajobs.config import USER_CONFIG, Settings, dump_settings, load_settings
from orcajobs.data.io import jsonl_append, records_to_csv
from orcajobs.errors import OrcaJobsError, UsageError
from orcajobs.logs import get_logger, set_verbose
from orcajobs.orca.parse import extract_result, format_condensed, format_verbose, scan_results
from orcajobs.orca.split import parse_split_options, split_structures, submit_job_dirs
from orcajobs.prompts import ask_hours, ask_yes_no
from orcajobs.slurm.batch import run_batch
from orcajobs.slurm.validate import validate_request

app = typer.Typer(help="orca-jobs CLI: submit, split and parse ORCA jobs on SLURM")
log = get_logger("cli")


@contextmanager
def _fatal_errors():
    """Print any OrcaJobsError and exit with its status."""
    try:
        yield
    except OrcaJobsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=exc.exit_code)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    set_verbose(verbose)
    with _fatal_errors():
        ctx.obj = load_settings(config)


# -----------------------------
# submit
# -----------------------------
@app.command()
def submit(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="Input file, or all | conall | dir | condir"),
    hours: Optional[str] = typer.Argument(None, help="Wall time in whole hours"),
    partition: Optional[str] = typer.Argument(None, help="standard | bigmem | teaching"),
    account: Optional[str] = typer.Argument(None, help="SLURM account"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Never prompt: overwrite scripts and submit"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing batch scripts silently"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write scripts but do not call sbatch"),
):
    """Validate resources, write <input>.sh and submit it with sbatch."""
    settings = _settings(ctx)
    with _fatal_errors():
        job_ids = run_batch(
            target,
            settings,
            hours,
            partition,
            account,
            assume_yes=yes,
            overwrite=True if overwrite else None,
            dry_run=dry_run,
        )
    submitted = [j for j in job_ids if j]
    log.info("%d job(s) processed, %d submitted", len(job_ids), len(submitted))


# -----------------------------
# split
# -----------------------------
@app.command(context_settings={"ignore_unknown_options": True})
def split(
    ctx: typer.Context,
    root: Optional[str] = typer.Argument(None, help="Base name of ../<root>.xyz"),
    jobtype: Optional[str] = typer.Argument(None, help="sp | opt | topt (default sp)"),
    cpus: Optional[str] = typer.Argument(None, help="nprocs per job (default 8)"),
    charge: Optional[str] = typer.Argument(None, help="-2..2 (default 0)"),
    mult: Optional[str] = typer.Argument(None, help="Spin multiplicity (default 1)"),
    submit_now: Optional[bool] = typer.Option(None, "--submit/--no-submit", help="Skip the submit prompt"),
    hours: Optional[str] = typer.Option(None, "--hours", help="Wall time for submitted jobs"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not confirm each submission"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write scripts but do not call sbatch"),
):
    """Split ../ROOT.xyz into one ORCA job directory per structure."""
    settings = _settings(ctx)
    with _fatal_errors():
        if not root:
            raise UsageError("usage: orcajobs split <root> [sp|opt|topt] [cpus=8] [charge=0] [mult=1]")
        opts = parse_split_options(jobtype, cpus, charge, mult)
        dirs = split_structures(root, opts, settings)

        if submit_now is None:
            submit_now = ask_yes_no("Submit the jobs now?")
        if not submit_now:
            return

        if hours is None:
            hours = ask_hours()
        else:
            # fail before any job is rendered
            validate_request(settings, hours, echo=False)
        confirm = settings.confirm_submit and not yes
        submit_job_dirs(dirs, settings, hours, confirm=confirm, dry_run=dry_run)


# -----------------------------
# parse
# -----------------------------
@app.command()
def parse(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="Output file, or 'dir' for every subdirectory"),
    csv: Optional[Path] = typer.Option(None, "--csv", help="Also write the records to this CSV"),
    jsonl: Optional[Path] = typer.Option(None, "--jsonl", help="Append the records to this JSONL"),
):
    """Print the final energies of ORCA outputs."""
    settings = _settings(ctx)
    with _fatal_errors():
        if target and target != "dir":
            records = [extract_result(target)]
            for line in format_verbose(records[0]):
                typer.echo(line)
        else:
            records = scan_results(Path.cwd(), settings, recurse=target == "dir")
            for rec in records:
                line = format_condensed(rec)
                if line:
                    typer.echo(line)

    if jsonl:
        for rec in records:
            if rec.job_type != "unknown":
                jsonl_append(jsonl, rec.model_dump())
        typer.secho(f"Appended records to {jsonl}", fg=typer.colors.GREEN)
    if csv:
        n = records_to_csv(records, csv)
        typer.secho(f"Wrote {csv} ({n} rows)", fg=typer.colors.GREEN)


# -----------------------------
# configuration helpers
# -----------------------------
@app.command("config-init")
def config_init(
    path: Path = typer.Argument(USER_CONFIG, help="Where to write the YAML settings"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write the built-in defaults as a YAML settings file."""
    path = path.expanduser()
    if path.exists() and not force:
        raise typer.BadParameter(f"{path} exists; use --force to overwrite")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_settings(Settings()))
    typer.secho(f"Wrote {path}", fg=typer.colors.GREEN)


@app.command("config-show")
def config_show(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of YAML"),
):
    """Print the effective settings."""
    settings = _settings(ctx)
    if as_json:
        typer.echo(json.dumps(settings.to_dict(), indent=2))
    else:
        typer.echo(dump_settings(settings))


if __name__ == "__main__":
    app()
