from __future__ import annotations

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATE_ROOT = Path(__file__).resolve().parents[1] / "templates"


def render_template(
    template_path: Path | str,
    out_path: Optional[Path],
    params: dict,
    *,
    return_text: bool = False,
) -> Optional[str]:
    template_path = Path(template_path)

    if template_path.is_file():
        search_dirs = [template_path.parent]              # explicit absolute/relative file path
        template_name = template_path.name
    else:
        search_dirs = [TEMPLATE_ROOT]                     # packaged templates, e.g. "sbatch/orca_job.sbatch.j2"
        template_name = template_path.as_posix()

    env = Environment(
        loader=FileSystemLoader([str(d) for d in search_dirs]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    text = env.get_template(template_name).render(**params)

    if return_text:
        return text

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text, encoding="utf-8")
    return None
