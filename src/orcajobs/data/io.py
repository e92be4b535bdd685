from __future__ import annotations
import json, pathlib
from typing import Dict, Any, Iterable
import pandas as pd

from orcajobs.schemas.models import ResultRecord

def jsonl_append(path: str, rec: Dict[str, Any]):
    p = pathlib.Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False) + "\n")

def records_to_frame(records: Iterable[ResultRecord]) -> pd.DataFrame:
    # one row per classified file, energies flattened into columns
    rows = []
    for r in records:
        if r.job_type == "unknown":
            continue
        row = {"file": r.file, "job_type": r.job_type}
        row.update(r.energies)
        rows.append(row)
    cols = ["file", "job_type", "single_point_energy_Eh", "gibbs_free_energy_Eh", "g_minus_eel_Eh"]
    return pd.DataFrame(rows, columns=cols)

def records_to_csv(records: Iterable[ResultRecord], csv_path: str) -> int:
    df = records_to_frame(records)
    p = pathlib.Path(csv_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(p, index=False)
    return len(df)
