from __future__ import annotations
from typing import Optional, Dict, List, Literal
from pydantic import BaseModel, ConfigDict, Field

class ResourceRequest(BaseModel):
    # Validated (time, partition, account) shared by every job of one invocation
    model_config = ConfigDict(frozen=True)
    hours: int = Field(ge=0)
    partition: str
    account: str

class JobRequest(BaseModel):
    # One input file checked against the partition limits
    model_config = ConfigDict(frozen=True)
    input_file: str
    cpus: int = Field(gt=0)
    mem_per_core: int
    hours: int = Field(ge=0)
    partition: str
    account: str

class ResultRecord(BaseModel):
    # Read-only projection of one ORCA output file
    schema_version: str = Field(default='0.1.0')
    file: str
    job_type: Literal['single_point', 'optimization', 'unknown'] = 'unknown'
    lines: List[str] = Field(default_factory=list)
    energies: Dict[str, Optional[float]] = Field(default_factory=dict)
    parser: str = Field(default='orcajobs.orca.parse/0.1.0')
