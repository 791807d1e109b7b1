"""Data models for the resolution pipeline."""
from __future__ import annotations

from typing import Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

OutputFormat = Literal["ip", "domain-ip"]
OUTPUT_FORMATS = get_args(OutputFormat)


class ResolutionOutcome(BaseModel):
    """Result of extracting and resolving one input line."""
    input: str
    domain: str
    ip: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def resolved(self) -> bool:
        return self.ip is not None


class PipelineStats(BaseModel):
    """Counters reported once a run has drained."""
    lines_read: int = Field(default=0, ge=0)
    outcomes: int = Field(default=0, ge=0)
    resolved: int = Field(default=0, ge=0)
    unresolved: int = Field(default=0, ge=0)
    emitted: int = Field(default=0, ge=0)
    unique_ips: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)
    read_error: Optional[str] = None
