"""Configuration loader for the resolver."""
from __future__ import annotations

import ipaddress
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from concurrentResolver.resolver.models import OUTPUT_FORMATS

INVALID_FORMAT_MESSAGE = "Invalid output format. Use 'ip' or 'domain-ip'."


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "config"
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        parts.append(msg if msg == INVALID_FORMAT_MESSAGE else f"{loc}: {msg}")
    return "; ".join(parts)


class ResolverConfig(BaseModel):
    input: str = Field(default="urls.txt")
    output: str = Field(default="resolved_ips.txt")
    concurrency: int = Field(default=100, ge=1)
    format: str = Field(default="ip")
    timeout: Optional[float] = Field(default=None, gt=0)
    nameservers: List[str] = Field(default_factory=list)

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in OUTPUT_FORMATS:
            raise ValueError(INVALID_FORMAT_MESSAGE)
        return value

    @field_validator("nameservers")
    @classmethod
    def _check_nameservers(cls, value: List[str]) -> List[str]:
        for server in value:
            if server.startswith("https://"):
                continue
            try:
                ipaddress.ip_address(server)
            except ValueError:
                raise ValueError(f"Invalid nameserver {server!r}: expected an IP address or https URL") from None
        return value

    @classmethod
    def load(cls, path: str) -> "ResolverConfig":
        return cls.build(path)

    @classmethod
    def build(
        cls,
        config_path: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ResolverConfig":
        """Layer non-None overrides over the YAML file values over the defaults."""
        raw: Dict[str, Any] = {}
        if config_path:
            cfg_path = Path(config_path)
            if not cfg_path.exists():
                raise FileNotFoundError(f"Resolver config not found: {cfg_path}")
            try:
                loaded = yaml.safe_load(cfg_path.read_text()) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid resolver config {cfg_path}: {exc}") from exc
            if not isinstance(loaded, dict):
                raise ValueError(f"Invalid resolver config {cfg_path}: expected a mapping")
            raw.update(loaded)
        for key, value in (overrides or {}).items():
            if value is not None:
                raw[key] = value
        try:
            return cls(**raw)
        except ValidationError as exc:
            raise ValueError(_describe(exc)) from exc
