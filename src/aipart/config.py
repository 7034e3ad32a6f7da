from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

_ENV_PREFIX = "AIPART_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class PartitionerConfig:
    """Settings for one partitioner instance."""

    target: str = "dpuv1"
    name_prefix: str = "AIPartCustomOp"
    domain: str = "ai.aipart.delegate"
    since_version: int = 1
    status: str = "experimental"
    # Drop clusters whose inputs are all constants, not only input-less ones.
    require_dynamic_input: bool = True
    validate_graph: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PartitionerConfig:
        """Build a config from AIPART_* variables, e.g. AIPART_TARGET=dpuv2."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw, f.type)
        return cls(**values)

    def override(self, **changes: Any) -> PartitionerConfig:
        """Return a copy with the non-None changes applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _coerce(name: str, raw: str, annotation: Any) -> Any:
    # Annotations are strings under postponed evaluation.
    kind = annotation if isinstance(annotation, str) else annotation.__name__
    if kind == "bool":
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"Invalid boolean for {_ENV_PREFIX}{name.upper()}: {raw!r}")
    if kind == "int":
        try:
            return int(raw)
        except ValueError as exc:
            raise ValueError(
                f"Invalid integer for {_ENV_PREFIX}{name.upper()}: {raw!r}"
            ) from exc
    return raw
