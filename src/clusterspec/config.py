from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "CLUSTER_SPECS_"


class IngestSettings(BaseModel):
    delimiter: str = ","
    encoding: str = "utf-8-sig"


class ExportSettings(BaseModel):
    output_dir: Path = Path("data/outputs")
    filename: str = "generation_specs.json"
    indent: int = 2
    write_overview_csv: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides.

    An explicitly requested config file must exist. When nothing is requested
    and ``configs/default.yaml`` is absent (e.g. an installed CLI run from an
    arbitrary directory), built-in defaults are used instead.
    """

    requested = config_path or os.getenv(f"{ENV_PREFIX}CONFIG")
    resolved_path = Path(requested or DEFAULT_CONFIG_PATH)
    if requested and not resolved_path.exists():
        raise FileNotFoundError(f"Config file not found: {resolved_path}")

    raw_config: dict[str, Any] = {}
    if resolved_path.exists():
        raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
    data = Settings.model_validate(raw_config).model_dump(mode="python")

    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        suffix = key[len(ENV_PREFIX) :]
        if suffix == "CONFIG":
            continue

        path = [part.lower() for part in suffix.split("__")]
        _apply_override(data, path, raw_value)

    return Settings.model_validate(data)


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list | dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
