from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
import os
from pathlib import Path
import tomllib
from typing import cast
import warnings

from .constants import Defaults


@dataclass(frozen=True, slots=True)
class IngestConfig:
    source_root: Path = field(default_factory=lambda: Path("data"))
    default_database: str = Defaults.DATABASE
    default_max_rows: int = Defaults.MAX_ROWS
    max_rows_cap: int = Defaults.MAX_ROWS_CAP
    chunk_size: int = Defaults.CHUNK_SIZE
    max_row_errors: int = Defaults.MAX_ROW_ERRORS
    max_concurrent_files: int = Defaults.MAX_CONCURRENT_FILES
    batch_size: int = Defaults.BATCH_SIZE
    sniff_lines: int = Defaults.SNIFF_LINES
    sniff_bytes: int = Defaults.SNIFF_BYTES
    encoding: str = Defaults.ENCODING
    schema_sample_rows: int = Defaults.SCHEMA_SAMPLE_ROWS
    stream_timeout_seconds: float = Defaults.STREAM_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        for name in (
            "default_max_rows",
            "max_rows_cap",
            "chunk_size",
            "max_concurrent_files",
            "batch_size",
            "sniff_lines",
            "sniff_bytes",
            "schema_sample_rows",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.max_row_errors < 0:
            raise ValueError(
                f"max_row_errors must not be negative, got {self.max_row_errors}"
            )
        if self.default_max_rows > self.max_rows_cap:
            raise ValueError(
                f"default_max_rows ({self.default_max_rows}) exceeds "
                f"max_rows_cap ({self.max_rows_cap})"
            )
        if self.stream_timeout_seconds <= 0:
            raise ValueError(
                "stream_timeout_seconds must be positive, "
                f"got {self.stream_timeout_seconds}"
            )
        if not self.default_database.strip():
            raise ValueError("default_database must not be empty")

    @classmethod
    def from_env(cls) -> IngestConfig:
        return cls(
            source_root=Path(os.getenv("BRONZE_SOURCE_ROOT", "data")),
            default_database=os.getenv("BRONZE_DEFAULT_DB", Defaults.DATABASE),
            chunk_size=int(os.getenv("BRONZE_CHUNK_SIZE", str(Defaults.CHUNK_SIZE))),
            max_row_errors=int(
                os.getenv("BRONZE_MAX_ROW_ERRORS", str(Defaults.MAX_ROW_ERRORS))
            ),
            max_concurrent_files=int(
                os.getenv(
                    "BRONZE_MAX_CONCURRENT_FILES", str(Defaults.MAX_CONCURRENT_FILES)
                )
            ),
            batch_size=int(os.getenv("BRONZE_BATCH_SIZE", str(Defaults.BATCH_SIZE))),
            encoding=os.getenv("BRONZE_ENCODING", Defaults.ENCODING),
            stream_timeout_seconds=float(
                os.getenv(
                    "BRONZE_STREAM_TIMEOUT", str(Defaults.STREAM_TIMEOUT_SECONDS)
                )
            ),
        )


class ConfigLoader:
    pass

    @staticmethod
    def load(config_file: Path | None = None) -> IngestConfig:
        config = IngestConfig.from_env()
        if config_file is None:
            config_file = Path(Defaults.CONFIG_FILE)
        if config_file.exists():
            try:
                config = ConfigLoader._load_from_toml(config_file, config)
            except Exception as e:
                warnings.warn(
                    f"Failed to load config from {config_file}: {e}", stacklevel=2
                )
        return config

    @staticmethod
    def _load_from_toml(config_file: Path, base_config: IngestConfig) -> IngestConfig:
        with config_file.open("rb") as handle:
            data = tomllib.load(handle)
        section = _get_table(data, "bronze_ingest") or data
        updates: dict[str, object] = {}
        if value := section.get("source_root"):
            updates["source_root"] = Path(str(value))
        if value := section.get("default_database"):
            updates["default_database"] = str(value).strip()
        if value := section.get("encoding"):
            updates["encoding"] = str(value)
        for key in (
            "default_max_rows",
            "max_rows_cap",
            "chunk_size",
            "max_row_errors",
            "max_concurrent_files",
            "batch_size",
            "sniff_lines",
            "sniff_bytes",
            "schema_sample_rows",
        ):
            if (value := section.get(key)) is not None:
                updates[key] = _coerce_int(value, key=key)
        if (value := section.get("stream_timeout_seconds")) is not None:
            updates["stream_timeout_seconds"] = _coerce_float(
                value, key="stream_timeout_seconds"
            )
        return replace(base_config, **updates)


def _get_table(data: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return cast("Mapping[str, object]", value)
    return {}


def _coerce_float(value: object, *, key: str) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value)
    raise ValueError(f"{key} must be numeric or string, got {type(value).__name__}")


def _coerce_int(value: object, *, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an int, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return int(value)
    raise ValueError(f"{key} must be int-like or string, got {type(value).__name__}")
