"""Runtime knobs for the harness, loaded from an optional TOML file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib  # type: ignore

from .classifier import DEFAULT_SIGNATURES, Operation, Signature
from .rows import DEFAULT_BATCH_SIZES, DEFAULT_MAX_VALUE0

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class ConfigError(ValueError):
    """Raised when a config value cannot be used."""


@dataclass
class ConnectionSettings:
    host: str = "127.0.0.1"
    port: int = 4000
    user: str = "root"
    password: str = ""
    database: str = "uniq"
    connect_timeout: int = 10
    read_timeout: Optional[float] = 60.0
    write_timeout: Optional[float] = 60.0


@dataclass
class SetupSettings:
    table: str = "rows"
    padding_size: int = 256
    recreate_table: bool = True
    # Small reorg batches make the race easier to reproduce on TiDB.
    global_variables: Dict[str, Any] = field(
        default_factory=lambda: {
            "tidb_ddl_reorg_worker_cnt": 1,
            "tidb_ddl_reorg_batch_size": 32,
        }
    )

    @property
    def padding_bytes(self) -> int:
        # padding is stored hex-encoded
        return self.padding_size // 2


@dataclass
class WorkloadSettings:
    workers: int = 16
    max_value0: int = DEFAULT_MAX_VALUE0
    batch_sizes: Tuple[int, ...] = DEFAULT_BATCH_SIZES
    pause_after_insert: float = 0.5
    pause_after_delete: float = 0.5
    seed: Optional[int] = None


@dataclass
class SchemaSettings:
    enabled: bool = True
    column: str = "val0"
    wide_type: str = "bigint"
    narrow_type: str = "int"
    interval: float = 1.0


@dataclass
class RunSettings:
    duration: float = 0.0
    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class HarnessConfig:
    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    setup: SetupSettings = field(default_factory=SetupSettings)
    workload: WorkloadSettings = field(default_factory=WorkloadSettings)
    schema: SchemaSettings = field(default_factory=SchemaSettings)
    run: RunSettings = field(default_factory=RunSettings)
    signatures: Tuple[Signature, ...] = DEFAULT_SIGNATURES
    path: Optional[Path] = None


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _apply(target: Any, values: Dict[str, Any], section: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            logging.warning("Ignoring unknown setting %s.%s", section, key)
            continue
        setattr(target, key, value)


def _coerce_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer (got {value!r})")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer (got {value!r})") from None


def _coerce_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number (got {value!r})")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number (got {value!r})") from None


def _coerce_str(value: Any, name: str, *, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string (got {value!r})")
    if not value.strip() and not allow_empty:
        raise ConfigError(f"{name} must not be empty")
    return value


def _coerce_bool(value: Any, name: str) -> bool:
    # TOML has real booleans; strings like "false" are a typo, not a value
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false (got {value!r})")
    return value


def _parse_signatures(entries: Any) -> Tuple[Signature, ...]:
    if not isinstance(entries, list):
        raise ConfigError("[[classifier.benign]] must be an array of tables")
    signatures: List[Signature] = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"classifier.benign[{idx}] must be a table")
        try:
            operation = Operation(str(entry.get("operation", "")).lower())
        except ValueError:
            raise ConfigError(
                f"classifier.benign[{idx}] has unknown operation {entry.get('operation')!r}"
            ) from None
        code = entry.get("code")
        patterns = entry.get("patterns", ())
        if isinstance(patterns, str):
            patterns = (patterns,)
        if code is None and not patterns:
            raise ConfigError(f"classifier.benign[{idx}] needs a code or patterns")
        signatures.append(
            Signature(
                name=str(entry.get("name", f"custom-{idx}")),
                operation=operation,
                code=None if code is None else _coerce_int(code, f"classifier.benign[{idx}].code"),
                patterns=tuple(str(p) for p in patterns),
            )
        )
    return tuple(signatures)


def validate_config(config: HarnessConfig) -> HarnessConfig:
    """Check field types, coerce numbers, and reject values the harness cannot run with."""
    conn = config.connection
    for name in ("host", "user", "database"):
        setattr(conn, name, _coerce_str(getattr(conn, name), f"connection.{name}"))
    conn.port = _coerce_int(conn.port, "connection.port")
    conn.connect_timeout = _coerce_int(conn.connect_timeout, "connection.connect_timeout")
    if conn.password is None:
        conn.password = ""
    conn.password = _coerce_str(conn.password, "connection.password", allow_empty=True)
    for name in ("read_timeout", "write_timeout"):
        value = getattr(conn, name)
        if value is not None:
            setattr(conn, name, _coerce_float(value, f"connection.{name}") or None)

    setup = config.setup
    setup.table = _coerce_str(setup.table, "setup.table")
    setup.recreate_table = _coerce_bool(setup.recreate_table, "setup.recreate_table")
    setup.padding_size = _coerce_int(setup.padding_size, "setup.padding_size")
    if setup.padding_size < 0:
        raise ConfigError("setup.padding_size must be >= 0")
    if not isinstance(setup.global_variables, dict):
        raise ConfigError("setup.global_variables must be a table")

    workload = config.workload
    workload.workers = _coerce_int(workload.workers, "workload.workers")
    if workload.workers < 1:
        raise ConfigError(f"workload.workers must be >= 1 (got {workload.workers})")
    workload.max_value0 = _coerce_int(workload.max_value0, "workload.max_value0")
    if workload.max_value0 < 1:
        raise ConfigError("workload.max_value0 must be >= 1")
    if not isinstance(workload.batch_sizes, (list, tuple)) or not workload.batch_sizes:
        raise ConfigError("workload.batch_sizes must be a non-empty list")
    workload.batch_sizes = tuple(
        _coerce_int(size, "workload.batch_sizes") for size in workload.batch_sizes
    )
    for size in workload.batch_sizes:
        if size < 1 or size > workload.max_value0:
            raise ConfigError(
                f"workload.batch_sizes entry {size} must be between 1 and {workload.max_value0}"
            )
    workload.pause_after_insert = _coerce_float(
        workload.pause_after_insert, "workload.pause_after_insert"
    )
    workload.pause_after_delete = _coerce_float(
        workload.pause_after_delete, "workload.pause_after_delete"
    )
    if workload.seed is not None:
        workload.seed = _coerce_int(workload.seed, "workload.seed")

    schema = config.schema
    schema.enabled = _coerce_bool(schema.enabled, "schema.enabled")
    for name in ("column", "wide_type", "narrow_type"):
        setattr(schema, name, _coerce_str(getattr(schema, name), f"schema.{name}"))
    schema.interval = _coerce_float(schema.interval, "schema.interval")
    if schema.interval < 0:
        raise ConfigError("schema.interval must be >= 0")

    run = config.run
    run.duration = _coerce_float(run.duration, "run.duration")
    if run.duration < 0:
        raise ConfigError(f"run.duration must be >= 0 (got {run.duration})")
    if not isinstance(run.log_level, str):
        raise ConfigError(f"run.log_level must be a string (got {run.log_level!r})")
    run.log_level = run.log_level.strip().upper()
    if run.log_level not in LOG_LEVELS:
        raise ConfigError(f"Unsupported run.log_level: {run.log_level}")
    if isinstance(run.log_file, str):
        run.log_file = run.log_file.strip() or None
    elif run.log_file is not None:
        raise ConfigError(f"run.log_file must be a string (got {run.log_file!r})")
    return config


def load_harness_config(config_path: Optional[Path] = None) -> HarnessConfig:
    """Parse the TOML config, falling back to built-in defaults for missing keys."""
    config = HarnessConfig(path=config_path)
    if config_path is None:
        return config

    if not config_path.exists():
        raise FileNotFoundError(f"Config {config_path} not found")

    try:
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc

    _apply(config.connection, _section(raw, "connection"), "connection")
    _apply(config.setup, _section(raw, "setup"), "setup")
    _apply(config.workload, _section(raw, "workload"), "workload")
    _apply(config.schema, _section(raw, "schema"), "schema")
    _apply(config.run, _section(raw, "run"), "run")

    classifier_section = _section(raw, "classifier")
    if "benign" in classifier_section:
        config.signatures = _parse_signatures(classifier_section["benign"])

    return config
