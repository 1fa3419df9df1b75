"""Configuration loader for the report templating engine.

The loader reads a YAML file (``config/defaults.yaml`` unless told otherwise)
and layers overrides from environment variables and CLI flags on top of it.
Apart from PyYAML it only needs the standard library.

Usage
-----
>>> from core.config import get_config
>>> cfg = get_config()  # resolved defaults + overrides
>>> cfg["template"]["value_table_label"]
'Tag'

Recognised command line options (picked up from ``sys.argv`` on the first
call, so overrides work even for import-time lookups)::

    --config <path>            # alternative YAML file
    --set section.key=value    # dotted override (repeatable)

Environment overrides:
* Prefixed variables: ``RT__SECTION__KEY=value`` (case-insensitive).
* Short aliases for the common knobs (``LOG_LEVEL``, ``CHART_EXPORT_DIR``).

Overrides are coerced to the type of the default they replace, and the loader
remembers the resolved path and overrides so a run can log what it used.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

import yaml

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "defaults.yaml"
_ENV_PREFIX = "RT__"
_CONFIG_PATH_ENV_VARS: tuple[str, ...] = ("RT_CONFIG", "RT_CONFIG_FILE")

# Short environment aliases → dotted config paths
_ENV_ALIASES: dict[str, str] = {
    "LOG_LEVEL": "logging.level",
    "CHART_EXPORT_DIR": "charts.export_dir",
    "STRICT_FENCES": "sections.strict_fences",
}

_SENTINEL = object()

_last_config: dict[str, Any] | None = None
_last_signature: tuple[Any, ...] | None = None
_last_source: Path | None = None
_last_overrides: dict[str, Any] = {}


def _parse_cli(cli_args: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--config", dest="config_path")
    parser.add_argument("--set", dest="set_values", action="append", default=[])
    known, _ = parser.parse_known_args(list(cli_args))
    return known


def _determine_config_path(env: Mapping[str, str], cli_path: str | None) -> Path:
    if cli_path:
        return Path(cli_path).expanduser()
    for key in _CONFIG_PATH_ENV_VARS:
        val = env.get(key)
        if val:
            return Path(val).expanduser()
    return _DEFAULT_CONFIG_PATH


def _collect_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for alias, path in _ENV_ALIASES.items():
        val = env.get(alias)
        if val is None or str(val).strip() == "":
            continue
        overrides[path] = val
    for key, val in env.items():
        if not key.upper().startswith(_ENV_PREFIX) or str(val).strip() == "":
            continue
        overrides[key[len(_ENV_PREFIX):].replace("__", ".")] = val
    return overrides


def _collect_cli_overrides(values: Iterable[str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for item in values:
        if item is None:
            continue
        if "=" not in item:
            raise ValueError(f"Invalid --set override '{item}'; expected path=value")
        path, raw = item.split("=", 1)
        path = path.strip()
        if not path:
            raise ValueError(f"Invalid --set override '{item}'; empty path")
        overrides[path] = raw
    return overrides


def _parse_literal(raw: Any) -> Any:
    if raw is None or isinstance(raw, (bool, int, float)):
        return raw
    text = str(raw).strip()
    lowered = text.lower()
    if lowered in {"", "none", "null", "~"}:
        return None
    if lowered in {"true", "false"}:
        return lowered == "true"
    try:
        return json.loads(text)
    except ValueError:
        return text


def _match_key(container: MutableMapping[str, Any], token: str) -> str:
    token_norm = token.lower()
    for existing in container.keys():
        if str(existing).lower() == token_norm:
            return existing  # type: ignore[return-value]
    return token


def _coerce_to_reference(value: Any, reference: Any) -> Any:
    """Cast ``value`` to the type of the default it overrides, when possible."""
    if reference is None or value is None:
        return value
    try:
        if isinstance(reference, bool):
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
        if isinstance(reference, int):
            return int(float(value))
        if isinstance(reference, float):
            return float(value)
        if isinstance(reference, str):
            return str(value)
        if isinstance(reference, (list, tuple)):
            parsed = json.loads(value) if isinstance(value, str) else value
            return type(reference)(parsed)
    except (TypeError, ValueError):
        return value
    return value


def _set_path(container: MutableMapping[str, Any], path: str, raw_value: Any,
              record: dict[str, Any]) -> None:
    tokens = [tok for tok in path.split(".") if tok]
    if not tokens:
        raise ValueError("Empty config path in override")
    cur: MutableMapping[str, Any] = container
    for tok in tokens[:-1]:
        key = _match_key(cur, tok)
        nxt = cur.get(key)
        if not isinstance(nxt, MutableMapping):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    key = _match_key(cur, tokens[-1])
    coerced = _coerce_to_reference(_parse_literal(raw_value), cur.get(key))
    cur[key] = coerced
    record[".".join(tokens)] = coerced


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Root of config must be a mapping, got {type(data)!r}")
    return data


def get_config(*, cli_args: Sequence[str] | object = _SENTINEL,
               env: Mapping[str, str] | None = None,
               reload: bool = False) -> dict[str, Any]:
    """Return the effective configuration dictionary.

    Args:
        cli_args: explicit CLI arguments.  By default ``sys.argv[1:]`` is used.
            Pass an empty list to ignore CLI overrides.
        env: mapping of environment variables.  Defaults to ``os.environ``.
        reload: force the YAML to be re-read even if the cached signature matches.
    """
    if env is None:
        env = os.environ
    if cli_args is _SENTINEL:
        cli_args = sys.argv[1:]
    known = _parse_cli(cli_args)  # type: ignore[arg-type]

    path = _determine_config_path(env, known.config_path)
    overrides_env = _collect_env_overrides(env)
    overrides_cli = _collect_cli_overrides(known.set_values)

    signature = (
        str(path.resolve()),
        tuple(sorted((k.lower(), str(v)) for k, v in overrides_env.items())),
        tuple(sorted((k.lower(), str(v)) for k, v in overrides_cli.items())),
    )

    global _last_config, _last_signature, _last_source, _last_overrides
    if reload or _last_config is None or signature != _last_signature:
        cfg = _load_yaml(path)
        record: dict[str, Any] = {}
        # CLI wins over environment: applied last.
        for pth, raw in overrides_env.items():
            _set_path(cfg, pth, raw, record)
        for pth, raw in overrides_cli.items():
            _set_path(cfg, pth, raw, record)

        _last_config = cfg
        _last_signature = signature
        _last_source = path.resolve()
        _last_overrides = record

    return deepcopy(_last_config)


def get_config_source() -> Path | None:
    """Return the path of the last configuration file that was loaded."""

    return _last_source


def get_config_overrides() -> dict[str, Any]:
    """Return the overrides applied on top of the YAML defaults."""

    return deepcopy(_last_overrides)


def get_section(cfg: Mapping[str, Any] | None, name: str) -> dict[str, Any]:
    """Return ``cfg[name]`` as a dict, tolerating a missing or empty section."""

    if not cfg:
        return {}
    section = cfg.get(name)
    return dict(section) if isinstance(section, Mapping) else {}


__all__ = ["get_config", "get_config_source", "get_config_overrides", "get_section"]
