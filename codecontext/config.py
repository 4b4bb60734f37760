"""Configuration loading for codecontext (.codecontext.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".codecontext.yml"

_DEFAULT_EXCLUDES = [
    ".git",
    ".build",
    ".swiftpm",
    "DerivedData",
    "Pods",
    "Carthage",
    "node_modules",
    ".xcode",
    "build",
    ".idea",
]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GraphConfig:
    """PageRank tuning."""

    damping: float = 0.85
    iterations: int = 100


@dataclass
class CodeContextConfig:
    """Represents the settings defined in .codecontext.yml."""

    root: Path
    file_extensions: List[str] = field(default_factory=lambda: ["swift"])
    exclude_paths: List[str] = field(default_factory=lambda: list(_DEFAULT_EXCLUDES))
    max_files_analyze: int = 10000
    git_commit_limit: int = 1000
    enable_cache: bool = True
    enable_parallel: bool = True
    max_workers: Optional[int] = None
    hotspot_count: int = 15
    learning_path_length: int = 20
    cache_dir: Path = Path(".codecontext/cache")
    graph: GraphConfig = field(default_factory=GraphConfig)

    @property
    def resolved_cache_dir(self) -> Path:
        if self.cache_dir.is_absolute():
            return self.cache_dir
        return self.root / self.cache_dir


def load_config(config_path: Path) -> CodeContextConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CodeContextConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = CodeContextConfig(root=root)

    extensions = _as_str_list(data.get("file_extensions"))
    if extensions:
        config.file_extensions = extensions
    if "exclude_paths" in data:
        config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    config.max_files_analyze = _positive(
        _as_int(data.get("max_files_analyze")), config.max_files_analyze
    )
    config.git_commit_limit = _positive(
        _as_int(data.get("git_commit_limit")), config.git_commit_limit
    )
    config.hotspot_count = _positive(_as_int(data.get("hotspot_count")), config.hotspot_count)
    config.learning_path_length = _positive(
        _as_int(data.get("learning_path_length")), config.learning_path_length
    )

    enable_cache = _as_bool(data.get("enable_cache"))
    if enable_cache is not None:
        config.enable_cache = enable_cache
    enable_parallel = _as_bool(data.get("enable_parallel"))
    if enable_parallel is not None:
        config.enable_parallel = enable_parallel

    max_workers = _as_int(data.get("max_workers"))
    if max_workers is not None and max_workers > 0:
        config.max_workers = max_workers

    cache_dir = _as_str(data.get("cache_dir"))
    if cache_dir:
        config.cache_dir = Path(cache_dir).expanduser()

    graph_data = _as_dict(data.get("graph"))
    if graph_data:
        damping = _as_float(graph_data.get("damping"))
        if damping is not None:
            if not 0.0 <= damping <= 1.0:
                raise ConfigError("graph.damping must be between 0 and 1")
            config.graph.damping = damping
        config.graph.iterations = _positive(
            _as_int(graph_data.get("iterations")), config.graph.iterations
        )

    return config


def default_config_payload() -> Dict[str, Any]:
    """Return the default configuration as a YAML-ready mapping."""
    defaults = CodeContextConfig(root=Path("."))
    return {
        "file_extensions": list(defaults.file_extensions),
        "exclude_paths": list(defaults.exclude_paths),
        "max_files_analyze": defaults.max_files_analyze,
        "git_commit_limit": defaults.git_commit_limit,
        "enable_cache": defaults.enable_cache,
        "enable_parallel": defaults.enable_parallel,
        "max_workers": defaults.max_workers,
        "hotspot_count": defaults.hotspot_count,
        "learning_path_length": defaults.learning_path_length,
        "cache_dir": defaults.cache_dir.as_posix(),
        "graph": {
            "damping": defaults.graph.damping,
            "iterations": defaults.graph.iterations,
        },
    }


def write_default_config(root: Path) -> Path:
    """Write a default .codecontext.yml into ``root``; never overwrites."""
    config_file = _resolve_config_path(root)
    if config_file.exists():
        raise FileExistsError(f"Config already exists at {config_file}")
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        yaml.safe_dump(default_config_payload(), sort_keys=False),
        encoding="utf-8",
    )
    return config_file


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _positive(value: Optional[int], default: int) -> int:
    if value is None or value <= 0:
        return default
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CodeContextConfig",
    "ConfigError",
    "GraphConfig",
    "default_config_payload",
    "load_config",
    "write_default_config",
]
