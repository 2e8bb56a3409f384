"""Project configuration for Shorecast."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, field
from pathlib import Path

import toml

from shorecast.errors import ConfigError, ProjectNotInitializedError

CONFIG_FILENAME = "shorecast.toml"
DEFAULT_STORE_PATH = ".shorecast/records.db"
DEFAULT_SOURCE_URL = (
    "https://cmgds.marine.usgs.gov/data/whcmsc/data-release/doi-F73J3B0B/"
    "data/shorelines/mass_shorelines_1800s_to_2018.csv"
)
DEFAULT_BATCH_SIZE = 1000
DEFAULT_REFRESH_INTERVAL_DAYS = 7
DEFAULT_ENCODING_ERRORS = "replace"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_flag(name: str, raw: object) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return _parse_flag(name, raw)


@dataclass
class ImportConfig:
    enabled: bool = True
    source_url: str = DEFAULT_SOURCE_URL
    batch_size: int = DEFAULT_BATCH_SIZE
    refresh_interval_days: float = DEFAULT_REFRESH_INTERVAL_DAYS
    delimiter: str = ","
    encoding: str = "utf-8"
    encoding_errors: str = DEFAULT_ENCODING_ERRORS

    def __post_init__(self) -> None:
        self.enabled = _env_flag("SHORECAST_IMPORT_ENABLED", self.enabled)
        self.source_url = os.environ.get("SHORECAST_SOURCE_URL", self.source_url)
        if self.batch_size < 1:
            raise ConfigError(f"import.batch_size must be positive, got {self.batch_size}")
        if self.refresh_interval_days <= 0:
            raise ConfigError(
                "import.refresh_interval_days must be positive, "
                f"got {self.refresh_interval_days}"
            )
        if len(self.delimiter) != 1:
            raise ConfigError(
                f"import.delimiter must be a single character, got {self.delimiter!r}"
            )
        try:
            codecs.lookup_error(self.encoding_errors)
        except LookupError as exc:
            raise ConfigError(
                f"import.encoding_errors is not a known error handler: {self.encoding_errors!r}"
            ) from exc

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_interval_days * 24 * 60 * 60


@dataclass
class ShorecastConfig:
    project_name: str = "shorecast"
    store_path: str = DEFAULT_STORE_PATH
    imports: ImportConfig = field(default_factory=ImportConfig)
    project_root: Path = field(default_factory=lambda: Path.cwd())

    @property
    def store_file(self) -> Path:
        return self.project_root / self.store_path

    def to_dict(self) -> dict:
        return {
            "project": {
                "name": self.project_name,
            },
            "import": {
                "enabled": self.imports.enabled,
                "source_url": self.imports.source_url,
                "batch_size": self.imports.batch_size,
                "refresh_interval_days": self.imports.refresh_interval_days,
                "delimiter": self.imports.delimiter,
                "encoding": self.imports.encoding,
                "encoding_errors": self.imports.encoding_errors,
            },
            "store": {
                "path": self.store_path,
            },
        }

    def save(self, path: Path | None = None) -> None:
        target = path or (self.project_root / CONFIG_FILENAME)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            toml.dump(self.to_dict(), f)


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from *start* looking for shorecast.toml."""
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / CONFIG_FILENAME).exists():
            return current
        parent = current.parent
        if parent == current:
            raise ProjectNotInitializedError(str(start or Path.cwd()))
        current = parent


def load_config(project_root: Path | None = None) -> ShorecastConfig:
    """Load and return the project configuration."""
    root = project_root or find_project_root()
    config_path = root / CONFIG_FILENAME
    if not config_path.exists():
        raise ProjectNotInitializedError(str(root))

    try:
        data = toml.load(config_path)
    except Exception as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc

    proj = data.get("project", {})
    imp = data.get("import", {})
    store = data.get("store", {})

    try:
        import_config = ImportConfig(
            enabled=_parse_flag("import.enabled", imp.get("enabled", True)),
            source_url=str(imp.get("source_url", DEFAULT_SOURCE_URL)),
            batch_size=int(imp.get("batch_size", DEFAULT_BATCH_SIZE)),
            refresh_interval_days=float(
                imp.get("refresh_interval_days", DEFAULT_REFRESH_INTERVAL_DAYS)
            ),
            delimiter=str(imp.get("delimiter", ",")),
            encoding=str(imp.get("encoding", "utf-8")),
            encoding_errors=str(imp.get("encoding_errors", DEFAULT_ENCODING_ERRORS)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [import] section in {config_path}: {exc}") from exc

    return ShorecastConfig(
        project_name=proj.get("name", "shorecast"),
        store_path=store.get("path", DEFAULT_STORE_PATH),
        imports=import_config,
        project_root=root,
    )
