"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

# Placeholder policies for synchronization. Kept as named values so they can
# be revisited without touching the sync algorithm.
DEFAULT_AGE_YEARS = 30
START_POLICY_DATE_OF_BIRTH = "date_of_birth"
START_POLICY_TODAY = "today"
VALID_START_POLICIES = (START_POLICY_DATE_OF_BIRTH, START_POLICY_TODAY)


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".steptdee"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "steptdee.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class SyncConfig:
    """Daily summary synchronization configuration."""

    default_age_years: int = DEFAULT_AGE_YEARS
    start_policy: str = START_POLICY_DATE_OF_BIRTH  # "date_of_birth" or "today"


@dataclass
class StepSourceConfig:
    """Which step source variant to use and where its data lives."""

    kind: str = "csv"  # "csv" or "health_connect"
    path: Optional[Path] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    step_source: StepSourceConfig = field(default_factory=StepSourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.steptdee/config.yaml

        Returns:
            Settings instance

        Raises:
            ValueError: If sync.start_policy is not a known policy
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        if "sync" in data:
            sync_data = data["sync"] or {}
            if "default_age_years" in sync_data:
                settings.sync.default_age_years = int(sync_data["default_age_years"])
            if "start_policy" in sync_data:
                policy = sync_data["start_policy"]
                if policy not in VALID_START_POLICIES:
                    raise ValueError(
                        f"sync.start_policy must be one of {VALID_START_POLICIES}, "
                        f"got '{policy}'"
                    )
                settings.sync.start_policy = policy

        if "step_source" in data:
            source_data = data["step_source"] or {}
            if "kind" in source_data:
                settings.step_source.kind = source_data["kind"]
            if source_data.get("path"):
                settings.step_source.path = Path(source_data["path"]).expanduser()

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.steptdee/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "sync": {
                "default_age_years": self.sync.default_age_years,
                "start_policy": self.sync.start_policy,
            },
            "step_source": {
                "kind": self.step_source.kind,
                "path": str(self.step_source.path) if self.step_source.path else None,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
