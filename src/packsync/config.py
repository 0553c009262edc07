"""Configuration management for packsync."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml


class ConfigSyncMode(str, Enum):
    """How config override files are written into an instance."""

    OVERWRITE = "overwrite"  # Replace target unconditionally
    NEW_ONLY = "new_only"  # Write only where the target is absent
    SKIP = "skip"  # Leave configs untouched


@dataclass
class SyncPolicy:
    """
    Policy configuration for reconciliation runs.

    Controls concurrency, destructive behaviour and naming conventions.
    """

    concurrency: int = 20  # Parallel fetches per batch
    config_sync_mode: ConfigSyncMode = ConfigSyncMode.OVERWRITE
    clear_existing: bool = False  # Delete untracked files too
    disabled_suffix: str = ".disabled"


@dataclass
class StorageConfig:
    """Where documents and the apply journal live."""

    base_dir: Path = field(default_factory=lambda: Path(".packsync"))
    journal_file: str = "journal.db"

    @property
    def journal_path(self) -> Path:
        return self.base_dir / self.journal_file


@dataclass
class ImportConfig:
    """Import coordinator settings."""

    pending_ttl_seconds: int = 86400  # Abandoned conflict tokens expire after a day


@dataclass
class HttpConfig:
    """HTTP settings for the direct download resolver and remote sync."""

    timeout: int = 30
    max_connections: int = 20
    retry_attempts: int = 3
    user_agent: str = "packsync/0.1.0"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class PacksyncConfig:
    """
    Complete configuration for packsync.

    This combines all configuration sections.
    """

    policy: SyncPolicy = field(default_factory=SyncPolicy)
    storage: StorageConfig = field(default_factory=StorageConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "PacksyncConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            PacksyncConfig instance
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        policy_data = dict(data.get("policy") or {})
        if "config_sync_mode" in policy_data:
            policy_data["config_sync_mode"] = ConfigSyncMode(policy_data["config_sync_mode"])
        policy = SyncPolicy(**policy_data)

        storage_data = dict(data.get("storage") or {})
        if "base_dir" in storage_data:
            storage_data["base_dir"] = Path(storage_data["base_dir"])
        storage = StorageConfig(**storage_data)

        imports = ImportConfig(**(data.get("imports") or {}))
        http = HttpConfig(**(data.get("http") or {}))

        logging_data = dict(data.get("logging") or {})
        # Convert file path string to Path if present
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])
        logging = LoggingConfig(**logging_data)

        return cls(policy=policy, storage=storage, imports=imports, http=http, logging=logging)

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save config file
        """
        data = {
            "policy": {
                k: v.value if isinstance(v, Enum) else v for k, v in self.policy.__dict__.items()
            },
            "storage": {
                k: str(v) if isinstance(v, Path) else v for k, v in self.storage.__dict__.items()
            },
            "imports": self.imports.__dict__,
            "http": self.http.__dict__,
            "logging": {
                k: str(v) if isinstance(v, Path) else v
                for k, v in self.logging.__dict__.items()
                if v is not None
            },
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "PacksyncConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            PACKSYNC_HOME: Storage base directory (default: .packsync)
            PACKSYNC_CONCURRENCY: Parallel fetches per batch (default: 20)
            PACKSYNC_CONFIG_MODE: overwrite, new_only or skip
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: console or json (default: console)

        Returns:
            PacksyncConfig instance

        Raises:
            ValueError: If PACKSYNC_CONCURRENCY is not a positive integer
        """
        policy = SyncPolicy()
        concurrency = os.environ.get("PACKSYNC_CONCURRENCY")
        if concurrency:
            try:
                policy.concurrency = int(concurrency)
            except ValueError as e:
                raise ValueError(
                    f"PACKSYNC_CONCURRENCY must be an integer, got {concurrency!r}"
                ) from e
            if policy.concurrency < 1:
                raise ValueError("PACKSYNC_CONCURRENCY must be at least 1")

        config_mode = os.environ.get("PACKSYNC_CONFIG_MODE")
        if config_mode:
            policy.config_sync_mode = ConfigSyncMode(config_mode.lower())

        storage = StorageConfig()
        home = os.environ.get("PACKSYNC_HOME")
        if home:
            storage.base_dir = Path(home)

        logging_config = LoggingConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", "console"),
        )

        return cls(policy=policy, storage=storage, logging=logging_config)


def load_config(config_file: Path | None = None) -> PacksyncConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        PacksyncConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return PacksyncConfig.from_file(config_file)
    return PacksyncConfig.from_env()
