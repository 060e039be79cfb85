# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import re
import tempfile
import yaml
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

TRANSFER_TYPES = ("sftp", "local", "scp")
POST_ACTIONS = ("", "none", "archive", "delete")
LOG_LEVELS = ("", "debug", "info", "warn", "warning", "error")


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


class TransferConfigEntry(BaseModel):
    """
    One configured transfer: a watched source directory and where its files go.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_directory: Path
    remote_path: str = ""
    filter: Optional[str] = None
    transfer_type: str = "sftp"
    username: str = ""
    password: Optional[str] = None
    private_key: Optional[Path] = None
    private_key_passphrase: Optional[str] = None
    server: str = ""
    port: int = 22
    known_hosts: Optional[Path] = None
    action_on_success: str = ""
    action_on_fail: str = ""
    archive_dest: Optional[Path] = None
    fail_dest: Optional[Path] = None
    delay: Optional[float] = None

    @field_validator("source_directory")
    @classmethod
    def _absolute_source(cls, value: Path) -> Path:
        # Event paths arrive absolute, so prefix matching needs the same form.
        return Path(os.path.abspath(os.path.expanduser(str(value))))

    @property
    def kind(self) -> str:
        return self.transfer_type.strip().lower()

    def public_dict(self) -> dict:
        """Entry as a plain dict with credentials masked."""
        data = self.model_dump(mode="json")
        for secret in ("password", "private_key_passphrase"):
            if data.get(secret):
                data[secret] = "********"
        return data


class AgentConfig(BaseModel):
    log_file: Path = Path("logs/app.log")
    log_level: str = "info"
    log_to_console: bool = False
    delay: float = 2.0
    tick_interval: float = 0.5
    queue_size: int = 100
    workers: int = 1
    max_attempts: int = 3
    retry_delay: float = 2.0
    transfer_timeout: float = 10.0
    use_polling: bool = False
    heartbeat: bool = True
    heartbeat_interval: int = 30
    server_host: str = "127.0.0.1"
    server_port: int = 5050
    transfers: List[TransferConfigEntry] = []

    @classmethod
    def load(cls, path: str = "config.yaml") -> "AgentConfig":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"can't read configuration file: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse YAML config: {e}") from e

        try:
            return cls(**(data or {}))
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

    def validate_entries(self) -> List[str]:
        """
        Checks the loaded config and returns every problem found.
        An empty list means the configuration is usable.
        """
        errors: List[str] = []

        if self.log_level.strip().lower() not in LOG_LEVELS:
            errors.append(f"invalid log_level {self.log_level!r} (allowed: debug, info, warn, error)")
        if self.delay < 0:
            errors.append("delay must not be negative")
        if self.tick_interval <= 0:
            errors.append("tick_interval must be positive")
        if self.queue_size < 1:
            errors.append("queue_size must be at least 1")
        if self.workers < 1:
            errors.append("workers must be at least 1")
        if self.max_attempts < 1:
            errors.append("max_attempts must be at least 1")
        if not self.transfers:
            errors.append("no transfers defined")

        seen_names = set()
        for i, entry in enumerate(self.transfers):
            prefix = f"transfer[{i}]"

            if not entry.name.strip():
                errors.append(f"{prefix}: name is required")
            elif entry.name in seen_names:
                errors.append(f"{prefix}: duplicate name {entry.name!r}")
            seen_names.add(entry.name)

            if not entry.source_directory.is_dir():
                errors.append(
                    f"{prefix}: source_directory {str(entry.source_directory)!r} does not exist or is not a directory"
                )

            if entry.delay is not None and entry.delay < 0:
                errors.append(f"{prefix}: delay must not be negative")

            kind = entry.kind
            if kind in ("sftp", "scp"):
                label = kind.upper()
                if not entry.username.strip():
                    errors.append(f"{prefix}: username is required for {label}")
                if not entry.server.strip():
                    errors.append(f"{prefix}: server is required for {label}")
                if not 1 <= entry.port <= 65535:
                    errors.append(f"{prefix}: port {entry.port} must be an integer 1-65535 for {label}")
            if kind == "sftp":
                if not entry.remote_path.strip():
                    errors.append(f"{prefix}: remote_path is required for SFTP")
                if not entry.private_key and not entry.password:
                    errors.append(f"{prefix}: either private_key or password must be provided for SFTP")
                if entry.private_key and not entry.private_key.is_file():
                    errors.append(f"{prefix}: private_key file {str(entry.private_key)!r} not found or unreadable")
                if entry.known_hosts and not entry.known_hosts.is_file():
                    errors.append(f"{prefix}: known_hosts file {str(entry.known_hosts)!r} not found")
            elif not kind:
                errors.append(f"{prefix}: transfer_type is required")
            elif kind not in TRANSFER_TYPES:
                errors.append(
                    f"{prefix}: unsupported transfer_type {entry.transfer_type!r} (allowed: sftp, local, scp)"
                )

            if entry.filter:
                try:
                    re.compile(entry.filter)
                except re.error as e:
                    errors.append(f"{prefix}: filter {entry.filter!r} is not a valid regex: {e}")

            for field in ("action_on_success", "action_on_fail"):
                action = getattr(entry, field)
                if action.strip().lower() not in POST_ACTIONS:
                    errors.append(f"{prefix}: {field} {action!r} invalid (allowed: none, archive, delete)")

            if entry.action_on_success.strip().lower() == "archive" and entry.archive_dest:
                if not _is_dir_or_creatable(entry.archive_dest):
                    errors.append(f"{prefix}: archive_dest {str(entry.archive_dest)!r} does not exist and cannot be created")
            if entry.action_on_fail.strip().lower() == "archive" and entry.fail_dest:
                if not _is_dir_or_creatable(entry.fail_dest):
                    errors.append(f"{prefix}: fail_dest {str(entry.fail_dest)!r} does not exist and cannot be created")

        return errors


def _is_dir_or_creatable(path: Path) -> bool:
    if path.is_dir():
        return True
    parent = path.parent
    if not parent.is_dir():
        return False
    # Probe the parent for write access without creating the directory itself.
    try:
        fd, probe = tempfile.mkstemp(prefix=".permcheck-", dir=parent)
    except OSError:
        return False
    os.close(fd)
    os.remove(probe)
    return True
