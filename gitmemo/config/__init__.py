"""
gitmemo Configuration Module

Provides centralized configuration loading for the memo store.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml


_config_cache: Optional[Dict[str, Any]] = None
CONFIG_DIR = Path(__file__).parent

WRITE_MODES = ("last_write_wins", "version_checked")


def get_gitmemo_config() -> Dict[str, Any]:
    """
    Load gitmemo configuration (cached).

    Returns:
        Dict containing all configuration settings.
    """
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_path = CONFIG_DIR / "gitmemo_config.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        _config_cache = yaml.safe_load(f)

    return _config_cache


def clear_config_cache() -> None:
    """Clear the config cache (useful for testing)."""
    global _config_cache
    _config_cache = None


@dataclass(frozen=True)
class RemoteSettings:
    api_url: str = "https://api.github.com"
    owner: str = ""
    repo: str = ""
    branch: str = "main"
    api_version: str = "2022-11-28"
    user_agent: str = "gitmemo"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class RetrySettings:
    retries: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0


@dataclass(frozen=True)
class MemoSettings:
    directory: str = "data/memos"
    file_prefix: str = "memos-"
    file_suffix: str = ".json"
    timezone: str = "Asia/Shanghai"
    max_content_length: int = 10000
    default_page_size: int = 2
    write_mode: str = "last_write_wins"
    conflict_retries: int = 2
    commit_message: str = "docs: update {path}"


@dataclass(frozen=True)
class AssetSettings:
    directory: str = "assets/memos"
    max_size_bytes: int = 10 * 1024 * 1024
    upload_batch_size: int = 3
    supported_types: List[str] = field(default_factory=lambda: [
        "image/jpeg", "image/png", "image/gif",
        "image/webp", "image/heic", "image/heif",
    ])
    upload_message: str = "docs: add image {path}"
    delete_message: str = "docs: delete image {path}"


@dataclass(frozen=True)
class ImageSettings:
    budget_bytes: int = 3544186
    min_budget_bytes: int = 4096
    max_dimension: int = 1920
    min_dimension: int = 16
    start_quality: int = 85
    quality_step: int = 10
    quality_floor: int = 35
    reset_quality: int = 60
    dimension_ratio: float = 0.75
    max_attempts: int = 12


@dataclass(frozen=True)
class StoreSettings:
    """Typed view over gitmemo_config.yaml plus environment overrides."""

    remote: RemoteSettings = field(default_factory=RemoteSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    memos: MemoSettings = field(default_factory=MemoSettings)
    assets: AssetSettings = field(default_factory=AssetSettings)
    images: ImageSettings = field(default_factory=ImageSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreSettings":
        """Build settings from a config dict shaped like the YAML file."""
        data = data or {}
        return cls(
            remote=RemoteSettings(**data.get("remote", {})),
            retry=RetrySettings(**data.get("retry", {})),
            memos=MemoSettings(**data.get("memos", {})),
            assets=AssetSettings(**data.get("assets", {})),
            images=ImageSettings(**data.get("images", {})),
        )

    @classmethod
    def load(cls, **remote_overrides: Any) -> "StoreSettings":
        """
        Load settings from the packaged YAML, then apply environment
        variables, then explicit remote overrides (owner=..., repo=...).
        """
        settings = cls.from_dict(get_gitmemo_config())

        env_remote = {
            "api_url": os.getenv("GITMEMO_API_URL"),
            "owner": os.getenv("GITMEMO_OWNER"),
            "repo": os.getenv("GITMEMO_REPO"),
            "branch": os.getenv("GITMEMO_BRANCH"),
        }
        env_remote = {k: v for k, v in env_remote.items() if v}
        env_remote.update(remote_overrides)

        memo_overrides = {}
        if os.getenv("GITMEMO_TIMEZONE"):
            memo_overrides["timezone"] = os.getenv("GITMEMO_TIMEZONE")
        if os.getenv("GITMEMO_WRITE_MODE"):
            memo_overrides["write_mode"] = os.getenv("GITMEMO_WRITE_MODE")

        settings = replace(
            settings,
            remote=replace(settings.remote, **env_remote),
            memos=replace(settings.memos, **memo_overrides),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.memos.write_mode not in WRITE_MODES:
            raise ValueError(
                f"write_mode must be one of {WRITE_MODES}, got '{self.memos.write_mode}'"
            )
        if self.retry.retries < 0:
            raise ValueError("retry.retries must be >= 0")
        if not 0 < self.images.dimension_ratio < 1:
            raise ValueError("images.dimension_ratio must be between 0 and 1")
        if not self.images.quality_floor <= self.images.reset_quality <= 100:
            raise ValueError("images.reset_quality must be between quality_floor and 100")
