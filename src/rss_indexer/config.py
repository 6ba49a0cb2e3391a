"""Configuration loader for rss-indexer."""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

CONFIG_DIR = Path(__file__).parent / "configs"


@dataclass
class ScheduleConfig:
    interval_seconds: int = 3600
    retention_hours: int = 72

    @property
    def interval(self) -> timedelta:
        return timedelta(seconds=self.interval_seconds)

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)


@dataclass
class FetchConfig:
    timeout: int = 30
    user_agent: str = "rss-indexer/1.0 (RSS reader)"


@dataclass
class WorkersConfig:
    max_workers: int = 8
    cycle_timeout: int = 900  # seconds allowed for all feeds of one cycle


@dataclass
class StoreConfig:
    statement_timeout_ms: int = 30000


@dataclass
class SearchConfig:
    hosts: list[str] = field(default_factory=lambda: ["http://localhost:9200"])
    request_timeout: int = 30


@dataclass
class Config:
    feeds_file: str = "feeds.txt"
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    workers: WorkersConfig = field(default_factory=WorkersConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)


def load_config(config_name: str | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_name: Name of config file (without .yaml extension) or a path
                    to a YAML file. If None, uses CONFIG_ENV env var or "prod".

    Returns:
        Loaded Config object
    """
    if config_name is None:
        config_name = os.environ.get("CONFIG_ENV", "prod")

    config_path = Path(config_name)
    if config_path.suffix not in (".yaml", ".yml"):
        config_path = CONFIG_DIR / f"{config_name}.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Parse config dictionary into Config object."""
    schedule = data.get("schedule", {})
    fetch = data.get("fetch", {})
    workers = data.get("workers", {})
    store = data.get("store", {})
    search = data.get("search", {})

    hosts = search.get("hosts", ["http://localhost:9200"])
    if isinstance(hosts, str):
        hosts = [hosts]
    # ELASTICSEARCH_URL wins over the profile, as with the official ES clients
    env_url = os.environ.get("ELASTICSEARCH_URL")
    if env_url:
        hosts = [url.strip() for url in env_url.split(",") if url.strip()]

    return Config(
        feeds_file=data.get("feeds_file", "feeds.txt"),
        schedule=ScheduleConfig(
            interval_seconds=schedule.get("interval_seconds", 3600),
            retention_hours=schedule.get("retention_hours", 72),
        ),
        fetch=FetchConfig(
            timeout=fetch.get("timeout", 30),
            user_agent=fetch.get("user_agent", "rss-indexer/1.0 (RSS reader)"),
        ),
        workers=WorkersConfig(
            max_workers=workers.get("max_workers", 8),
            cycle_timeout=workers.get("cycle_timeout", 900),
        ),
        store=StoreConfig(
            statement_timeout_ms=store.get("statement_timeout_ms", 30000),
        ),
        search=SearchConfig(
            hosts=hosts,
            request_timeout=search.get("request_timeout", 30),
        ),
    )
