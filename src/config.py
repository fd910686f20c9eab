import os
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, PositiveInt, ValidationError

from src.core.datasets import DatasetKind
from src.core.errors import ConfigurationError

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Config:
    # ClickHouse
    CLICKHOUSE_HOST = os.getenv("CLICKHOUSE_HOST", "localhost")
    CLICKHOUSE_PORT = int(os.getenv("CLICKHOUSE_PORT", "8123"))
    CLICKHOUSE_USER = os.getenv("CLICKHOUSE_USER", "default")
    CLICKHOUSE_PASSWORD = os.getenv("CLICKHOUSE_PASSWORD", "")
    CLICKHOUSE_DATABASE = os.getenv("CLICKHOUSE_DATABASE", "beacon_chain")
    CLICKHOUSE_SECURE = os.getenv("CLICKHOUSE_SECURE", "false").lower() == "true"

    # Beacon Node (only queried when chain constants are not configured or indexed)
    BEACON_NODE_URL = os.getenv("BEACON_NODE_URL", "http://localhost:5052")

    # Chain timing, normally read from the indexed specs table
    SECONDS_PER_SLOT = _optional_int("SECONDS_PER_SLOT")
    SLOTS_PER_EPOCH = _optional_int("SLOTS_PER_EPOCH")

    # Loop intervals in seconds
    STATISTICS_POLL_INTERVAL = int(os.getenv("STATISTICS_POLL_INTERVAL", "60"))
    POOLS_REFRESH_INTERVAL = int(os.getenv("POOLS_REFRESH_INTERVAL", "600"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

config = Config()


class ClickHouseSettings(BaseModel):
    host: str = Field(default_factory=lambda: config.CLICKHOUSE_HOST)
    port: PositiveInt = Field(default_factory=lambda: config.CLICKHOUSE_PORT)
    user: str = Field(default_factory=lambda: config.CLICKHOUSE_USER)
    password: str = Field(default_factory=lambda: config.CLICKHOUSE_PASSWORD)
    database: str = Field(default_factory=lambda: config.CLICKHOUSE_DATABASE)
    secure: bool = Field(default_factory=lambda: config.CLICKHOUSE_SECURE)
    verify: bool = False


class ChainSettings(BaseModel):
    seconds_per_slot: Optional[PositiveInt] = Field(default_factory=lambda: config.SECONDS_PER_SLOT)
    slots_per_epoch: Optional[PositiveInt] = Field(default_factory=lambda: config.SLOTS_PER_EPOCH)
    beacon_node_url: str = Field(default_factory=lambda: config.BEACON_NODE_URL)
    # Must return a single column named epoch
    latest_epoch_query: str = "SELECT maxOrNull(epoch) AS epoch FROM epochs"


class DatasetSettings(BaseModel):
    status_table: Optional[str] = None
    # Run in order with {day:UInt64}, {first_epoch:UInt64}, {last_epoch:UInt64} bound
    statements: List[str] = Field(default_factory=list)


class StatisticsSettings(BaseModel):
    poll_interval: PositiveInt = Field(default_factory=lambda: config.STATISTICS_POLL_INTERVAL)
    validator_statistics: DatasetSettings = Field(default_factory=DatasetSettings)
    chart_series: DatasetSettings = Field(default_factory=DatasetSettings)

    def for_kind(self, kind: DatasetKind) -> DatasetSettings:
        if kind == DatasetKind.VALIDATOR_STATISTICS:
            return self.validator_statistics
        return self.chart_series

    def status_tables(self) -> Dict[DatasetKind, str]:
        tables = {}
        for kind in DatasetKind:
            table = self.for_kind(kind).status_table
            if table:
                tables[kind] = table
        return tables


class PoolSettings(BaseModel):
    refresh_interval: PositiveInt = Field(default_factory=lambda: config.POOLS_REFRESH_INTERVAL)
    statements: List[str] = Field(default_factory=list)


class StatusSettings(BaseModel):
    table: str = "service_status"


class ExporterConfig(BaseModel):
    """Configuration read from the --config file, with environment defaults."""
    clickhouse: ClickHouseSettings = Field(default_factory=ClickHouseSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    statistics: StatisticsSettings = Field(default_factory=StatisticsSettings)
    pools: PoolSettings = Field(default_factory=PoolSettings)
    status: StatusSettings = Field(default_factory=StatusSettings)


def load_config(path: str) -> ExporterConfig:
    """
    Load the YAML configuration file at ``path``.

    Sections left out of the file fall back to the environment defaults.
    Raises ConfigurationError if the file cannot be read or is invalid.
    """
    try:
        with open(path, 'r') as f:
            raw: Any = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"error reading config file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping at the top level")

    try:
        return ExporterConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"invalid config file {path}: {e}") from e
