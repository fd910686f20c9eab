"""Operation types and modes for the exporter."""
from enum import Enum
from typing import Dict, Any
from abc import ABC, abstractmethod

from src.core.options import ExporterOptions


class OperationType(Enum):
    """Types of operations the exporter can perform."""
    CATCH_UP = "catch_up"
    BACKFILL = "backfill"
    POOL_REFRESH = "pool_refresh"


class OperationMode(ABC):
    """Base class for operation modes."""

    operation_type: OperationType

    def __init__(self, options: ExporterOptions):
        self.options = options

    @property
    def name(self) -> str:
        return self.operation_type.value

    @abstractmethod
    async def execute(self) -> Dict[str, Any]:
        """Execute the operation and return results."""
        pass

    @abstractmethod
    def validate_config(self) -> None:
        """Validate operation-specific configuration."""
        pass
