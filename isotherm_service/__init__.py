"""
isotherm_service - Zone map service

Bounded Context: Service orchestration
Responsibilities:
  - YAML configuration (ServiceConfig and nested sections)
  - Source bindings (polygon id -> data source)
  - ZoneMapService lifecycle (setup, start, wait, stop)
"""

from .config import (
    CanvasConfig,
    DataSourceConfig,
    MQTTConfig,
    ProviderConfig,
    ServiceConfig,
    SourceBindings,
)
from .service import ZoneMapService

__all__ = [
    "CanvasConfig",
    "DataSourceConfig",
    "MQTTConfig",
    "ProviderConfig",
    "ServiceConfig",
    "SourceBindings",
    "ZoneMapService",
]
