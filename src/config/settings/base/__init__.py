"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.base.dedupe import (
    DedupeBackend,
    DedupeMode,
    DedupeSettings,
    get_dedupe_settings,
)
from config.settings.base.stores import (
    AuditBackend,
    RelationalBackend,
    StoreSettings,
    get_store_settings,
)

__all__ = [
    "AuditBackend",
    # Core
    "BaseSettings",
    "DedupeBackend",
    "DedupeMode",
    # Dedupe
    "DedupeSettings",
    # Types
    "Environment",
    "RelationalBackend",
    # Stores
    "StoreSettings",
    "get_base_settings",
    "get_dedupe_settings",
    "get_store_settings",
]
