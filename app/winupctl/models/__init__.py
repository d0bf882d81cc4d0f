"""Data models for winupctl.

This module exports the core data structures used throughout the application.
"""

from winupctl.models.cache import (
    CacheEntry,
    CacheStatistics,
    ChangeType,
    PackageChange,
)
from winupctl.models.config import AppConfig
from winupctl.models.history import HistoryEntry, OperationType, create_history_entry
from winupctl.models.operation import OperationResult, UpdateOutcome
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.models.priority import (
    OrderingStrategy,
    PrioritizedPackage,
    PriorityConfig,
    PriorityTier,
)
from winupctl.models.validation import (
    HashAlgorithm,
    HashRecord,
    SecurityValidationResult,
    SignatureStatus,
    SignatureVerdict,
    UpdateValidationRequest,
    UpdateValidationResult,
    ValidationMethod,
)

__all__ = [
    "AppConfig",
    "CacheEntry",
    "CacheStatistics",
    "ChangeType",
    "HashAlgorithm",
    "HashRecord",
    "HistoryEntry",
    "OperationResult",
    "OperationType",
    "OrderingStrategy",
    "PackageChange",
    "PackageSource",
    "PrioritizedPackage",
    "PriorityConfig",
    "PriorityTier",
    "SecurityValidationResult",
    "SignatureStatus",
    "SignatureVerdict",
    "UpdateOutcome",
    "UpdateValidationRequest",
    "UpdateValidationResult",
    "UpgradablePackage",
    "ValidationMethod",
    "create_history_entry",
]
