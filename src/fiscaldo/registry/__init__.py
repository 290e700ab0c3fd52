"""DGII taxpayer registry: source parsing, SQL storage and batch import."""

from .importer import (
    FailedBatch,
    ImportLock,
    ImportLockedError,
    ImportResult,
    LineError,
    RegistryImporter,
)
from .source import (
    CLASSIFICATION_RULES,
    RegistryError,
    RegistryLineError,
    RegistrySource,
    RegistrySourceError,
    TaxpayerCategory,
    TaxpayerRecord,
    TaxpayerStatus,
    TaxRegime,
    classify_taxpayer,
    parse_registry_line,
)
from .store import ImportCheckpoint, RegistryStore

__all__ = [
    "CLASSIFICATION_RULES",
    "FailedBatch",
    "ImportCheckpoint",
    "ImportLock",
    "ImportLockedError",
    "ImportResult",
    "LineError",
    "RegistryError",
    "RegistryImporter",
    "RegistryLineError",
    "RegistrySource",
    "RegistrySourceError",
    "RegistryStore",
    "TaxRegime",
    "TaxpayerCategory",
    "TaxpayerRecord",
    "TaxpayerStatus",
    "classify_taxpayer",
    "parse_registry_line",
]
