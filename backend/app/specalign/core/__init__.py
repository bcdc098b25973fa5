"""Core package"""
from specalign.core.config import Settings, settings
from specalign.core.errors import (
    DatabaseError,
    ExternalServiceError,
    GeneralError,
    InvalidInputError,
    NotFoundError,
    SpecAlignError,
    StorageIOError,
    require_non_empty,
)

__all__ = [
    "Settings",
    "settings",
    "SpecAlignError",
    "InvalidInputError",
    "NotFoundError",
    "StorageIOError",
    "DatabaseError",
    "ExternalServiceError",
    "GeneralError",
    "require_non_empty",
]
