"""Core module - path guard, traversal, materialization and operations."""

from bifrost.core.config import BifrostConfig, ConfigManager, RealmConfig
from bifrost.core.errors import (
    ErrorCategory,
    BifrostError,
    InvalidNameError,
    AlreadyExistsError,
    NotFoundError,
    IOFailureError,
    IncompleteLoadError,
    ProcessFailureError,
)
from bifrost.core.path_guard import TargetPath, for_create, for_existing
from bifrost.core.walker import ErrorPolicy, WorkingDir, walk
from bifrost.core.materializer import materialize
from bifrost.core.realm import Mode, Realm
from bifrost.core.lifecycle import (
    OperationResult,
    LoadOperation,
    ShowOperation,
    UnloadOperation,
    RunOperation,
    Listing,
)

__all__ = [
    "BifrostConfig",
    "ConfigManager",
    "RealmConfig",
    "ErrorCategory",
    "BifrostError",
    "InvalidNameError",
    "AlreadyExistsError",
    "NotFoundError",
    "IOFailureError",
    "IncompleteLoadError",
    "ProcessFailureError",
    "TargetPath",
    "for_create",
    "for_existing",
    "ErrorPolicy",
    "WorkingDir",
    "walk",
    "materialize",
    "Mode",
    "Realm",
    "OperationResult",
    "LoadOperation",
    "ShowOperation",
    "UnloadOperation",
    "RunOperation",
    "Listing",
]
