"""Grocery Voice - Category grocery lists with voice-style commands."""

from .config import ConfigManager
from .interpreter import (
    Command,
    CommandInterpreter,
    CommandResult,
    FailureReason,
    Intent,
    parse_command,
)
from .local_store import LocalStore
from .models import Category, GroceryItem, StoreResult, SyncStatus
from .output_formatter import OutputFormatter
from .remote_store import RemoteStore, RemoteStoreError
from .repository import GroceryRepository, create_repository
from .resilience import RecordNotFoundError
from .state import EmptyNameError, GroceryError, GroceryState, NegativeQuantityError

__version__ = "0.1.0"

__all__ = [
    "Category",
    "Command",
    "CommandInterpreter",
    "CommandResult",
    "ConfigManager",
    "create_repository",
    "EmptyNameError",
    "FailureReason",
    "GroceryError",
    "GroceryItem",
    "GroceryRepository",
    "GroceryState",
    "Intent",
    "LocalStore",
    "NegativeQuantityError",
    "OutputFormatter",
    "parse_command",
    "RecordNotFoundError",
    "RemoteStore",
    "RemoteStoreError",
    "StoreResult",
    "SyncStatus",
]
