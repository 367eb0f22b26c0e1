"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Library index storage (SQLite)
- Library-relative paths
- Console management (Rich) and logging (Loguru)

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
)

# Index storage
from .database import (
    INDEX_FILENAME,
    IndexEntry,
    IndexTransaction,
    LibraryIndex,
    find_index,
)

# Paths
from .paths import RelativePath, is_path_within

# Console
from .console import get_console, print_error, safe_print

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    # Index
    "INDEX_FILENAME",
    "IndexEntry",
    "IndexTransaction",
    "LibraryIndex",
    "find_index",
    # Paths
    "RelativePath",
    "is_path_within",
    # Console
    "get_console",
    "print_error",
    "safe_print",
]
