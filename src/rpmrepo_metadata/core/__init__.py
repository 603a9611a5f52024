"""
Core functionality for rpmrepo-metadata.

This package provides configuration management.
"""

from rpmrepo_metadata.core.config import (
    ConfigLoader,
    GlobalConfig,
    MetadataConfig,
    create_example_config,
    load_config,
)

__all__ = [
    "ConfigLoader",
    "GlobalConfig",
    "MetadataConfig",
    "create_example_config",
    "load_config",
]
