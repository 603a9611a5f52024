"""
Configuration management for rpmrepo-metadata.

This module provides Pydantic models for configuration validation and
YAML-based configuration loading.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from rpmrepo_metadata.compression import COMPRESSION_FORMATS, parse_compression
from rpmrepo_metadata.errors import UnsupportedCompressionError
from rpmrepo_metadata.formats.base import UNMATCHED_POLICIES
from rpmrepo_metadata.mdtypes import METADATA_FILELISTS, METADATA_OTHER, METADATA_PRIMARY
from rpmrepo_metadata.models import CHECKSUM_ALGORITHMS

CONFIG_ENV_VAR = "RPMREPO_METADATA_CONFIG"

# Documents write_repository knows how to produce
WRITABLE_TYPES = ["primary", "filelists", "other", "updateinfo"]


class MetadataConfig(BaseModel):
    """Options for reading and writing repository metadata."""

    compression: str = "gzip"  # gzip, xz, bzip2, zstandard, none
    compression_level: Optional[int] = None  # Compressor default if unset
    checksum_type: str = "sha256"  # sha1, sha256, sha384, sha512

    # What to do with filelists/other records whose package is not in primary
    unmatched_packages: str = "error"  # error, append, skip

    # Content documents written by write_repository (updateinfo only if there are updates)
    repomd_types: List[str] = Field(default_factory=lambda: list(WRITABLE_TYPES))

    @field_validator("compression")
    @classmethod
    def validate_compression(cls, v: str) -> str:
        """Validate and normalize the compression type."""
        try:
            return parse_compression(v)
        except UnsupportedCompressionError:
            raise ValueError(
                f"Invalid compression: {v}. Must be one of {list(COMPRESSION_FORMATS)}"
            ) from None

    @field_validator("compression_level")
    @classmethod
    def validate_compression_level(cls, v: Optional[int]) -> Optional[int]:
        """Validate compression level."""
        if v is not None and v < 0:
            raise ValueError("compression_level cannot be negative")
        return v

    @field_validator("checksum_type")
    @classmethod
    def validate_checksum_type(cls, v: str) -> str:
        """Validate checksum algorithm."""
        if v not in CHECKSUM_ALGORITHMS:
            raise ValueError(
                f"Invalid checksum_type: {v}. Must be one of {list(CHECKSUM_ALGORITHMS)}"
            )
        return "sha1" if v == "sha" else v

    @field_validator("unmatched_packages")
    @classmethod
    def validate_unmatched_packages(cls, v: str) -> str:
        """Validate unmatched package policy."""
        if v not in UNMATCHED_POLICIES:
            raise ValueError(
                f"Invalid unmatched_packages policy: {v}. Must be one of {list(UNMATCHED_POLICIES)}"
            )
        return v

    @field_validator("repomd_types")
    @classmethod
    def validate_repomd_types(cls, v: List[str]) -> List[str]:
        """Validate written metadata types."""
        for mdtype in v:
            if mdtype not in WRITABLE_TYPES:
                raise ValueError(f"Invalid repomd type: {mdtype}. Must be one of {WRITABLE_TYPES}")
        if METADATA_PRIMARY not in v:
            raise ValueError("repomd_types must include primary")
        return v


class GlobalConfig(BaseModel):
    """Global rpmrepo-metadata configuration."""

    metadata: MetadataConfig = Field(default_factory=MetadataConfig)


class ConfigLoader:
    """Configuration file loader."""

    def __init__(self, config_path: Path):
        """Initialize config loader.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = config_path

    def load(self) -> GlobalConfig:
        """Load configuration from YAML file.

        Returns:
            GlobalConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"YAML syntax error in {self.config_path}:\n{e}")

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration in {self.config_path} must be a mapping")

        try:
            return GlobalConfig(**config_data)
        except Exception as e:
            raise ValueError(f"Configuration validation error in {self.config_path}:\n{e}")


def load_config(config_path: Optional[Path] = None) -> GlobalConfig:
    """Load configuration from file.

    Priority:
    1. Explicit config_path parameter
    2. RPMREPO_METADATA_CONFIG environment variable
    3. Default locations (/etc/rpmrepo-metadata/config.yaml,
       ~/.config/rpmrepo-metadata/config.yaml, ./config.yaml)
    4. Built-in defaults

    Args:
        config_path: Path to config file. If None, tries the environment
            variable or default locations.

    Returns:
        GlobalConfig instance

    Raises:
        FileNotFoundError: If an explicitly requested config file is missing
    """
    default_paths = [
        Path("/etc/rpmrepo-metadata/config.yaml"),
        Path.home() / ".config" / "rpmrepo-metadata" / "config.yaml",
        Path("config.yaml"),
    ]

    if config_path:
        paths_to_try = [config_path]
    elif os.environ.get(CONFIG_ENV_VAR):
        paths_to_try = [Path(os.environ[CONFIG_ENV_VAR])]
    else:
        paths_to_try = default_paths

    for path in paths_to_try:
        if path.exists():
            return ConfigLoader(path).load()

    if config_path:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    elif os.environ.get(CONFIG_ENV_VAR):
        raise FileNotFoundError(
            f"Configuration file not found: {os.environ[CONFIG_ENV_VAR]} (from {CONFIG_ENV_VAR})"
        )
    else:
        return GlobalConfig()


def create_example_config(output_path: Path) -> None:
    """Create an example configuration file.

    Args:
        output_path: Path to write example config
    """
    example_config = {
        "metadata": {
            "compression": "zstandard",
            "compression_level": 10,
            "checksum_type": "sha256",
            "unmatched_packages": "error",
            "repomd_types": [METADATA_PRIMARY, METADATA_FILELISTS, METADATA_OTHER],
        },
    }

    with open(output_path, "w") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
