"""
Configuration Module

Provides centralized configuration management for the application.
Supports YAML config files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries. Override values take precedence.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config() -> Dict[str, Any]:
    """
    Load configuration from YAML files with local override support.

    Loading order:
    1. Load config.yaml (or config.example.yaml as fallback) as base configuration
    2. If config.local.yaml exists, merge it with base (local values override base)
    3. Return merged configuration

    The WORKBENCH_CONFIG_DIR environment variable points the loader at another
    directory holding the same files.

    Returns:
        Dictionary containing all configuration values
    """
    config_dir = Path(os.environ.get("WORKBENCH_CONFIG_DIR") or Path(__file__).parent)
    config_path = config_dir / "config.yaml"

    # Load base configuration
    if not config_path.exists():
        config_path = config_dir / "config.example.yaml"
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found. Please create {config_dir / 'config.yaml'} "
                f"based on {config_dir / 'config.example.yaml'}"
            )

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            base_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML configuration: {e}")

    local_config_path = config_dir / "config.local.yaml"
    if local_config_path.exists():
        try:
            with open(local_config_path, 'r', encoding='utf-8') as f:
                local_config = yaml.safe_load(f) or {}
            return deep_merge(base_config, local_config)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing local YAML configuration: {e}")

    return base_config


# Load configuration
_config = load_yaml_config()


# ============================================================================
# Server Configuration
# ============================================================================

class ServerConfig:
    """Server configuration management"""

    _server_config = _config.get("server", {})

    HOST = _server_config.get("host", "0.0.0.0")
    PORT = _server_config.get("port", 4000)
    RELOAD = _server_config.get("reload", False)
    DEBUG = _server_config.get("debug", False)
    CORS_ORIGINS = _server_config.get("cors_origins", ["http://localhost:3000"])


# ============================================================================
# Container Runtime Configuration
# ============================================================================

class RuntimeConfig:
    """Container runtime (podman/docker CLI) configuration"""

    _runtime_config = _config.get("runtime", {})

    BINARY = os.environ.get("WORKBENCH_RUNTIME") or _runtime_config.get("binary", "podman")
    PROJECT_LABEL = _runtime_config.get("project_label", "workbench")
    TYPE_LABEL = _runtime_config.get("type_label", "nextjs-app")
    IMAGE_PREFIX = _runtime_config.get("image_prefix", "workbench-nextjs")
    CONTAINERFILE_PATH = Path(_runtime_config.get("containerfile_path", "./Containerfile"))
    CONTAINER_PORT = _runtime_config.get("container_port", 3000)

    # Output ceilings in bytes
    DEFAULT_MAX_BUFFER = _runtime_config.get("default_max_buffer", 1024 * 1024)
    LARGE_MAX_BUFFER = _runtime_config.get("large_max_buffer", 50 * 1024 * 1024)


# ============================================================================
# Port Allocation Configuration
# ============================================================================

class PortConfig:
    """Host port allocation configuration"""

    _port_config = _config.get("ports", {})

    BASE_PORT = _port_config.get("base_port", 8000)
    SCAN_WINDOW = _port_config.get("scan_window", 1000)


# ============================================================================
# Remote Filesystem Configuration
# ============================================================================

class FileSystemConfig:
    """Remote filesystem bridge configuration"""

    _fs_config = _config.get("filesystem", {})

    BASE_PATH = _fs_config.get("base_path", "/app/my-nextjs-app")
    MAX_READ_BYTES = _fs_config.get("max_read_bytes", 10_000_000)
    READ_BATCH_SIZE = _fs_config.get("read_batch_size", 50)
    # Empty means the system temp directory
    TEMP_DIR = _fs_config.get("temp_dir") or None


# ============================================================================
# Logging Configuration
# ============================================================================

class LogConfig:
    """Log output configuration"""

    _log_config = _config.get("logging", {})

    LEVEL = _log_config.get("level", "INFO")
    DIR = _log_config.get("dir") or None
    FILE_NAME = _log_config.get("file_name", "workbench")
    BACKUP_COUNT = _log_config.get("backup_count", 30)


# ============================================================================
# Pydantic Settings
# ============================================================================

class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WORKBENCH_",
        extra="ignore",
    )

    # Application
    app_name: str = "Workbench"
    debug: bool = ServerConfig.DEBUG

    # Server
    host: str = ServerConfig.HOST
    port: int = ServerConfig.PORT
    cors_origins: List[str] = ServerConfig.CORS_ORIGINS

    # Runtime
    runtime_binary: str = RuntimeConfig.BINARY
    project_label: str = RuntimeConfig.PROJECT_LABEL
    type_label: str = RuntimeConfig.TYPE_LABEL
    image_prefix: str = RuntimeConfig.IMAGE_PREFIX
    containerfile_path: Path = RuntimeConfig.CONTAINERFILE_PATH
    container_port: int = RuntimeConfig.CONTAINER_PORT
    default_max_buffer: int = RuntimeConfig.DEFAULT_MAX_BUFFER
    large_max_buffer: int = RuntimeConfig.LARGE_MAX_BUFFER

    # Ports
    base_port: int = PortConfig.BASE_PORT
    port_scan_window: int = PortConfig.SCAN_WINDOW

    # Remote filesystem
    fs_base_path: str = FileSystemConfig.BASE_PATH
    fs_max_read_bytes: int = FileSystemConfig.MAX_READ_BYTES
    fs_read_batch_size: int = FileSystemConfig.READ_BATCH_SIZE


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


__all__ = [
    "load_yaml_config",
    "deep_merge",
    "ServerConfig",
    "RuntimeConfig",
    "PortConfig",
    "FileSystemConfig",
    "LogConfig",
    "Settings",
    "get_settings",
]
