"""
Storage Layer.

This package handles data persistence: the INI configuration file and
the per-item metadata sidecars used to resume backups.
"""

from .config_manager import ConfigManager
from .sidecar import SidecarStore

__all__ = ["ConfigManager", "SidecarStore"]
