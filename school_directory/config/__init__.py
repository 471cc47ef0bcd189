"""Configuration for the school directory backend."""

from .settings import DatabaseConfig, Settings, UploadConfig, settings

__all__ = ["DatabaseConfig", "Settings", "UploadConfig", "settings"]
