"""Configuration module for the operator console bridge."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
