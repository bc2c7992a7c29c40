"""
Configuration handling for pyKagi: YAML-backed settings for logging,
image recompression and encryption defaults.
"""

from .errors import ConfigurationError

__all__ = ['ConfigurationError']
