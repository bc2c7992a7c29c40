from dataclasses import dataclass, field
from typing import Dict, Optional

import yaml

from pykagi.config.errors import ConfigurationError
from pykagi.config.logging import LogConfig, parse_logging_config
from pykagi.config.settings import CompressionSettings, EncryptionSettings

__all__ = ['CLIConfig', 'CLIRootConfig', 'parse_cli_config']


@dataclass
class CLIConfig:
    """
    CLI configuration settings.
    """

    compression: CompressionSettings = field(
        default_factory=CompressionSettings
    )
    """
    Image recompression settings, from the ``compression`` section.
    Individual values can be overridden on the command line.
    """

    encryption: EncryptionSettings = field(default_factory=EncryptionSettings)
    """
    Encryption defaults, from the ``encryption`` section.
    """

    raw_config: dict = field(default_factory=dict)
    """
    The raw config data parsed into a Python dictionary.
    """


@dataclass(frozen=True)
class CLIRootConfig:
    """
    Config settings that are only relevant to the CLI root and are not exposed
    to subcommands.
    """

    config: CLIConfig
    """
    General CLI config.
    """

    log_config: Dict[Optional[str], LogConfig]
    """
    Per-module logging configuration. The keys in this dictionary are
    module names, the :class:`.LogConfig` values define the logging settings.

    The ``None`` key houses the configuration for the root logger, if any.
    """


_KNOWN_SECTIONS = ('logging', 'compression', 'encryption')


def parse_cli_config(yaml_str) -> CLIRootConfig:
    try:
        config_dict = yaml.safe_load(yaml_str) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse configuration: {e}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "The configuration file should contain a dictionary."
        )
    unknown = set(config_dict.keys()) - set(_KNOWN_SECTIONS)
    if unknown:
        raise ConfigurationError(
            f"Unexpected configuration "
            f"{'section' if len(unknown) == 1 else 'sections'}: "
            f"{', '.join(sorted(map(str, unknown)))}."
        )
    log_config = parse_logging_config(config_dict.get('logging', {}))
    return CLIRootConfig(
        config=CLIConfig(
            **process_config_dict(config_dict), raw_config=config_dict
        ),
        log_config=log_config,
    )


def process_config_dict(config_dict: dict) -> dict:
    compression = CompressionSettings.from_config(
        config_dict.get('compression', {})
    )
    encryption = EncryptionSettings.from_config(
        config_dict.get('encryption', {})
    )
    return dict(compression=compression, encryption=encryption)
