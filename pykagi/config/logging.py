"""
Logging settings for the command line interface.

The ``logging`` section of a configuration file looks like this::

    logging:
      root-level: INFO
      root-output: stderr
      by-module:
        pykagi.compress: DEBUG
        pykagi.crypt:
          level: WARNING
          output: crypt.log

Outputs are either ``stderr``, ``stdout`` or the path to a log file.
Module entries that don't specify an output inherit the root output.
Levels can be given by name (case-insensitive) or as integers, and are
normalised to integers.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from pykagi.config.api import ConfigurableMixin
from pykagi.config.errors import ConfigurationError

__all__ = [
    'StdLogOutput',
    'LogConfig',
    'DEFAULT_ROOT_LOGGER_LEVEL',
    'QUIET_LOGGERS',
    'parse_log_level',
    'parse_log_output',
    'parse_logging_config',
]


class StdLogOutput(enum.Enum):
    STDERR = enum.auto()
    STDOUT = enum.auto()


DEFAULT_ROOT_LOGGER_LEVEL = logging.INFO

QUIET_LOGGERS = ('PIL', 'pyhanko')
"""
Third-party loggers that are capped at ``WARNING`` unless configured
explicitly. Pillow's plugin loader and pyHanko's reader are both chatty
at lower levels.
"""


def parse_log_level(spec) -> int:
    if isinstance(spec, bool) or not isinstance(spec, (int, str)):
        raise ConfigurationError(
            f"Log levels must be int or str, not {type(spec).__name__}."
        )
    if isinstance(spec, int):
        return spec
    level = logging.getLevelName(spec.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level '{spec}'.")
    return level


def parse_log_output(spec) -> Union[StdLogOutput, str]:
    if isinstance(spec, StdLogOutput):
        return spec
    if not isinstance(spec, str) or not spec:
        raise ConfigurationError(
            "Log output must be specified as a non-empty string."
        )
    try:
        return StdLogOutput[spec.upper()]
    except KeyError:
        return spec


@dataclass(frozen=True)
class LogConfig(ConfigurableMixin):
    level: int
    """
    Logging level, as defined in the :mod:`logging` module.
    """

    output: Union[StdLogOutput, str] = StdLogOutput.STDERR
    """
    Name of the output file, or a standard stream.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        if 'level' in config_dict:
            config_dict['level'] = parse_log_level(config_dict['level'])
        if 'output' in config_dict:
            config_dict['output'] = parse_log_output(config_dict['output'])


def _module_config(module, spec, root: LogConfig) -> LogConfig:
    if isinstance(spec, dict):
        spec = dict(spec)
        spec.setdefault('output', root.output)
        return LogConfig.from_config(spec)
    # shorthand: just a level
    try:
        return LogConfig(parse_log_level(spec), root.output)
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Logging settings for '{module}': {e.msg}"
        ) from e


def parse_logging_config(log_config_spec) -> Dict[Optional[str], LogConfig]:
    """
    Process the ``logging`` section of a configuration file.

    :param log_config_spec:
        The contents of the section, as a dictionary.
    :return:
        A dictionary mapping logger names to their settings. The root
        logger's settings are stored under ``None``.
    :raises ConfigurationError:
        If the section is malformed.
    """
    if not isinstance(log_config_spec, dict):
        raise ConfigurationError('logging config should be a dictionary')

    root = LogConfig(
        parse_log_level(
            log_config_spec.get('root-level', DEFAULT_ROOT_LOGGER_LEVEL)
        ),
        parse_log_output(log_config_spec.get('root-output', 'stderr')),
    )
    log_config: Dict[Optional[str], LogConfig] = {None: root}
    for name in QUIET_LOGGERS:
        log_config[name] = LogConfig(logging.WARNING, root.output)

    by_module = log_config_spec.get('by-module', {})
    if not isinstance(by_module, dict):
        raise ConfigurationError('logging.by-module should be a dict')
    for module, spec in by_module.items():
        if not isinstance(module, str):
            raise ConfigurationError(
                "Keys in logging.by-module should be strings"
            )
        log_config[module] = _module_config(module, spec, root)

    return log_config
