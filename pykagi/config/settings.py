from dataclasses import dataclass

from pykagi.config.api import ConfigurableMixin
from pykagi.config.errors import ConfigurationError

__all__ = [
    'DEFAULT_JPEG_QUALITY',
    'DEFAULT_MAX_WIDTH',
    'DEFAULT_MAX_HEIGHT',
    'CompressionSettings',
    'EncryptionSettings',
]

DEFAULT_JPEG_QUALITY = 70
DEFAULT_MAX_WIDTH = 1200
DEFAULT_MAX_HEIGHT = 1600


def _positive_int(config_dict, key):
    try:
        value = config_dict[key]
    except KeyError:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"'{key.replace('_', '-')}' must be a positive integer, "
            f"not {value!r}."
        )


@dataclass(frozen=True)
class CompressionSettings(ConfigurableMixin):
    """
    Settings for image recompression.
    """

    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    """
    JPEG quality level used when re-encoding images (1-95).
    """

    max_width: int = DEFAULT_MAX_WIDTH
    """
    Images wider than this are scaled down, preserving the aspect ratio.
    """

    max_height: int = DEFAULT_MAX_HEIGHT
    """
    Images higher than this are scaled down, preserving the aspect ratio.
    """

    def __post_init__(self):
        if not 1 <= self.jpeg_quality <= 95:
            raise ConfigurationError(
                f"JPEG quality must be between 1 and 95, "
                f"not {self.jpeg_quality}."
            )

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        for key in ('jpeg_quality', 'max_width', 'max_height'):
            _positive_int(config_dict, key)


@dataclass(frozen=True)
class EncryptionSettings(ConfigurableMixin):
    """
    Default settings for document encryption.
    """

    permissions: int = -4
    """
    Value of the ``/P`` entry, as a signed 32-bit integer.
    The default allows everything.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        try:
            perms = config_dict['permissions']
        except KeyError:
            return
        if isinstance(perms, bool) or not isinstance(perms, int) \
                or not -(2**31) <= perms < 2**31:
            raise ConfigurationError(
                "'permissions' must be a signed 32-bit integer."
            )
