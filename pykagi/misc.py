"""
Exception classes and assorted utilities used throughout pyKagi.

Generally, all of these constitute internal API, except for the exception
classes.
"""

from typing import Callable

__all__ = [
    'PyKagiError',
    'DocumentLoadError',
    'ImageDecodeError',
    'CipherKeyLengthError',
    'OutputPathError',
    'get_and_apply',
]


class PyKagiError(Exception):
    def __init__(self, msg: str, *args):
        self.msg = msg
        super().__init__(msg, *args)


class DocumentLoadError(PyKagiError):
    """
    Raised when an input document cannot be read, or cannot be processed
    in its current state (e.g. because it is already encrypted).
    """

    pass


class ImageDecodeError(PyKagiError):
    """
    Raised when an embedded image cannot be decoded or re-encoded.

    This error never escapes the recompression routines: the offending image
    is left untouched and reported as skipped.
    """

    pass


class CipherKeyLengthError(PyKagiError, ValueError):
    """
    Raised when a cipher key of the wrong size is constructed.
    This is an internal consistency error, not a user error.
    """

    def __init__(self, kind: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{kind} must be exactly {expected} bytes long, not {actual}."
        )


class OutputPathError(PyKagiError):
    """
    Raised when an output path cannot be determined or written to.
    """

    pass


def get_and_apply(dictionary: dict, key, function: Callable, *, default=None):
    try:
        value = dictionary[key]
    except KeyError:
        return default
    return function(value)
