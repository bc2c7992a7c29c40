"""
Fixed-length key types for the legacy RC4 security handler.

Both types are thin :class:`bytes` subclasses that refuse to be instantiated
with a value of the wrong length, so a key that made it into the cipher
routines is guaranteed to have the size mandated by Revision 2.
"""

from pykagi.misc import CipherKeyLengthError

__all__ = [
    'FILE_KEY_LENGTH',
    'OBJECT_KEY_LENGTH',
    'FileEncryptionKey',
    'ObjectKey',
]

FILE_KEY_LENGTH = 5
"""
Length of the document-wide encryption key (40 bits) for Revision 2.
"""

OBJECT_KEY_LENGTH = FILE_KEY_LENGTH + 5
"""
Length of a per-object key: the file key length plus the 5 salt bytes.
"""


class _FixedLengthKey(bytes):
    key_length: int

    def __new__(cls, value: bytes):
        if len(value) != cls.key_length:
            raise CipherKeyLengthError(
                cls.__name__, expected=cls.key_length, actual=len(value)
            )
        return super().__new__(cls, value)

    def __repr__(self):
        # don't leak key material into logs
        return f'<{self.__class__.__name__}, {self.key_length} bytes>'


class FileEncryptionKey(_FixedLengthKey):
    """
    The global 40-bit key of an encrypted document.
    """

    key_length = FILE_KEY_LENGTH


class ObjectKey(_FixedLengthKey):
    """
    RC4 key for a single indirect object, derived from the
    :class:`FileEncryptionKey` and the object's ID and generation number.
    """

    key_length = OBJECT_KEY_LENGTH
