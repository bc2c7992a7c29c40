"""
Password-based PDF encryption using the standard security handler,
revision 2 (40-bit RC4 with MD5-based key derivation).

The building blocks live in :mod:`.legacy`:

* :func:`.legacy.pad_password` normalises passwords to 32 bytes;
* :func:`.legacy.compute_o_value` derives the ``/O`` entry;
* :func:`.legacy.derive_file_key` derives the document-wide 40-bit key;
* :func:`.legacy.compute_u_value` derives the ``/U`` entry;
* :func:`.legacy.apply_object_cipher` encrypts the payload of one object.

:func:`.standard.encrypt_document` strings these together to encrypt all
strings and streams in a :class:`~pykagi.document.Document`.

.. danger::
    One should be aware that the legacy encryption scheme implemented
    here is (very) weak, and is only supported for compatibility reasons.
    Readers are free to ignore the permission flags, and the 40-bit key
    can be brute-forced on commodity hardware.

.. note::
    Only encryption is implemented. To read files produced by this module,
    use a PDF processor such as pyHanko.
"""

from .keys import FileEncryptionKey, ObjectKey
from .legacy import (
    ENCRYPTION_PADDING,
    apply_object_cipher,
    compute_o_value,
    compute_u_value,
    derive_file_key,
    derive_object_key,
    pad_password,
)
from .permissions import ALL_PERMS, Rev2Permissions
from .standard import EncryptionSummary, encrypt_document, resolve_file_id

__all__ = [
    'ALL_PERMS',
    'ENCRYPTION_PADDING',
    'EncryptionSummary',
    'FileEncryptionKey',
    'ObjectKey',
    'Rev2Permissions',
    'apply_object_cipher',
    'compute_o_value',
    'compute_u_value',
    'derive_file_key',
    'derive_object_key',
    'encrypt_document',
    'pad_password',
    'resolve_file_id',
]
