"""
Key derivation and object encryption for the standard security handler,
revision 2 (40-bit RC4), as described in section 3.5 of the PDF 1.7
reference (algorithms 3.1 through 3.4).

Everything in this module is a pure function of its arguments.
"""

import struct
from hashlib import md5
from typing import Optional, Union

from pyhanko.pdf_utils.generic import encode_pdfdocencoding

from ._util import as_signed, rc4_encrypt
from .keys import FILE_KEY_LENGTH, FileEncryptionKey, ObjectKey

__all__ = [
    'ENCRYPTION_PADDING',
    'pad_password',
    'normalise_password',
    'compute_o_value',
    'derive_file_key',
    'compute_u_value',
    'derive_object_key',
    'apply_object_cipher',
]

# ref: PDF 1.7 reference, section 3.5.2, algorithm 3.2
ENCRYPTION_PADDING = (
    b'\x28\xbf\x4e\x5e\x4e\x75\x8a\x41\x64\x00\x4e\x56'
    b'\xff\xfa\x01\x08\x2e\x2e\x00\xb6\xd0\x68\x3e\x80\x2f\x0c'
    b'\xa9\xfe\x64\x53\x69\x7a'
)

PasswordLike = Union[str, bytes]


def normalise_password(password: PasswordLike) -> bytes:
    """
    Convert a password to bytes. Text passwords are encoded using
    PDFDocEncoding where possible, and UTF-8 otherwise.
    """
    if isinstance(password, str):
        try:
            return encode_pdfdocencoding(password)
        except UnicodeEncodeError:
            return password.encode('utf-8')
    return bytes(password)


def pad_password(password: PasswordLike) -> bytes:
    """
    Pad or truncate a password to exactly 32 bytes.

    If the password is more than 32 bytes long, only its first 32 bytes are
    used; if it is shorter, it's padded with the required number of bytes
    from the beginning of :const:`ENCRYPTION_PADDING`.
    """
    return (normalise_password(password) + ENCRYPTION_PADDING)[:32]


# Implementation of algorithm 3.3, revision 2 only
def compute_o_value(
    user_password: PasswordLike, owner_password: Optional[PasswordLike] = None
) -> bytes:
    """
    Compute the value of the ``/O`` entry in the encryption dictionary.

    :param user_password:
        The user password.
    :param owner_password:
        The owner password. If ``None`` or empty, the user password is used
        instead.
    :return:
        A 32-byte value.
    """
    # 1. Pad or truncate the owner password string as described in step 1 of
    # algorithm 3.2.  If there is no owner password, use the user password
    # instead.
    if not owner_password:
        owner_password = user_password
    # 2. Initialize the MD5 hash function and pass the result of step 1 as
    # input to this function.
    # NOTE: Suppress LGTM warning here, we have to do what the standard says
    md5_hash = md5(pad_password(owner_password)).digest()  # lgtm
    # 3. (Revision 3 or greater) ... does not apply.
    # 4. Create an RC4 encryption key using the first n bytes of the output
    # from the MD5 hash, where n is always 5 for revision 2.
    key = FileEncryptionKey(md5_hash[:FILE_KEY_LENGTH])
    # 5. Pad or truncate the user password string as described in step 1 of
    # algorithm 3.2.
    # 6. Encrypt the result of step 5, using an RC4 encryption function with
    # the encryption key obtained in step 4.
    return rc4_encrypt(key, pad_password(user_password))


# Implementation of algorithm 3.2, revision 2 only
def derive_file_key(
    user_password: PasswordLike,
    o_value: bytes,
    permissions: int,
    file_id: bytes,
) -> FileEncryptionKey:
    """
    Derive the global file encryption key.

    :param user_password:
        The user password.
    :param o_value:
        The 32-byte ``/O`` value, see :func:`compute_o_value`.
    :param permissions:
        The permission flags, as a 32-bit integer.
    :param file_id:
        The first element of the document's ``/ID`` array.
    :return:
        A :class:`.FileEncryptionKey`.
    """
    if len(o_value) != 32:
        raise ValueError(
            f"The /O value must be 32 bytes long, not {len(o_value)}."
        )
    # 1. Pad or truncate the password string to exactly 32 bytes.
    # 2. Initialize the MD5 hash function and pass the result of step 1 as
    # input to this function.
    # NOTE: Suppress LGTM warning here, we have to do what the standard says
    m = md5(pad_password(user_password))  # lgtm
    # 3. Pass the value of the encryption dictionary's /O entry to the MD5 hash
    # function.
    m.update(o_value)
    # 4. Treat the value of the /P entry as an unsigned 4-byte integer and pass
    # these bytes to the MD5 hash function, low-order byte first.
    m.update(struct.pack('<i', as_signed(permissions)))
    # 5. Pass the first element of the file's file identifier array to the MD5
    # hash function.
    m.update(file_id)
    # 6. (Revision 4 or greater) ... does not apply.
    # 7. Finish the hash.
    # 8. (Revision 3 or greater) ... does not apply: there is exactly one
    # MD5 pass in revision 2.
    # 9. Set the encryption key to the first 5 bytes of the output.
    return FileEncryptionKey(m.digest()[:FILE_KEY_LENGTH])


# Implementation of algorithm 3.4
def compute_u_value(key: FileEncryptionKey) -> bytes:
    """
    Compute the value of the ``/U`` entry in the encryption dictionary.

    :param key:
        The global file encryption key.
    :return:
        A 32-byte value.
    """
    # 1. Create an encryption key based on the user password string, as
    # described in algorithm 3.2 (done by the caller).
    # 2. Encrypt the 32-byte padding string shown in step 1 of algorithm 3.2,
    # using an RC4 encryption function with the encryption key from the
    # preceding step.
    return rc4_encrypt(FileEncryptionKey(key), ENCRYPTION_PADDING)


# Implementation of algorithm 3.1, steps 1-3
def derive_object_key(
    key: FileEncryptionKey, idnum: int, generation: int
) -> ObjectKey:
    """
    Derive the RC4 key for a particular object.

    :param key:
        Global file encryption key.
    :param idnum:
        ID of the object being written. Only the low-order 3 bytes are used.
    :param generation:
        Generation number of the object being written. Only the low-order
        2 bytes are used.
    :return:
        A 10-byte :class:`.ObjectKey`.
    """
    key = FileEncryptionKey(key)
    pack1 = struct.pack('<I', idnum & 0xffffffff)[:3]
    pack2 = struct.pack('<I', generation & 0xffffffff)[:2]
    # NOTE: Suppress LGTM warning here, we have to do what the standard says
    md5_hash = md5(key + pack1 + pack2).digest()  # lgtm
    return ObjectKey(md5_hash[: len(key) + 5])


def apply_object_cipher(
    key: FileEncryptionKey, idnum: int, generation: int, data: bytes
) -> bytes:
    """
    Encrypt (or, equivalently, decrypt) the payload of a string or stream
    belonging to the object with the given ID and generation number.
    The output has the same length as the input.
    """
    return rc4_encrypt(derive_object_key(key, idnum, generation), data)
