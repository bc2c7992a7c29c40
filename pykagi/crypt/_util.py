import struct

from cryptography.hazmat.decrepit.ciphers.algorithms import ARC4
from cryptography.hazmat.primitives.ciphers import Cipher


def rc4_encrypt(key: bytes, data: bytes) -> bytes:
    cipher = Cipher(ARC4(key), mode=None)
    encryptor = cipher.encryptor()
    # NOTE: Suppress LGTM warning here, the legacy handler mandates RC4
    return encryptor.update(data) + encryptor.finalize()  # lgtm


def as_signed(val: int) -> int:
    # converts an integer to a signed int
    return struct.unpack('<i', struct.pack('<I', val & 0xffffffff))[0]
