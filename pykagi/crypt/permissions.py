import operator
import struct
from enum import Flag
from functools import reduce
from typing import Union

from ._util import as_signed

__all__ = ['Rev2Permissions', 'ALL_PERMS', 'as_permission_int']


class Rev2Permissions(Flag):
    """
    Permission flags that are meaningful for revision 2 of the standard
    security handler (bits 3 through 6 of the ``/P`` entry).
    """

    # We purposefully do not inherit from IntFlag since
    # PDF uses 32-bit twos complement to treat flags as ints,
    # which doesn't jive well with what IntFlag would do.

    ALLOW_PRINTING = 4
    ALLOW_MODIFICATION_GENERIC = 8
    ALLOW_CONTENT_EXTRACTION = 16
    ALLOW_ANNOTS_FORM_FILLING = 32

    @classmethod
    def allow_everything(cls) -> 'Rev2Permissions':
        return reduce(operator.or_, cls.__members__.values())

    @classmethod
    def from_uint(cls, uint_flags: int) -> 'Rev2Permissions':
        result = cls(0)
        for flag in cls:
            if uint_flags & flag.value:
                result |= flag
        return result

    @classmethod
    def from_sint32(cls, sint32_flags: int) -> 'Rev2Permissions':
        return cls.from_uint(sint32_flags & 0xFFFFFFFF)

    def as_uint32(self) -> int:
        # bits 1-2 must be 0, all unused high-order bits must be 1
        return sum(x.value for x in self.__class__ if x in self) | 0xFFFFFFC0

    def as_bytes(self) -> bytes:
        return struct.pack('>I', self.as_uint32())

    def as_sint32(self) -> int:
        return struct.unpack('>i', self.as_bytes())[0]


ALL_PERMS = -4
"""
Value of the ``/P`` entry that translates to "everything is allowed"
in an encrypted PDF document.
"""


def as_permission_int(perms: Union[int, Rev2Permissions]) -> int:
    """
    Convert a permission specification to the signed 32-bit integer stored
    in the ``/P`` entry.
    """
    if isinstance(perms, Rev2Permissions):
        return perms.as_sint32()
    if not -(2**31) <= perms < 2**32:
        raise ValueError(f"Permission flags {perms} do not fit in 32 bits.")
    return as_signed(perms)
