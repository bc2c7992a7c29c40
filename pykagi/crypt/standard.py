"""
Encryption of complete documents with the standard security handler,
revision 2.
"""

import codecs
import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from pyhanko.pdf_utils import generic
from pyhanko.pdf_utils.generic import encode_pdfdocencoding, pdf_name
from pyhanko.pdf_utils.misc import PdfError

from ..document import Document
from ..misc import PyKagiError
from .keys import FileEncryptionKey
from .legacy import (
    PasswordLike,
    apply_object_cipher,
    compute_o_value,
    compute_u_value,
    derive_file_key,
)
from .permissions import ALL_PERMS, Rev2Permissions, as_permission_int

__all__ = [
    'FILE_ID_LENGTH',
    'EncryptionSummary',
    'resolve_file_id',
    'build_encryption_dict',
    'encrypt_document',
]

logger = logging.getLogger(__name__)

FILE_ID_LENGTH = 16
"""
Length of freshly generated file identifiers.
"""

IdGenerator = Callable[[int], bytes]

_STRING_TYPES = (generic.ByteStringObject, generic.TextStringObject)


@dataclass(frozen=True)
class EncryptionSummary:
    """
    Outcome of :func:`encrypt_document`.
    """

    file_id: bytes
    """
    The file identifier used as salt in the key derivation.
    """

    file_id_reused: bool
    """
    ``True`` if the file identifier was taken from the input document,
    ``False`` if it was freshly generated.
    """

    permissions: int
    """
    Value of the ``/P`` entry.
    """

    strings_encrypted: int = 0
    """
    Number of string objects that were encrypted.
    """

    streams_encrypted: int = 0
    """
    Number of streams whose content was encrypted.
    """


def _string_bytes(obj) -> bytes:
    if isinstance(obj, generic.ByteStringObject):
        return bytes(obj)
    try:
        return obj.original_bytes
    except PdfError:
        # string created programmatically, so there's no record of the
        # encoding; do what the serialiser would do
        pass
    try:
        return encode_pdfdocencoding(obj)
    except UnicodeEncodeError:
        return codecs.BOM_UTF16_BE + obj.encode('utf-16be')


def resolve_file_id(
    doc: Document, id_generator: IdGenerator = secrets.token_bytes
) -> Tuple[bytes, bool]:
    """
    Determine the file identifier to use for encryption, and write it into
    both slots of the trailer's ``/ID`` array.

    :param doc:
        The document to process.
    :param id_generator:
        Source of random bytes, called with the desired length
        if the document has no usable identifier.
    :return:
        The identifier, and a flag indicating whether it was reused.
    """
    file_id = None
    id_arr = doc.trailer.get('/ID', None)
    if isinstance(id_arr, generic.ArrayObject) and len(id_arr) > 0:
        first = id_arr.raw_get(0)
        if isinstance(first, _STRING_TYPES):
            file_id = _string_bytes(first)
    reused = file_id is not None
    if file_id is None:
        file_id = id_generator(FILE_ID_LENGTH)
    doc.trailer[pdf_name('/ID')] = generic.ArrayObject(
        [generic.ByteStringObject(file_id), generic.ByteStringObject(file_id)]
    )
    return file_id, reused


def build_encryption_dict(
    permissions: int, o_value: bytes, u_value: bytes
) -> generic.DictionaryObject:
    """
    Build the encryption dictionary for a revision 2 standard security
    handler.
    """
    return generic.DictionaryObject(
        {
            pdf_name('/Filter'): pdf_name('/Standard'),
            pdf_name('/V'): generic.NumberObject(1),
            pdf_name('/R'): generic.NumberObject(2),
            pdf_name('/P'): generic.NumberObject(permissions),
            pdf_name('/O'): generic.ByteStringObject(o_value),
            pdf_name('/U'): generic.ByteStringObject(u_value),
        }
    )


class _ObjectEncrypter:
    def __init__(self, key: FileEncryptionKey):
        self.key = key
        self.strings = 0
        self.streams = 0

    def _encrypt_string(self, obj, idnum, generation):
        self.strings += 1
        return generic.ByteStringObject(
            apply_object_cipher(
                self.key, idnum, generation, _string_bytes(obj)
            )
        )

    def _encrypt_nested(self, container, idnum, generation):
        # Strings inside dictionaries and arrays are encrypted with the key
        # of the indirect object that contains them. Everything else is left
        # alone, and references are never followed.
        if isinstance(container, generic.DictionaryObject):
            items = list(dict.items(container))
        elif isinstance(container, generic.ArrayObject):
            items = list(enumerate(list.__iter__(container)))
        else:
            return
        for ix, value in items:
            if isinstance(value, _STRING_TYPES):
                container[ix] = self._encrypt_string(value, idnum, generation)
            else:
                self._encrypt_nested(value, idnum, generation)

    def encrypt(self, obj: generic.PdfObject, idnum: int, generation: int):
        if isinstance(obj, _STRING_TYPES):
            return self._encrypt_string(obj, idnum, generation)
        self._encrypt_nested(obj, idnum, generation)
        if isinstance(obj, generic.StreamObject):
            self.streams += 1
            ciphertext = apply_object_cipher(
                self.key, idnum, generation, obj.encoded_data
            )
            # the stream dictionary carries over verbatim, only the
            # content is replaced
            return generic.StreamObject(obj, encoded_data=ciphertext)
        return obj


def encrypt_document(
    doc: Document,
    user_password: PasswordLike,
    owner_password: Optional[PasswordLike] = None,
    permissions: Union[int, Rev2Permissions] = ALL_PERMS,
    id_generator: IdGenerator = secrets.token_bytes,
) -> EncryptionSummary:
    """
    Encrypt a document in place using the standard security handler,
    revision 2 (40-bit RC4).

    .. danger::
        This encryption scheme is (very) weak, and is only supported for
        compatibility with older PDF processors.

    :param doc:
        The document to encrypt. It is modified in place; serialise it
        with :meth:`.Document.write` afterwards.
    :param user_password:
        The user password.
    :param owner_password:
        The owner password. If not specified, the user password is used.
    :param permissions:
        Permission flags, either as a signed 32-bit integer or as
        :class:`.Rev2Permissions`.
    :param id_generator:
        Source of random bytes for the file identifier, used only if the
        document doesn't have one already.
    :return:
        An :class:`.EncryptionSummary`.
    """
    if '/Encrypt' in doc.trailer:
        raise PyKagiError("Document is already encrypted.")
    perms = as_permission_int(permissions)
    file_id, reused = resolve_file_id(doc, id_generator)
    logger.debug(
        f"Using {'existing' if reused else 'new'} file ID {file_id.hex()}."
    )

    o_value = compute_o_value(user_password, owner_password)
    key = derive_file_key(user_password, o_value, perms, file_id)
    u_value = compute_u_value(key)

    encrypter = _ObjectEncrypter(key)
    for idnum, generation in list(doc.object_keys()):
        obj = doc.objects[(idnum, generation)]
        doc.objects[(idnum, generation)] = encrypter.encrypt(
            obj, idnum, generation
        )

    # added after the payload pass, /O and /U must stay in the clear
    doc.trailer[pdf_name('/Encrypt')] = doc.add_object(
        build_encryption_dict(perms, o_value, u_value)
    )
    summary = EncryptionSummary(
        file_id=file_id,
        file_id_reused=reused,
        permissions=perms,
        strings_encrypted=encrypter.strings,
        streams_encrypted=encrypter.streams,
    )
    logger.info(
        f"Encrypted {summary.strings_encrypted} strings and "
        f"{summary.streams_encrypted} streams (RC4-40, /P {perms})."
    )
    return summary
