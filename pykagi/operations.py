"""
High-level, file-based entry points: encrypt a PDF file with a password, or
shrink it by recompressing its images.

These functions load their own :class:`~pykagi.document.Document`, so they
can safely be called concurrently on different files.
"""

import logging
import os
import secrets
from typing import Optional, Tuple, Union

from .compress import CompressionSummary, recompress_images, savings_label
from .config.settings import CompressionSettings
from .crypt.legacy import PasswordLike
from .crypt.permissions import ALL_PERMS, Rev2Permissions
from .crypt.standard import IdGenerator, encrypt_document
from .document import Document, write_atomically
from .misc import OutputPathError

__all__ = [
    'SECURE_SUFFIX',
    'secure_output_path',
    'apply_encryption',
    'compress_pdf',
    'compress_pdf_with_summary',
]

logger = logging.getLogger(__name__)

SECURE_SUFFIX = '_secure'

PathLike = Union[str, os.PathLike]


def secure_output_path(path: PathLike) -> str:
    """
    Compute the output path for an encrypted copy of ``path``:
    ``<stem>_secure.pdf``, in the same directory.

    :raises OutputPathError:
        If the input path has no file name.
    """
    path = os.fspath(path)
    directory, fname = os.path.split(path)
    stem, _ = os.path.splitext(fname)
    if not stem:
        raise OutputPathError(
            f"Cannot derive an output file name from {path!r}."
        )
    return os.path.join(directory, f'{stem}{SECURE_SUFFIX}.pdf')


def apply_encryption(
    path: PathLike,
    password: PasswordLike,
    owner_password: Optional[PasswordLike] = None,
    permissions: Union[int, Rev2Permissions] = ALL_PERMS,
    id_generator: IdGenerator = secrets.token_bytes,
    output_path: Optional[PathLike] = None,
    strict: bool = True,
) -> str:
    """
    Encrypt a PDF file with a password, and write the result next to the
    input file.

    :param path:
        Path to the input file. It is never modified.
    :param password:
        The user password.
    :param owner_password:
        The owner password. Defaults to the user password.
    :param permissions:
        Permission flags to record in the output file.
    :param id_generator:
        Source of random bytes for the file identifier, used only if the
        input doesn't have one.
    :param output_path:
        Override the output path. By default, the output is written to
        ``<stem>_secure.pdf`` in the directory of the input file.
    :param strict:
        Parse the input in strict mode.
    :return:
        The path to the output file.
    :raises DocumentLoadError:
        If the input can't be read.
    :raises OutputPathError:
        If the output can't be written.
    """
    if output_path is None:
        output_path = secure_output_path(path)
    output_path = os.fspath(output_path)
    doc = Document.load(path, strict=strict)
    encrypt_document(
        doc,
        user_password=password,
        owner_password=owner_password,
        permissions=permissions,
        id_generator=id_generator,
    )
    write_atomically(doc, output_path)
    logger.info(f"Wrote encrypted file to {output_path}.")
    return output_path


def compress_pdf_with_summary(
    path: PathLike,
    settings: Optional[CompressionSettings] = None,
    strict: bool = True,
) -> Tuple[bytes, str, CompressionSummary]:
    """
    Recompress the images in a PDF file.

    :param path:
        Path to the input file. It is never modified.
    :param settings:
        Compression settings.
    :param strict:
        Parse the input in strict mode.
    :return:
        The output file as bytes, a label describing the size difference
        with respect to the input file (e.g. ``-42%``), and a
        :class:`.CompressionSummary`.
    :raises DocumentLoadError:
        If the input can't be read.
    """
    doc = Document.load(path, strict=strict)
    summary = recompress_images(doc, settings)
    output = doc.to_bytes()
    label = savings_label(doc.source_size, len(output))
    logger.info(
        f"Compressed {os.fspath(path)}: {doc.source_size} -> "
        f"{len(output)} bytes ({label})."
    )
    return output, label, summary


def compress_pdf(
    path: PathLike,
    settings: Optional[CompressionSettings] = None,
    strict: bool = True,
) -> Tuple[bytes, str]:
    """
    Recompress the images in a PDF file.

    See :func:`compress_pdf_with_summary`.

    :return:
        The output file as bytes and a size difference label.
    """
    output, label, _ = compress_pdf_with_summary(path, settings, strict)
    return output, label
