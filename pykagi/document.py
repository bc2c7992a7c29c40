"""
In-memory model of a PDF document as a flat table of indirect objects.

Parsing is delegated to pyHanko's :class:`~pyhanko.pdf_utils.reader.PdfFileReader`.
All objects reachable from the document catalog and the information
dictionary are copied into a fresh object table (see
:func:`~pyhanko.pdf_utils.writer.copy_into_new_writer`), which is then
exposed as a plain dictionary keyed by ``(idnum, generation)``.
Serialisation writes that table back out with a classical cross-reference
table, without touching any of the objects, so that callers have full
control over the bytes that end up in the output file.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from io import BytesIO
from typing import BinaryIO, Dict, Iterator, Optional, Tuple, Union

from pyhanko.pdf_utils import generic
from pyhanko.pdf_utils.generic import pdf_name
from pyhanko.pdf_utils.misc import PdfError
from pyhanko.pdf_utils.reader import PdfFileReader
from pyhanko.pdf_utils.writer import copy_into_new_writer
from pyhanko.pdf_utils.xref import write_xref_table

from .misc import DocumentLoadError, OutputPathError

__all__ = ['ObjectIndex', 'Document', 'write_atomically']

logger = logging.getLogger(__name__)

ObjectIndex = Tuple[int, int]
"""
Key of an indirect object in a :class:`Document`: ``(idnum, generation)``.
"""


@dataclass
class Document:
    """
    A PDF document, represented as a table of indirect objects together with
    a trailer dictionary.
    """

    objects: Dict[ObjectIndex, generic.PdfObject]
    """
    The indirect objects in the document, keyed by ``(idnum, generation)``.
    """

    trailer: generic.DictionaryObject
    """
    The trailer dictionary. ``/Size`` is computed on output.
    """

    input_version: Tuple[int, int] = (1, 7)
    """
    PDF version of the input file.
    """

    source_size: int = 0
    """
    Size of the input file in bytes.
    """

    source_id: Optional[generic.ArrayObject] = field(default=None)
    """
    The ``/ID`` array of the input file, if there was one.
    """

    @classmethod
    def read(cls, stream: BinaryIO, strict: bool = True) -> 'Document':
        """
        Load a document from a binary stream.

        :param stream:
            A readable, seekable binary stream.
        :param strict:
            Parse the input in strict mode.
        :raises DocumentLoadError:
            If the input cannot be parsed, or if it is encrypted.
        """
        try:
            stream.seek(0, os.SEEK_END)
            source_size = stream.tell()
            stream.seek(0)
            reader = PdfFileReader(stream, strict=strict)
            if reader.security_handler is not None:
                raise DocumentLoadError(
                    "Encrypted documents cannot be processed."
                )
            source_id = reader.trailer_view.get('/ID', None)
            w = copy_into_new_writer(reader)
            input_version = reader.input_version
        except PdfError as e:
            raise DocumentLoadError(f"Failed to read PDF file: {e.msg}") from e
        except (ValueError, KeyError, IndexError, TypeError, OSError) as e:
            raise DocumentLoadError(f"Failed to read PDF file: {e}") from e

        # The writer indexes its objects by (generation, idnum)
        objects = {
            (idnum, generation): obj
            for (generation, idnum), obj in w.objects.items()
        }
        trailer = generic.DictionaryObject()
        trailer_view = w.trailer_view
        trailer[pdf_name('/Root')] = trailer_view.raw_get('/Root')
        if '/Info' in trailer_view:
            trailer[pdf_name('/Info')] = trailer_view.raw_get('/Info')
        if isinstance(source_id, generic.ArrayObject):
            trailer[pdf_name('/ID')] = source_id
        else:
            source_id = None
        logger.debug(
            f"Loaded document with {len(objects)} objects "
            f"({source_size} bytes)."
        )
        return Document(
            objects=objects,
            trailer=trailer,
            input_version=input_version or (1, 7),
            source_size=source_size,
            source_id=source_id,
        )

    @classmethod
    def load(
        cls, path: Union[str, os.PathLike], strict: bool = True
    ) -> 'Document':
        """
        Load a document from a file.

        :raises DocumentLoadError:
            If the file cannot be opened or parsed.
        """
        try:
            with open(path, 'rb') as inf:
                return cls.read(inf, strict=strict)
        except OSError as e:
            raise DocumentLoadError(
                f"Failed to open {os.fspath(path)}: {e.strerror or e}"
            ) from e

    def object_keys(self) -> Iterator[ObjectIndex]:
        """
        Return a snapshot of the object keys, in ascending ID order.
        Safe to use while objects in the table are being replaced.
        """
        return iter(sorted(self.objects.keys()))

    def add_object(self, obj: generic.PdfObject) -> generic.IndirectObject:
        """
        Add an object to the document under a fresh object ID.

        :param obj:
            The object to add.
        :return:
            A reference to the new object.
        """
        idnum = max((idnum for idnum, _ in self.objects), default=0) + 1
        self.objects[(idnum, 0)] = obj
        return generic.IndirectObject(idnum, 0, None)

    def write(self, stream: BinaryIO):
        """
        Serialise the document to a binary stream.

        The objects are written as-is, without any further processing.
        """
        major, minor = self.input_version
        stream.write(f'%PDF-{major}.{minor}\n'.encode('ascii'))
        # write some binary characters to make sure the file is flagged
        # as binary (see § 7.5.2 in ISO 32000-1)
        stream.write(b'%\xc2\xa5\xc2\xb1\xc3\xab\n')

        # positions are keyed by (generation, idnum), see write_xref_table
        positions: Dict[Tuple[int, int], int] = {}
        for idnum, generation in self.object_keys():
            obj = self.objects[(idnum, generation)]
            positions[(generation, idnum)] = stream.tell()
            stream.write(b'%d %d obj\n' % (idnum, generation))
            obj.write_to_stream(stream, None, None)
            stream.write(b'\nendobj\n')

        xref_location = write_xref_table(stream, positions)
        trailer = generic.DictionaryObject(self.trailer)
        max_idnum = max((idnum for idnum, _ in self.objects), default=0)
        trailer[pdf_name('/Size')] = generic.NumberObject(max_idnum + 1)
        stream.write(b'trailer\n')
        trailer.write_to_stream(stream, None)
        stream.write(b'\nstartxref\n%d\n%%%%EOF\n' % xref_location)

    def to_bytes(self) -> bytes:
        out = BytesIO()
        self.write(out)
        return out.getvalue()


def write_atomically(document: Document, path: Union[str, os.PathLike]):
    """
    Write a document to a file. The output is first written to a temporary
    file in the same directory, which is renamed into place once the write
    has succeeded. If anything goes wrong, no file is left behind at
    ``path``.

    :raises OutputPathError:
        If the output cannot be written.
    """
    path = os.fspath(path)
    data = document.to_bytes()
    head, tail = os.path.split(path)
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f'.{tail}.', suffix='.tmp', dir=head or '.'
        )
        with os.fdopen(fd, 'wb') as outf:
            outf.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise OutputPathError(
            f"Failed to write {path}: {e.strerror or e}"
        ) from e
    logger.debug(f"Wrote {len(data)} bytes to {path}.")
