"""
Lossy recompression of raster images embedded in PDF files.

Image XObjects are decoded with `Pillow <https://github.com/python-pillow/Pillow>`_,
scaled down to fit within a configurable bounding box, and re-encoded as JPEG
(``/DCTDecode``). Images that can't be processed are left alone; the reason
is recorded in the :class:`CompressionSummary` returned to the caller.

.. note::
    Only a subset of what the PDF standard provides for is supported.
    Images must either be JPEG-encoded already, or consist of 8-bit
    samples in a grey or RGB colour space (possibly ICC-based).
    Image masks, colour key masks, explicit decode arrays and the more
    exotic filters (JPX, JBIG2, CCITT) are skipped.
"""

import enum
import logging
import zlib
from collections import Counter
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional

from pyhanko.pdf_utils import generic
from pyhanko.pdf_utils.generic import pdf_name
from pyhanko.pdf_utils.misc import PdfError

from .config.settings import CompressionSettings
from .document import Document
from .misc import ImageDecodeError

try:
    from PIL import Image
except ImportError as e:  # pragma: nocover
    raise ImportError(
        "pykagi.compress requires Pillow. You can install missing "
        "dependencies by running \"pip install Pillow\".",
        e,
    )

__all__ = [
    'ImageOutcome',
    'ImageResult',
    'CompressionSummary',
    'is_image',
    'decode_image',
    'recompress_image',
    'recompress_images',
    'savings_label',
]

logger = logging.getLogger(__name__)

_PIL_MODES = {'/DeviceRGB': 'RGB', '/DeviceGray': 'L'}
_ICC_COMPONENTS = {3: 'RGB', 1: 'L'}
_DCT = '/DCTDecode'
_STRIPPED_KEYS = ('/Filter', '/DecodeParms', '/Length', '/DL')


class ImageOutcome(enum.Enum):
    RECOMPRESSED = enum.auto()
    SKIPPED = enum.auto()


@dataclass(frozen=True)
class ImageResult:
    """
    Result of processing a single image XObject.
    """

    idnum: int
    generation: int
    outcome: ImageOutcome
    reason: Optional[str] = None
    """
    Reason why the image was skipped, if applicable.
    """

    original_size: int = 0
    new_size: int = 0


@dataclass
class CompressionSummary:
    """
    Aggregated results of a recompression run.
    """

    results: List[ImageResult] = field(default_factory=list)

    @property
    def recompressed(self) -> int:
        return sum(
            1 for r in self.results if r.outcome == ImageOutcome.RECOMPRESSED
        )

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.outcome == ImageOutcome.SKIPPED)

    @property
    def skip_reasons(self) -> Dict[str, int]:
        return dict(
            Counter(
                r.reason
                for r in self.results
                if r.outcome == ImageOutcome.SKIPPED
            )
        )

    @property
    def bytes_saved(self) -> int:
        return sum(
            r.original_size - r.new_size
            for r in self.results
            if r.outcome == ImageOutcome.RECOMPRESSED
        )


def is_image(obj: generic.PdfObject) -> bool:
    if not isinstance(obj, generic.StreamObject):
        return False
    try:
        return obj['/Subtype'] == '/Image'
    except KeyError:
        return False


def _filter_names(stream: generic.StreamObject) -> List[str]:
    try:
        filters = stream['/Filter']
    except KeyError:
        return []
    if isinstance(filters, generic.NameObject):
        return [filters]
    return [generic.NameObject(f.get_object()) for f in filters]


def _pil_mode(stream: generic.StreamObject) -> Optional[str]:
    try:
        colour_space = stream['/ColorSpace']
    except KeyError:
        return None
    if isinstance(colour_space, generic.NameObject):
        return _PIL_MODES.get(colour_space)
    if isinstance(colour_space, generic.ArrayObject) and colour_space:
        if colour_space[0] == '/ICCBased':
            try:
                return _ICC_COMPONENTS.get(colour_space[1]['/N'])
            except (KeyError, IndexError, TypeError):
                return None
    return None


def decode_image(stream: generic.StreamObject) -> Image.Image:
    """
    Decode an image XObject into a Pillow image.

    :param stream:
        The image XObject.
    :return:
        An image in ``L`` or ``RGB`` mode.
    :raises ImageDecodeError:
        If the image uses features that aren't supported, or if the
        image data is corrupt.
    """
    image_mask = stream.get_and_apply('/ImageMask', lambda b: b.value)
    if image_mask:
        raise ImageDecodeError("image mask")
    if '/Mask' in stream:
        raise ImageDecodeError("colour key mask")
    if '/Decode' in stream:
        raise ImageDecodeError("decode array")
    filters = _filter_names(stream)

    if _DCT in filters:
        if filters != [_DCT]:
            raise ImageDecodeError("unsupported filter chain")
        try:
            img = Image.open(BytesIO(stream.encoded_data))
            img.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(f"corrupt JPEG data: {e}") from e
        if img.mode not in ('L', 'RGB'):
            raise ImageDecodeError(f"unsupported colour mode {img.mode}")
        return img

    mode = _pil_mode(stream)
    if mode is None:
        raise ImageDecodeError("unsupported colour space")
    try:
        width = int(stream['/Width'])
        height = int(stream['/Height'])
        bpc = int(stream['/BitsPerComponent'])
    except (KeyError, TypeError, ValueError) as e:
        raise ImageDecodeError("malformed image dictionary") from e
    if bpc != 8:
        raise ImageDecodeError(f"unsupported bit depth {bpc}")
    try:
        data = stream.data
    except (PdfError, NotImplementedError, ValueError, zlib.error) as e:
        raise ImageDecodeError(f"undecodable stream: {e}") from e
    expected_len = width * height * len(mode)
    try:
        return Image.frombytes(mode, (width, height), data[:expected_len])
    except ValueError as e:
        raise ImageDecodeError(f"corrupt image data: {e}") from e


def _encode_jpeg(img: Image.Image, settings: CompressionSettings) -> bytes:
    # thumbnail() preserves the aspect ratio and never enlarges
    img.thumbnail(
        (settings.max_width, settings.max_height), Image.Resampling.BILINEAR
    )
    out = BytesIO()
    try:
        img.save(out, format='JPEG', quality=settings.jpeg_quality)
    except (OSError, ValueError) as e:
        raise ImageDecodeError(f"JPEG encoding failed: {e}") from e
    return out.getvalue()


def recompress_image(
    stream: generic.StreamObject, settings: CompressionSettings
) -> Optional[generic.StreamObject]:
    """
    Recompress a single image XObject.

    :param stream:
        The image XObject.
    :param settings:
        Compression settings.
    :return:
        A new image XObject with JPEG-encoded data, or ``None`` if
        the re-encoded image would not be smaller than the original.
    :raises ImageDecodeError:
        If the image can't be processed.
    """
    img = decode_image(stream)
    jpeg_bytes = _encode_jpeg(img, settings)
    if len(jpeg_bytes) >= len(stream.encoded_data):
        return None

    new_dict = generic.DictionaryObject(
        {k: v for k, v in dict.items(stream) if k not in _STRIPPED_KEYS}
    )
    new_dict[pdf_name('/Filter')] = pdf_name(_DCT)
    new_dict[pdf_name('/Width')] = generic.NumberObject(img.width)
    new_dict[pdf_name('/Height')] = generic.NumberObject(img.height)
    new_dict[pdf_name('/BitsPerComponent')] = generic.NumberObject(8)
    if _pil_mode(stream) != img.mode:
        new_dict[pdf_name('/ColorSpace')] = pdf_name(
            '/DeviceRGB' if img.mode == 'RGB' else '/DeviceGray'
        )
    return generic.StreamObject(new_dict, encoded_data=jpeg_bytes)


def recompress_images(
    doc: Document, settings: Optional[CompressionSettings] = None
) -> CompressionSummary:
    """
    Recompress all image XObjects in a document, in place.

    Failure to process an individual image never aborts the run; such images
    are left untouched and reported in the summary.

    :param doc:
        The document to process.
    :param settings:
        Compression settings. If not specified, the defaults are used.
    :return:
        A :class:`.CompressionSummary`.
    """
    settings = settings or CompressionSettings()
    summary = CompressionSummary()
    image_keys = [k for k in doc.object_keys() if is_image(doc.objects[k])]
    for idnum, generation in image_keys:
        stream = doc.objects[(idnum, generation)]
        original_size = len(stream.encoded_data)
        try:
            new_stream = recompress_image(stream, settings)
        except ImageDecodeError as e:
            logger.warning(
                f"Skipping image in object {idnum} {generation}: {e.msg}"
            )
            result = ImageResult(
                idnum, generation, ImageOutcome.SKIPPED, reason=e.msg,
                original_size=original_size, new_size=original_size
            )
        else:
            if new_stream is None:
                logger.debug(
                    f"Image in object {idnum} {generation} does not "
                    f"benefit from recompression."
                )
                result = ImageResult(
                    idnum, generation, ImageOutcome.SKIPPED,
                    reason="no size reduction",
                    original_size=original_size, new_size=original_size
                )
            else:
                doc.objects[(idnum, generation)] = new_stream
                result = ImageResult(
                    idnum, generation, ImageOutcome.RECOMPRESSED,
                    original_size=original_size,
                    new_size=len(new_stream.encoded_data)
                )
        summary.results.append(result)

    logger.info(
        f"Recompressed {summary.recompressed} image(s), "
        f"skipped {summary.skipped}."
    )
    return summary


def savings_label(original_size: int, new_size: int) -> str:
    """
    Format the size difference between two files as a percentage label,
    e.g. ``-42%``.

    :param original_size:
        Size of the original file. If zero, the label is ``0%``.
    :param new_size:
        Size of the new file.
    """
    if original_size <= 0:
        return '0%'
    reduction = 100 - (new_size * 100 // original_size)
    if reduction > 0:
        return f'-{reduction}%'
    elif reduction < 0:
        return f'+{-reduction}%'
    return '0%'
