import zlib
from io import BytesIO

import pytest
from PIL import Image
from pyhanko.pdf_utils import generic
from pyhanko.pdf_utils.generic import pdf_name
from pyhanko.pdf_utils.reader import PdfFileReader

from pykagi.compress import (
    ImageOutcome,
    decode_image,
    is_image,
    recompress_images,
    savings_label,
)
from pykagi.config.settings import CompressionSettings
from pykagi.document import Document
from pykagi.misc import ImageDecodeError
from pykagi.operations import compress_pdf, compress_pdf_with_summary

from .samples import (
    minimal_pdf,
    noise_image,
    pdf_with_images,
    pdf_with_raw_image,
    write_file,
)


def _image_streams(doc: Document):
    return [
        (key, obj) for key, obj in doc.objects.items() if is_image(obj)
    ]


def _raw_image(mode, size, **extra):
    img = noise_image(*size, mode=mode)
    image_dict = {
        pdf_name('/Width'): generic.NumberObject(size[0]),
        pdf_name('/Height'): generic.NumberObject(size[1]),
        pdf_name('/BitsPerComponent'): generic.NumberObject(8),
        pdf_name('/ColorSpace'): pdf_name(
            '/DeviceRGB' if mode == 'RGB' else '/DeviceGray'
        ),
        pdf_name('/Filter'): pdf_name('/FlateDecode'),
    }
    image_dict.update(extra)
    return image_dict, zlib.compress(img.tobytes())


@pytest.mark.parametrize(
    'original,new,expected',
    [
        (100, 58, '-42%'),
        (100, 100, '0%'),
        (100, 105, '+5%'),
        (0, 10, '0%'),
        (1000, 1, '-100%'),
        (3, 2, '-34%'),
    ],
)
def test_savings_label(original, new, expected):
    assert savings_label(original, new) == expected


def test_large_image(tmp_path):
    src = tmp_path / 'big.pdf'
    write_file(src, pdf_with_images(noise_image(3000, 4000)))
    output, label, summary = compress_pdf_with_summary(src)

    assert len(output) < src.stat().st_size
    assert label.startswith('-')
    assert summary.recompressed == 1
    assert summary.skipped == 0
    assert summary.bytes_saved > 0

    doc = Document.read(BytesIO(output))
    ((_, stream),) = _image_streams(doc)
    assert stream['/Filter'] == '/DCTDecode'
    # scaled to fit within 1200x1600, preserving the aspect ratio
    assert stream['/Width'] == 1200
    assert stream['/Height'] == 1600
    assert stream['/BitsPerComponent'] == 8
    assert '/DecodeParms' not in stream
    img = Image.open(BytesIO(stream.encoded_data))
    assert img.size == (1200, 1600)


def test_compress_pdf_label_only(tmp_path):
    src = tmp_path / 'big.pdf'
    write_file(src, pdf_with_images(noise_image(800, 600)))
    output, label = compress_pdf(src)
    assert label.startswith('-')
    r = PdfFileReader(BytesIO(output))
    page = r.root['/Pages']['/Kids'][0].get_object()
    xobj = page['/Resources']['/XObject']['/Im0']
    assert xobj['/Filter'] == '/DCTDecode'
    # small enough to be left at its original size
    assert xobj['/Width'] == 800
    assert xobj['/Height'] == 600


def test_custom_settings():
    doc = Document.read(BytesIO(pdf_with_images(noise_image(400, 200))))
    settings = CompressionSettings(jpeg_quality=30, max_width=100,
                                   max_height=100)
    summary = recompress_images(doc, settings)
    assert summary.recompressed == 1
    ((_, stream),) = _image_streams(doc)
    assert stream['/Width'] == 100
    assert stream['/Height'] == 50


def test_greyscale_image():
    image_dict, data = _raw_image('L', (500, 500))
    doc = Document.read(BytesIO(pdf_with_raw_image(image_dict, data)))
    summary = recompress_images(doc)
    assert summary.recompressed == 1
    ((_, stream),) = _image_streams(doc)
    assert stream['/ColorSpace'] == '/DeviceGray'
    assert Image.open(BytesIO(stream.encoded_data)).mode == 'L'


def test_tiny_image_not_replaced():
    doc = Document.read(BytesIO(pdf_with_images(noise_image(4, 4, mode='L'))))
    ((key, before),) = _image_streams(doc)
    summary = recompress_images(doc)
    assert summary.recompressed == 0
    assert summary.skip_reasons == {'no size reduction': 1}
    assert doc.objects[key] is before


def test_corrupt_image_skipped():
    image_dict, data = _raw_image('RGB', (50, 50))
    doc = Document.read(
        BytesIO(pdf_with_raw_image(image_dict, b'garbage' + data[:20]))
    )
    ((key, before),) = _image_streams(doc)
    summary = recompress_images(doc)
    assert summary.recompressed == 0
    assert summary.skipped == 1
    (result,) = summary.results
    assert result.outcome == ImageOutcome.SKIPPED
    assert (result.idnum, result.generation) == key
    assert doc.objects[key] is before


def test_corrupt_jpeg_skipped():
    image_dict = {
        pdf_name('/Width'): generic.NumberObject(50),
        pdf_name('/Height'): generic.NumberObject(50),
        pdf_name('/BitsPerComponent'): generic.NumberObject(8),
        pdf_name('/ColorSpace'): pdf_name('/DeviceRGB'),
        pdf_name('/Filter'): pdf_name('/DCTDecode'),
    }
    doc = Document.read(
        BytesIO(pdf_with_raw_image(image_dict, b'\xff\xd8 not really'))
    )
    summary = recompress_images(doc)
    assert summary.skipped == 1
    assert summary.results[0].reason.startswith('corrupt JPEG data')


def test_skip_image_mask():
    image_dict = {
        pdf_name('/Width'): generic.NumberObject(64),
        pdf_name('/Height'): generic.NumberObject(64),
        pdf_name('/ImageMask'): generic.BooleanObject(True),
    }
    doc = Document.read(BytesIO(pdf_with_raw_image(image_dict, b'\x00' * 512)))
    summary = recompress_images(doc)
    assert summary.skip_reasons == {'image mask': 1}


def test_skip_unsupported_bit_depth():
    image_dict, data = _raw_image(
        'L', (64, 64), **{'/BitsPerComponent': generic.NumberObject(16)}
    )
    doc = Document.read(BytesIO(pdf_with_raw_image(image_dict, data)))
    summary = recompress_images(doc)
    assert summary.skip_reasons == {'unsupported bit depth 16': 1}


def test_skip_unsupported_colour_space():
    image_dict, data = _raw_image(
        'RGB', (64, 64), **{'/ColorSpace': pdf_name('/DeviceCMYK')}
    )
    doc = Document.read(BytesIO(pdf_with_raw_image(image_dict, data)))
    summary = recompress_images(doc)
    assert summary.skip_reasons == {'unsupported colour space': 1}


def test_decode_image_rgb():
    img = noise_image(10, 20)
    stream = generic.StreamObject(
        generic.DictionaryObject({
            pdf_name('/Subtype'): pdf_name('/Image'),
            pdf_name('/Width'): generic.NumberObject(10),
            pdf_name('/Height'): generic.NumberObject(20),
            pdf_name('/BitsPerComponent'): generic.NumberObject(8),
            pdf_name('/ColorSpace'): pdf_name('/DeviceRGB'),
        }),
        stream_data=img.tobytes(),
    )
    decoded = decode_image(stream)
    assert decoded.size == (10, 20)
    assert decoded.tobytes() == img.tobytes()


def test_decode_image_truncated():
    stream = generic.StreamObject(
        generic.DictionaryObject({
            pdf_name('/Subtype'): pdf_name('/Image'),
            pdf_name('/Width'): generic.NumberObject(10),
            pdf_name('/Height'): generic.NumberObject(20),
            pdf_name('/BitsPerComponent'): generic.NumberObject(8),
            pdf_name('/ColorSpace'): pdf_name('/DeviceRGB'),
        }),
        stream_data=b'\x00' * 10,
    )
    with pytest.raises(ImageDecodeError):
        decode_image(stream)


def test_no_images(tmp_path):
    src = tmp_path / 'plain.pdf'
    write_file(src, minimal_pdf())
    output, label, summary = compress_pdf_with_summary(src)
    assert summary.results == []
    r = PdfFileReader(BytesIO(output))
    assert '/Pages' in r.root
