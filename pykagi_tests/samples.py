import os
from io import BytesIO

from PIL import Image
from pyhanko.pdf_utils import generic, writer
from pyhanko.pdf_utils.font.basic import get_courier
from pyhanko.pdf_utils.generic import pdf_name
from pyhanko.pdf_utils.images import pil_image

from pykagi.document import Document

HELLO = 'Hello'


def simple_page(pdf_out, ascii_text, xobjects=None):
    # based on the minimal pdf file of
    # https://brendanzagaeski.appspot.com/0004.html
    resources = generic.DictionaryObject({
        pdf_name('/Font'): generic.DictionaryObject({
            pdf_name('/F1'): get_courier(pdf_out)
        })
    })
    content = f'BT /F1 18 Tf 0 0 Td ({ascii_text}) Tj ET'
    if xobjects:
        resources[pdf_name('/XObject')] = generic.DictionaryObject({
            pdf_name(f'/Im{ix}'): ref for ix, ref in enumerate(xobjects)
        })
        content += ''.join(
            f' q 300 0 0 144 0 0 cm /Im{ix} Do Q'
            for ix in range(len(xobjects))
        )
    media_box = generic.ArrayObject(
        map(generic.NumberObject, (0, 0, 300, 144))
    )
    stream = generic.StreamObject(stream_data=content.encode('ascii'))
    return writer.PageObject(
        contents=pdf_out.add_object(stream),
        media_box=media_box,
        resources=resources,
    )


def _finish(w) -> bytes:
    out = BytesIO()
    w.write(out)
    return out.getvalue()


def minimal_pdf(text=HELLO) -> bytes:
    """
    One page with some text, plus a string stored as an indirect object
    and a string stored directly in the catalog, both reachable from the
    document catalog.
    """
    w = writer.PdfFileWriter()
    w.insert_page(simple_page(w, text))
    w.root['/PyKagiIndirect'] = w.add_object(generic.TextStringObject(text))
    w.root['/PyKagiDirect'] = generic.TextStringObject(text)
    return _finish(w)


def pdf_with_images(*images: Image.Image) -> bytes:
    w = writer.PdfFileWriter()
    refs = [pil_image(img, w) for img in images]
    w.insert_page(simple_page(w, HELLO, xobjects=refs))
    return _finish(w)


def pdf_with_raw_image(image_dict: dict, encoded_data: bytes) -> bytes:
    w = writer.PdfFileWriter()
    dict_data = generic.DictionaryObject({
        pdf_name('/Type'): pdf_name('/XObject'),
        pdf_name('/Subtype'): pdf_name('/Image'),
    })
    dict_data.update(image_dict)
    stream = generic.StreamObject(dict_data, encoded_data=encoded_data)
    ref = w.add_object(stream)
    w.insert_page(simple_page(w, HELLO, xobjects=[ref]))
    return _finish(w)


def noise_image(width, height, mode='RGB') -> Image.Image:
    channels = len(mode)
    return Image.frombytes(
        mode, (width, height), os.urandom(width * height * channels)
    )


def without_id(pdf_bytes: bytes) -> bytes:
    """
    Re-serialise a PDF file without an /ID entry in the trailer.
    """
    doc = Document.read(BytesIO(pdf_bytes))
    del doc.trailer['/ID']
    return doc.to_bytes()


def write_file(path, data: bytes):
    with open(path, 'wb') as outf:
        outf.write(data)
