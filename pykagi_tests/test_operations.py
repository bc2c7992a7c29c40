import os

import pytest
from pyhanko.pdf_utils.crypt import AuthStatus
from pyhanko.pdf_utils.reader import PdfFileReader

from pykagi.misc import DocumentLoadError, OutputPathError
from pykagi.operations import apply_encryption, secure_output_path

from .samples import HELLO, minimal_pdf, without_id, write_file


def _const(v):
    def f(*_args, **_kwargs):
        return v

    return f


@pytest.mark.parametrize(
    'path,expected',
    [
        ('report.pdf', 'report_secure.pdf'),
        ('/tmp/dir/report.pdf', '/tmp/dir/report_secure.pdf'),
        ('archive.tar.pdf', 'archive.tar_secure.pdf'),
        ('noext', 'noext_secure.pdf'),
    ],
)
def test_secure_output_path(path, expected):
    assert secure_output_path(path) == expected


@pytest.mark.parametrize('path', ['', '/tmp/dir/'])
def test_secure_output_path_no_stem(path):
    with pytest.raises(OutputPathError):
        secure_output_path(path)


def test_apply_encryption(tmp_path):
    src = tmp_path / 'doc.pdf'
    original = minimal_pdf()
    write_file(src, original)
    out = apply_encryption(src, 'secret')
    assert out == str(tmp_path / 'doc_secure.pdf')
    # the source is never touched
    assert src.read_bytes() == original

    with open(out, 'rb') as inf:
        r = PdfFileReader(inf)
        assert r.decrypt('secret').status != AuthStatus.FAILED
        assert r.root['/PyKagiIndirect'] == HELLO
        id_arr = r.trailer['/ID']
        assert id_arr[0] == id_arr[1]


def test_apply_encryption_reuses_id(tmp_path):
    src = tmp_path / 'doc.pdf'
    write_file(src, minimal_pdf())
    with open(src, 'rb') as inf:
        original_id = PdfFileReader(inf).trailer['/ID'][0].original_bytes

    out = apply_encryption(src, 'secret')
    with open(out, 'rb') as inf:
        r = PdfFileReader(inf)
        assert r.trailer['/ID'][0].original_bytes == original_id
        assert r.trailer['/ID'][1].original_bytes == original_id


def test_apply_encryption_new_id(tmp_path):
    src = tmp_path / 'doc.pdf'
    write_file(src, without_id(minimal_pdf()))
    fresh_id = b'\x42' * 16
    out = apply_encryption(src, 'secret', id_generator=_const(fresh_id))
    with open(out, 'rb') as inf:
        r = PdfFileReader(inf)
        assert r.trailer['/ID'][0].original_bytes == fresh_id
        assert r.decrypt('secret').status != AuthStatus.FAILED
        assert r.root['/PyKagiDirect'] == HELLO


def test_apply_encryption_custom_output(tmp_path):
    src = tmp_path / 'doc.pdf'
    write_file(src, minimal_pdf())
    target = tmp_path / 'elsewhere.pdf'
    out = apply_encryption(src, 'secret', output_path=target)
    assert out == str(target)
    assert target.exists()
    assert not (tmp_path / 'doc_secure.pdf').exists()


def test_apply_encryption_bad_input(tmp_path):
    src = tmp_path / 'doc.pdf'
    write_file(src, b'not a pdf')
    with pytest.raises(DocumentLoadError):
        apply_encryption(src, 'secret')
    assert not (tmp_path / 'doc_secure.pdf').exists()


def test_apply_encryption_missing_input(tmp_path):
    with pytest.raises(DocumentLoadError):
        apply_encryption(tmp_path / 'missing.pdf', 'secret')


def test_apply_encryption_already_encrypted(tmp_path):
    src = tmp_path / 'doc.pdf'
    write_file(src, minimal_pdf())
    out = apply_encryption(src, 'secret')
    with pytest.raises(DocumentLoadError):
        apply_encryption(out, 'secret')
    assert not os.path.exists(tmp_path / 'doc_secure_secure.pdf')
