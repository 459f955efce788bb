import pytest
from coffret.protocol.multipart import MultipartParser, MultipartError
from coffret.test.helpers import build_multipart

BOUNDARY = '----WebKitFormBoundary7MA4YWxkTrZu0gW'

def test_get_boundary():
	assert MultipartParser.get_boundary('multipart/form-data; boundary=abc') == 'abc'
	assert MultipartParser.get_boundary('multipart/form-data; boundary="abc def"') == 'abc def'
	assert MultipartParser.get_boundary('multipart/form-data; boundary=abc; charset=utf-8') == 'abc'
	assert MultipartParser.get_boundary('multipart/form-data') is None
	assert MultipartParser.get_boundary('application/json') is None
	assert MultipartParser.get_boundary(None) is None

def test_from_content_type_without_boundary():
	with pytest.raises(MultipartError):
		MultipartParser.from_content_type('text/plain')

def test_binary_payload_survives():
	payload = bytes([0x00, 0xFF, 0x0D, 0x0A, 0x00])
	body = build_multipart(BOUNDARY, [('blob.bin', payload)])
	form = MultipartParser(BOUNDARY).parse(body)
	assert len(form.files) == 1
	assert form.files[0].filename == 'blob.bin'
	assert form.files[0].name == 'file'
	assert form.files[0].content_type == 'application/octet-stream'
	assert form.files[0].data == payload

def test_multiple_files_and_fields():
	body = build_multipart(
		BOUNDARY,
		[('a.txt', b'first'), ('b.txt', b'second\r\n')],
		fields = {'path' : '/docs'}
	)
	form = MultipartParser(BOUNDARY).parse(body)
	assert [f.filename for f in form.files] == ['a.txt', 'b.txt']
	assert form.files[1].data == b'second\r\n'
	assert form.target_path == '/docs'

def test_empty_filename_skipped():
	body = build_multipart(BOUNDARY, [('', b'')])
	form = MultipartParser(BOUNDARY).parse(body)
	assert form.files == []
	assert form.target_path is None

def test_part_without_disposition_ignored():
	body = ('--%s\r\nContent-Type: text/plain\r\n\r\nstray\r\n--%s--\r\n' % (BOUNDARY, BOUNDARY)).encode()
	form = MultipartParser(BOUNDARY).parse(body)
	assert form.files == []
	assert form.fields == {}

def test_boundary_parameter_case():
	assert MultipartParser.get_boundary('Multipart/Form-Data; Boundary=xyz') == 'xyz'
	assert MultipartParser.get_boundary('multipart/form-data; BOUNDARY="q r"') == 'q r'
