from coffret.protocol.ftp import FTPCommand, FTPReply
from coffret.protocol.http import HTTPRequest, HTTPResponse
from coffret.protocol.server.http.session import sanitize_filename
from coffret.examples.coffretserver import parse_port_range


def test_ftp_command_parsing():
	cmd = FTPCommand.from_line('user bob\r\n')
	assert cmd.verb == 'USER'
	assert cmd.argument == 'bob'

	cmd = FTPCommand.from_line('STOR my file.txt')
	assert cmd.argument == 'my file.txt'

	assert FTPCommand.from_line('LIST').argument == ''
	assert FTPCommand.from_line('   ') is None
	assert str(FTPCommand.from_line('PASS secret')) == 'PASS ****'

def test_ftp_replies():
	assert FTPReply(200, 'ok').to_bytes() == b'200 ok\r\n'
	reply = FTPReply.passive_mode('192.168.1.10', 50000)
	assert str(reply) == '227 Entering Passive Mode (192,168,1,10,195,80)'

def test_http_header_parsing():
	req = HTTPRequest.from_header_bytes(b'get /a?b=c HTTP/1.1\r\nX-Test: a: b\r\nContent-Length: nope\r\n\r\n')
	assert req.error is None
	assert req.method == 'GET'
	assert req.path == '/a'
	assert req.get_header('x-test') == 'a: b'
	assert req.content_length == 0

def test_http_response_headers():
	raw = HTTPResponse.from_text(200, 'hi').to_bytes()
	head, _, body = raw.partition(b'\r\n\r\n')
	assert head.startswith(b'HTTP/1.1 200 OK\r\n')
	assert b'Content-Length: 2' in head
	assert b'Access-Control-Allow-Origin: *' in head
	assert b'Connection: keep-alive' in head
	assert body == b'hi'

	raw = HTTPResponse.from_text(404, 'Not Found').to_bytes()
	assert b'Connection: close' in raw

def test_http_attachment():
	resp = HTTPResponse.attachment('report.pdf', 10, 'application/pdf')
	head = resp.get_header_bytes()
	assert b'Content-Disposition: attachment; filename="report.pdf"' in head
	assert b'Content-Length: 10' in head

	head = HTTPResponse.attachment('café.txt', 1).get_header_bytes()
	assert b"filename*=UTF-8''caf%C3%A9.txt" in head

def test_sanitize_filename():
	assert sanitize_filename('a.txt') == 'a.txt'
	assert sanitize_filename('..\\..\\evil.txt') == 'evil.txt'
	assert sanitize_filename('/etc/passwd') == 'passwd'
	assert sanitize_filename('..') is None
	assert sanitize_filename('dir/') is None

def test_port_range():
	assert list(parse_port_range('60000-60002')) == [60000, 60001, 60002]
	assert list(parse_port_range('2121')) == [2121]
