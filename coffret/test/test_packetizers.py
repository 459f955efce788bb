import asyncio
import pytest
from coffret.common.packetizers import LinePacketizer
from coffret.common.packetizers.http import HTTPRequestPacketizer
from coffret.protocol.http import HTTPRequestError
from coffret.test.helpers import collect

REQUEST = (
	b'POST /api/upload HTTP/1.1\r\n'
	b'Host: localhost\r\n'
	b'Content-Type: text/plain\r\n'
	b'Content-Length: 11\r\n'
	b'\r\n'
	b'hello\r\n\r\nxy'
)

def test_line_packetizer_split_lines():
	async def run():
		p = LinePacketizer()
		first = await collect(p, b'USER bob\r\nPA')
		second = await collect(p, b'SS secret\r\nNOOP\n')
		return first, second

	first, second = asyncio.run(run())
	assert first == ['USER bob']
	assert second == ['PASS secret', 'NOOP']

def test_line_packetizer_too_long():
	async def run():
		p = LinePacketizer(max_line_length = 16)
		await collect(p, b'A' * 32)

	with pytest.raises(Exception):
		asyncio.run(run())

def test_http_request_every_split_point():
	async def run():
		results = []
		for i in range(len(REQUEST) + 1):
			p = HTTPRequestPacketizer()
			requests = await collect(p, REQUEST[:i])
			requests += await collect(p, REQUEST[i:])
			results.append(requests)
		return results

	for requests in asyncio.run(run()):
		assert len(requests) == 1
		assert requests[0].method == 'POST'
		assert requests[0].uri == '/api/upload'
		assert requests[0].data == b'hello\r\n\r\nxy'

def test_http_request_byte_at_a_time():
	async def run():
		p = HTTPRequestPacketizer()
		requests = []
		for i in range(len(REQUEST)):
			requests += await collect(p, REQUEST[i:i+1])
		return requests

	requests = asyncio.run(run())
	assert len(requests) == 1
	assert requests[0].get_header('content-type') == 'text/plain'
	assert requests[0].data == b'hello\r\n\r\nxy'

def test_http_pipelined_requests():
	raw = REQUEST + b'GET /api/files HTTP/1.1\r\nHost: localhost\r\n\r\n'
	requests = asyncio.run(collect(HTTPRequestPacketizer(), raw))
	assert [r.method for r in requests] == ['POST', 'GET']
	assert requests[1].uri == '/api/files'
	assert requests[1].data == b''

def test_http_header_too_large():
	async def run():
		p = HTTPRequestPacketizer(max_header_size = 64)
		await collect(p, b'GET / HTTP/1.1\r\n' + b'X-Pad: ' + b'a' * 128)

	with pytest.raises(HTTPRequestError):
		asyncio.run(run())

def test_http_malformed_request_line():
	requests = asyncio.run(collect(HTTPRequestPacketizer(), b'garbage\r\n\r\n'))
	assert len(requests) == 1
	assert requests[0].error is not None
