import re
import asyncio
import h11

TIMEOUT = 5

PASV_RE = re.compile(r'\((\d+),(\d+),(\d+),(\d+),(\d+),(\d+)\)')

async def collect(packetizer, data):
	results = []
	async for result in packetizer.data_in(data):
		if result is None:
			break
		results.append(result)
	return results

def build_multipart(boundary:str, files, fields = None):
	body = b''
	for name, value in (fields or {}).items():
		body += ('--%s\r\nContent-Disposition: form-data; name="%s"\r\n\r\n' % (boundary, name)).encode()
		body += value.encode() + b'\r\n'
	for filename, data in files:
		body += ('--%s\r\nContent-Disposition: form-data; name="file"; filename="%s"\r\n' % (boundary, filename)).encode()
		body += b'Content-Type: application/octet-stream\r\n\r\n'
		body += data + b'\r\n'
	body += ('--%s--\r\n' % boundary).encode()
	return body

async def read_until_closed(reader):
	"""Reads until EOF, a reset connection counts as closed"""
	try:
		return await asyncio.wait_for(reader.read(), TIMEOUT)
	except ConnectionError:
		return b''

# FTP

async def ftp_read_reply(reader):
	line = await asyncio.wait_for(reader.readline(), TIMEOUT)
	return line.decode().rstrip('\r\n')

async def ftp_command(reader, writer, command:str):
	writer.write(('%s\r\n' % command).encode())
	await writer.drain()
	return await ftp_read_reply(reader)

async def ftp_connect(port:int, login = True):
	reader, writer = await asyncio.open_connection('127.0.0.1', port)
	greeting = await ftp_read_reply(reader)
	assert greeting.startswith('220')
	if login is True:
		assert (await ftp_command(reader, writer, 'USER test')).startswith('331')
		assert (await ftp_command(reader, writer, 'PASS test')).startswith('230')
	return reader, writer

def parse_pasv(reply:str):
	m = PASV_RE.search(reply)
	nums = [int(x) for x in m.groups()]
	return '.'.join([str(x) for x in nums[:4]]), (nums[4] << 8) + nums[5]

async def ftp_download(reader, writer, command:str):
	"""Runs PASV + command, returns (preliminary reply, data, final reply)"""
	reply = await ftp_command(reader, writer, 'PASV')
	assert reply.startswith('227')
	ip, port = parse_pasv(reply)
	data_reader, data_writer = await asyncio.open_connection(ip, port)
	prelim = await ftp_command(reader, writer, command)
	data = await asyncio.wait_for(data_reader.read(), TIMEOUT)
	data_writer.close()
	final = await ftp_read_reply(reader)
	return prelim, data, final

async def ftp_upload(reader, writer, command:str, data:bytes):
	reply = await ftp_command(reader, writer, 'PASV')
	assert reply.startswith('227')
	ip, port = parse_pasv(reply)
	data_reader, data_writer = await asyncio.open_connection(ip, port)
	prelim = await ftp_command(reader, writer, command)
	data_writer.write(data)
	await data_writer.drain()
	data_writer.close()
	final = await ftp_read_reply(reader)
	return prelim, final

async def ftp_read_passive(ip:str, port:int):
	"""Connects to a passive port and reads it to the end, a refused connection reads as empty"""
	try:
		reader, writer = await asyncio.open_connection(ip, port)
	except ConnectionError:
		return b''
	data = await read_until_closed(reader)
	writer.close()
	return data

# HTTP

def make_request(method:str, target:str, headers = None, body:bytes = b''):
	hdrs = [('Host', 'localhost')] + list(headers or [])
	if body or method in ['POST', 'PUT']:
		hdrs.append(('Content-Length', str(len(body))))
	return h11.Request(method = method, target = target, headers = hdrs)

def serialize_request(method:str, target:str, headers = None, body:bytes = b''):
	conn = h11.Connection(our_role = h11.CLIENT)
	raw = conn.send(make_request(method, target, headers, body))
	if body:
		raw += conn.send(h11.Data(data = body))
	raw += conn.send(h11.EndOfMessage())
	return raw

async def read_response(conn, reader):
	status = None
	headers = {}
	body = b''
	while True:
		event = conn.next_event()
		if event is h11.NEED_DATA:
			conn.receive_data(await asyncio.wait_for(reader.read(65536), TIMEOUT))
			continue
		if isinstance(event, h11.Response):
			status = event.status_code
			headers = {k.decode().lower() : v.decode() for k, v in event.headers}
		elif isinstance(event, h11.Data):
			body += bytes(event.data)
		elif isinstance(event, h11.EndOfMessage):
			return status, headers, body
		elif isinstance(event, h11.ConnectionClosed):
			raise ConnectionError('Server closed the connection before responding')

async def http_exchange(port:int, requests):
	"""
	Writes every request in a single write, then parses the responses in order.
	`requests` is a list of (method, target, headers, body) tuples.
	"""
	reader, writer = await asyncio.open_connection('127.0.0.1', port)
	try:
		writer.write(b''.join([serialize_request(*req) for req in requests]))
		await writer.drain()

		conn = h11.Connection(our_role = h11.CLIENT)
		responses = []
		for i, req in enumerate(requests):
			if i > 0:
				conn.start_next_cycle()
			method, target, headers, body = req
			conn.send(make_request(method, target, headers, body))
			if body:
				conn.send(h11.Data(data = body))
			conn.send(h11.EndOfMessage())
			responses.append(await read_response(conn, reader))
		return responses
	finally:
		writer.close()

async def http_request(port:int, method:str, target:str, headers = None, body:bytes = b''):
	responses = await http_exchange(port, [(method, target, headers, body)])
	return responses[0]

async def http_upload(port:int, files, fields = None):
	boundary = '----coffretboundary7MA4YWxkTrZu0gW'
	body = build_multipart(boundary, files, fields)
	headers = [('Content-Type', 'multipart/form-data; boundary=%s' % boundary)]
	return await http_request(port, 'POST', '/api/upload', headers, body)
