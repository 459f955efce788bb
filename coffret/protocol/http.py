import urllib.parse
from http import HTTPStatus

CORS_HEADERS = [
	('Access-Control-Allow-Origin', '*'),
	('Access-Control-Allow-Methods', 'GET, POST, DELETE, OPTIONS'),
	('Access-Control-Allow-Headers', 'Content-Type'),
]

class HTTPRequestError(Exception):
	pass

def get_reason(status:int):
	try:
		return HTTPStatus(status).phrase
	except ValueError:
		return 'Unknown'

class HTTPRequest:
	def __init__(self):
		self.method = None
		self.uri = None
		self.version = None
		self.headers = {}
		self.headers_upper = {}
		self.data = b''
		self.error = None

	def __str__(self):
		t = '%s %s %s\r\n' % (self.method, self.uri, self.version)
		for x in self.headers:
			t += '%s: %s\r\n' % (x, self.headers[x])
		t += '\r\n'
		if self.data:
			t += '<DATA AVAILABLE>'
		return t

	def get_header(self, name:str, default = None):
		return self.headers_upper.get(name.upper(), default)

	@property
	def path(self):
		"""Request target without the query string, still percent-encoded"""
		if self.uri is None:
			return None
		return self.uri.split('?', 1)[0]

	@property
	def content_length(self):
		try:
			length = int(self.headers_upper['CONTENT-LENGTH'])
		except (KeyError, ValueError):
			return 0
		return max(length, 0)

	def wants_close(self):
		return self.get_header('Connection', '').strip().lower() == 'close'

	def get_text(self, encoding = 'utf-8'):
		return self.data.decode(encoding)

	@staticmethod
	def from_header_bytes(data:bytes):
		"""
		Parses the request head (request line and header lines, up to and including CRLFCRLF).
		A request line that cannot be interpreted does not raise, it sets the `error` attribute
		so the caller can still answer with 400.
		"""
		req = HTTPRequest()
		try:
			text = bytes(data).decode('utf-8')
		except UnicodeDecodeError:
			req.error = 'Request header is not valid UTF-8'
			return req

		lines = text.split('\r\n')
		parts = lines[0].split(' ')
		if len(parts) < 2 or parts[0] == '' or parts[1] == '':
			req.error = 'Malformed request line'
		else:
			req.method = parts[0].upper()
			req.uri = parts[1]
			req.version = parts[2] if len(parts) > 2 else None

		for hdr_raw in lines[1:]:
			if hdr_raw.strip() == '':
				continue
			# only the first ': ' separates name and value
			key, sep, value = hdr_raw.partition(': ')
			if sep == '':
				continue
			value = value.strip()
			req.headers[key] = value
			req.headers_upper[key.upper()] = value

		return req


class HTTPResponse:
	def __init__(self, status:int = 200, data:bytes = b'', content_type:str = 'text/plain; charset=utf-8'):
		self.version = 'HTTP/1.1'
		self.status = status
		self.reason = get_reason(status)
		self.content_type = content_type
		self.headers = []
		self.data = data
		self.content_length = None
		self.body_iter = None
		self.close_connection = status >= 400

	@staticmethod
	def from_text(status:int, text:str, content_type:str = 'text/plain; charset=utf-8'):
		return HTTPResponse(status, text.encode('utf-8'), content_type)

	@staticmethod
	def attachment(filename:str, content_length:int, content_type:str = 'application/octet-stream'):
		"""Response head for a streamed file download. The body is written separately."""
		resp = HTTPResponse(200, b'', content_type)
		resp.content_length = content_length
		resp.close_connection = True
		quoted = filename.replace('\\', '\\\\').replace('"', '\\"')
		try:
			quoted.encode('ascii')
			resp.headers.append(('Content-Disposition', 'attachment; filename="%s"' % quoted))
		except UnicodeEncodeError:
			fallback = quoted.encode('ascii', 'replace').decode('ascii')
			resp.headers.append((
				'Content-Disposition',
				'attachment; filename="%s"; filename*=UTF-8\'\'%s' % (fallback, urllib.parse.quote(filename))
			))
		return resp

	def get_header_bytes(self):
		content_length = self.content_length
		if content_length is None:
			content_length = len(self.data)
		t = '%s %s %s\r\n' % (self.version, self.status, self.reason)
		t += 'Content-Type: %s\r\n' % self.content_type
		t += 'Content-Length: %s\r\n' % content_length
		for key, value in CORS_HEADERS:
			t += '%s: %s\r\n' % (key, value)
		for key, value in self.headers:
			t += '%s: %s\r\n' % (key, value)
		t += 'Connection: %s\r\n' % ('close' if self.close_connection is True else 'keep-alive')
		t += '\r\n'
		return t.encode('utf-8')

	def to_bytes(self):
		return self.get_header_bytes() + self.data

	def __str__(self):
		return '%s %s %s' % (self.version, self.status, self.reason)
