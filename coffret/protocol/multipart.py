import re

DISPOSITION_NAME_RE = re.compile(r'(?:^|;)\s*name="([^"]*)"', re.IGNORECASE)
DISPOSITION_FILENAME_RE = re.compile(r'(?:^|;)\s*filename="([^"]*)"', re.IGNORECASE)
BOUNDARY_RE = re.compile(r'boundary=', re.IGNORECASE)

class MultipartError(Exception):
	pass

class MultipartFile:
	def __init__(self, name:str, filename:str, content_type:str, data:bytes):
		self.name = name
		self.filename = filename
		self.content_type = content_type
		self.data = data

	def __str__(self):
		return 'MultipartFile(name=%r, filename=%r, size=%s)' % (self.name, self.filename, len(self.data))

class MultipartForm:
	def __init__(self):
		self.fields = {}
		self.files = []

	@property
	def target_path(self):
		"""Value of the optional `path` text field, the sub-directory the upload goes to"""
		return self.fields.get('path')

class MultipartParser:
	"""
	Splits a multipart/form-data body on the boundary delimiter.
	The split happens on raw bytes so payloads containing CR/LF survive untouched,
	only the headers of each part are decoded to text.
	"""
	def __init__(self, boundary:str):
		if boundary is None or boundary == '':
			raise MultipartError('Missing multipart boundary')
		try:
			self.delimiter = b'--' + boundary.encode('ascii')
		except UnicodeEncodeError:
			raise MultipartError('Invalid multipart boundary %r' % boundary)
		self.boundary = boundary

	@staticmethod
	def get_boundary(content_type:str):
		if content_type is None:
			return None
		if content_type.strip().lower().startswith('multipart/form-data') is False:
			return None
		m = BOUNDARY_RE.search(content_type)
		if m is None:
			return None
		boundary = content_type[m.end():].split(';', 1)[0].strip().strip('"')
		if boundary == '':
			return None
		return boundary

	@staticmethod
	def from_content_type(content_type:str):
		boundary = MultipartParser.get_boundary(content_type)
		if boundary is None:
			raise MultipartError('Content-Type is not multipart/form-data with a boundary')
		return MultipartParser(boundary)

	@staticmethod
	def parse_part(fragment:bytes):
		"""Returns (name, filename, content_type, data) or None for a malformed part"""
		sep = fragment.find(b'\r\n\r\n')
		if sep == -1:
			return None

		data = fragment[sep+4:]
		if data.endswith(b'\r\n'):
			data = data[:-2]

		try:
			headers_text = fragment[:sep].decode('utf-8')
		except UnicodeDecodeError:
			return None

		disposition = None
		content_type = None
		for line in headers_text.split('\r\n'):
			key, colon, value = line.partition(':')
			if colon == '':
				continue
			key = key.strip().lower()
			if key == 'content-disposition':
				disposition = value.strip()
			elif key == 'content-type':
				content_type = value.strip()

		if disposition is None:
			return None

		name = None
		m = DISPOSITION_NAME_RE.search(disposition)
		if m is not None:
			name = m.group(1)
		filename = None
		m = DISPOSITION_FILENAME_RE.search(disposition)
		if m is not None:
			filename = m.group(1)

		return name, filename, content_type, data

	def parse(self, body:bytes):
		form = MultipartForm()
		for fragment in body.split(self.delimiter):
			if fragment.strip(b'\r\n-') == b'':
				continue

			part = MultipartParser.parse_part(fragment)
			if part is None:
				continue

			name, filename, content_type, data = part
			if filename is not None:
				# browsers send filename="" for an empty file input
				if filename == '':
					continue
				form.files.append(MultipartFile(name, filename, content_type, data))
				continue

			if name is None:
				continue
			try:
				form.fields[name] = data.decode('utf-8').strip()
			except UnicodeDecodeError:
				continue

		return form
