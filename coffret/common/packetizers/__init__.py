
class Packetizer:
	"""Raw passthrough, every received chunk is handed out as-is"""
	def __init__(self, buffer_size = 65535):
		self.buffer_size = buffer_size

	async def data_out(self, data):
		yield data

	async def data_in(self, data):
		yield data


class LinePacketizer(Packetizer):
	"""Splits the incoming stream into text lines terminated by CRLF (or a bare LF)"""
	def __init__(self, buffer_size = 65535, max_line_length = 8192, encoding = 'utf-8'):
		super().__init__(buffer_size)
		self.max_line_length = max_line_length
		self.encoding = encoding
		self.buffer = bytearray()

	async def data_out(self, data):
		if isinstance(data, str):
			data = data.encode(self.encoding)
		yield data

	async def data_in(self, data):
		if data is not None:
			self.buffer += data

		while True:
			m = self.buffer.find(b'\n')
			if m == -1:
				if len(self.buffer) > self.max_line_length:
					raise Exception('Line exceeds %s bytes!' % self.max_line_length)
				yield None
				return

			line = bytes(self.buffer[:m])
			del self.buffer[:m+1]
			if line.endswith(b'\r'):
				line = line[:-1]
			yield line.decode(self.encoding, errors='replace')
