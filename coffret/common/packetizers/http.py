from coffret.common.packetizers import Packetizer
from coffret.protocol.http import HTTPRequest, HTTPRequestError


class HTTPRequestPacketizer(Packetizer):
	"""
	Accumulates raw bytes and hands out complete HTTP requests.
	A request is complete once the CRLFCRLF header terminator and Content-Length body bytes
	have arrived. Several requests may sit in the buffer, they are handed out in arrival order.
	"""
	def __init__(self, buffer_size = 65535, max_header_size = 65536):
		super().__init__(buffer_size)
		self.max_header_size = max_header_size
		self.buffer = bytearray()
		self.__pending = None

	def extract_request(self):
		if self.__pending is None:
			m = self.buffer.find(b'\r\n\r\n')
			if m == -1:
				if len(self.buffer) > self.max_header_size:
					raise HTTPRequestError('Request header exceeds %s bytes' % self.max_header_size)
				return None
			header_end = m + 4
			request = HTTPRequest.from_header_bytes(self.buffer[:header_end])
			self.__pending = (request, header_end, header_end + request.content_length)

		request, header_end, total = self.__pending
		if len(self.buffer) < total:
			return None

		request.data = bytes(self.buffer[header_end:total])
		del self.buffer[:total]
		self.__pending = None
		return request

	async def data_in(self, data):
		if data is not None:
			self.buffer += data

		while True:
			request = self.extract_request()
			if request is None:
				yield None
				return
			yield request
