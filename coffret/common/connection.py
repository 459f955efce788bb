import asyncio
from coffret import logger
from coffret.common.packetizers import Packetizer


class Connection:
	def __init__(self, reader:asyncio.StreamReader, writer:asyncio.StreamWriter, packetizer:Packetizer, timeout:int = None):
		self.reader = reader
		self.writer = writer
		self.packetizer = packetizer
		self.timeout = timeout
		self.error = None
		self.closing = False

	def get_extra_info(self, name, default=None):
		if self.writer is not None:
			return self.writer.get_extra_info(name, default)
		return default

	def get_peer_str(self):
		peer = self.get_extra_info('peername')
		if peer is None:
			return 'unknown'
		return '%s:%s' % (peer[0], peer[1])

	def timed_out(self):
		return isinstance(self.error, asyncio.TimeoutError)

	async def close(self):
		if self.closing is True:
			return
		self.closing = True
		if self.writer is not None:
			self.writer.close()

	def abort(self):
		"""Drops the transport immediately, pending outgoing data is discarded"""
		self.closing = True
		if self.writer is not None:
			self.writer.transport.abort()

	async def write(self, data):
		async for packet in self.packetizer.data_out(data):
			self.writer.write(packet)
			await self.writer.drain()

	async def read(self):
		try:
			data = None
			while self.closing is False:
				async for result in self.packetizer.data_in(data):
					if result is None:
						break
					yield result

				data = await asyncio.wait_for(
					self.reader.read(self.packetizer.buffer_size),
					timeout = self.timeout
				)
				if data == b'':
					break

			#flush the buffer, test if there is any data left
			data = None
			async for result in self.packetizer.data_in(data):
				if result is None:
					break
				yield result
		except Exception as e:
			self.error = e
			logger.debug('[CONNECTION][%s] Read ended. Reason: %r' % (self.get_peer_str(), e))
			yield None
