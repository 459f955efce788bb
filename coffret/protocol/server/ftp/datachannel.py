import errno
import asyncio
from coffret import logger
from coffret.common.target import ListenTarget
from coffret.common.connection import Connection
from coffret.common.packetizers import Packetizer


class PassiveDataChannel:
	"""
	Single use FTP data channel.
	The listener accepts exactly one connection then stops listening, the connection
	is closed once the transfer it was opened for is over.
	"""
	def __init__(self, target:ListenTarget, timeout:int = 30):
		self.target = target
		self.timeout = timeout
		self.port = None
		self.server = None
		self.connection = None
		self.__connection_fut = None

	@staticmethod
	async def open(target:ListenTarget, timeout:int = 30, ports = None):
		channel = PassiveDataChannel(target, timeout = timeout)
		_, err = await channel.bind(ports)
		if err is not None:
			await channel.close()
			return None, err
		return channel, None

	async def bind(self, ports = None):
		try:
			self.__connection_fut = asyncio.get_running_loop().create_future()
			candidates = [self.target.port] if ports is None else list(ports)
			last_err = None
			for port in candidates:
				try:
					self.server = await asyncio.start_server(
						self.__handle_connection,
						self.target.get_ip_or_hostname(),
						port,
						backlog = 1
					)
					break
				except OSError as e:
					if e.errno != errno.EADDRINUSE:
						raise
					last_err = e

			if self.server is None:
				if last_err is not None:
					raise last_err
				raise Exception('No passive port available!')

			self.port = self.server.sockets[0].getsockname()[1]
			logger.debug('[FTP-DATA] Passive listener on port %s' % self.port)
			return True, None
		except Exception as e:
			return None, e

	async def __handle_connection(self, reader, writer):
		if self.__connection_fut is None or self.__connection_fut.done():
			writer.close()
			return
		self.connection = Connection(reader, writer, Packetizer(), timeout = self.target.timeout)
		self.__connection_fut.set_result(self.connection)
		self.server.close()
		logger.debug('[FTP-DATA] Data connection from %s' % self.connection.get_peer_str())

	async def accept(self):
		"""Waits for the client to connect to the passive port"""
		try:
			connection = await asyncio.wait_for(
				asyncio.shield(self.__connection_fut),
				timeout = self.timeout
			)
			return connection, None
		except Exception as e:
			return None, e

	async def write(self, data:bytes):
		await self.connection.write(data)

	async def read_all(self):
		"""Reads the data connection until the client closes it"""
		chunks = []
		async for data in self.connection.read():
			if data is None:
				break
			chunks.append(data)
		if self.connection.error is not None:
			raise self.connection.error
		return b''.join(chunks)

	async def close(self):
		if self.server is not None:
			self.server.close()
			self.server = None
		if self.__connection_fut is not None and not self.__connection_fut.done():
			self.__connection_fut.set_exception(ConnectionAbortedError('Data channel closed'))
			self.__connection_fut.exception() # marks it retrieved
		if self.connection is not None:
			await self.connection.close()
