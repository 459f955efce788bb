import copy
import asyncio
from coffret import logger
from coffret.common.target import ListenTarget
from coffret.common.packetizers import Packetizer
from coffret.common.connection import Connection


class ConnectionAcceptor:
	"""
	Listens on one TCP port and runs a session for every accepted connection.
	`sessions` maps each live session to the task running it, it is only touched
	from the event loop thread.
	"""
	def __init__(self, target:ListenTarget, packetizer:Packetizer, session_factory):
		self.target = target
		self.packetizer = packetizer
		self.session_factory = session_factory
		self.sessions = {}
		self.server = None

	@property
	def port(self):
		if self.server is not None and len(self.server.sockets) > 0:
			return self.server.sockets[0].getsockname()[1]
		return self.target.port

	def is_serving(self):
		return self.server is not None and self.server.is_serving()

	async def __handle_connection(self, reader, writer):
		packetizer = copy.deepcopy(self.packetizer)
		connection = Connection(reader, writer, packetizer, timeout = self.target.timeout)
		session = self.session_factory(connection)
		self.sessions[session] = asyncio.current_task()
		try:
			await session.run()
		except Exception as e:
			logger.exception('[%s] Session crashed' % self.target.protocol.name)
		finally:
			self.sessions.pop(session, None)

	async def start(self):
		try:
			self.server = await asyncio.start_server(
				self.__handle_connection,
				self.target.get_ip_or_hostname(),
				self.target.port,
				reuse_address = True
			)
			logger.debug('[%s] Listening on %s:%s' % (self.target.protocol.name, self.target.get_ip_or_hostname(), self.port))
			return True, None
		except Exception as e:
			return None, e

	async def stop(self):
		"""Stops listening and aborts every live session, in-flight transfers included"""
		if self.server is not None:
			self.server.close()
			self.server = None
		tasks = []
		for session, task in list(self.sessions.items()):
			try:
				await session.terminate()
			except Exception as e:
				logger.debug('[%s] Terminating session failed. Reason: %r' % (self.target.protocol.name, e))
			if task is not None and task is not asyncio.current_task():
				task.cancel()
				tasks.append(task)
		if len(tasks) > 0:
			await asyncio.gather(*tasks, return_exceptions = True)
		self.sessions.clear()
