import os
import asyncio
import ipaddress
from coffret import logger
from coffret.acceptor import ConnectionAcceptor
from coffret.common.fileops import FileOps
from coffret.common.target import ListenTarget, ListenProto
from coffret.common.utils import get_local_ipv4, is_usable_ipv4
from coffret.common.packetizers import LinePacketizer
from coffret.common.packetizers.http import HTTPRequestPacketizer
from coffret.protocol.server.ftp.session import FTPSession
from coffret.protocol.server.http.session import HTTPSession


class CoffretServer:
	"""
	Shares one directory over FTP and HTTP at the same time.
	Both listeners serve the same root, every connection runs in its own task.
	Use port 0 to let the OS pick a free port, the bound ports are available
	through `ftp_port` and `web_port` once the server is started.
	"""
	def __init__(self, root_path:str, ftp_port:int = 2121, web_port:int = 8080, listen_ip:str = '0.0.0.0', idle_timeout:int = 300, data_timeout:int = 30, login_required:bool = True, pasv_address:str = None, pasv_ports = None, web_interface:bytes = None):
		if not os.path.isdir(root_path):
			raise ValueError('Root path %r is not a directory' % root_path)
		if pasv_address is not None:
			if ipaddress.ip_address(pasv_address).version != 4:
				raise ValueError('Passive address must be an IPv4 address')

		self.fileops = FileOps(root_path)
		self.listen_ip = listen_ip
		self.login_required = login_required
		self.pasv_address = pasv_address
		self.pasv_ports = pasv_ports
		self.data_timeout = data_timeout
		self.web_interface = web_interface

		self.ftp_target = ListenTarget(listen_ip, ftp_port, ListenProto.FTP, timeout = idle_timeout)
		self.web_target = ListenTarget(listen_ip, web_port, ListenProto.HTTP, timeout = idle_timeout)
		self.data_target = self.ftp_target.get_newtarget(listen_ip, 0, ListenProto.FTP_DATA, timeout = data_timeout)

		self.ftp_acceptor = ConnectionAcceptor(self.ftp_target, LinePacketizer(), self.create_ftp_session)
		self.web_acceptor = ConnectionAcceptor(self.web_target, HTTPRequestPacketizer(), self.create_http_session)

	async def __aenter__(self):
		_, err = await self.start()
		if err is not None:
			raise err
		return self

	async def __aexit__(self, exc_type, exc, tb):
		await self.stop()

	@property
	def root_path(self):
		return self.fileops.root_path

	@property
	def ftp_port(self):
		return self.ftp_acceptor.port

	@property
	def web_port(self):
		return self.web_acceptor.port

	def create_ftp_session(self, connection):
		return FTPSession(
			connection,
			self.fileops,
			self.data_target,
			login_required = self.login_required,
			pasv_address = self.pasv_address,
			pasv_ports = self.pasv_ports,
			data_timeout = self.data_timeout
		)

	def create_http_session(self, connection):
		return HTTPSession(connection, self.fileops, web_interface = self.web_interface)

	def get_local_ip(self):
		"""Address clients on the network can reach the server at, None if it can't be determined"""
		if self.ftp_target.is_wildcard():
			return get_local_ipv4()
		ip = self.ftp_target.get_ip_or_hostname()
		if is_usable_ipv4(ip):
			return ip
		return None

	def get_ftp_url(self):
		ip = self.get_local_ip()
		if ip is None:
			return None
		return self.ftp_target.get_url(ip, self.ftp_port)

	def get_web_url(self):
		ip = self.get_local_ip()
		if ip is None:
			return None
		return self.web_target.get_url(ip, self.web_port)

	async def start(self):
		try:
			_, err = await self.ftp_acceptor.start()
			if err is not None:
				raise err
			_, err = await self.web_acceptor.start()
			if err is not None:
				await self.ftp_acceptor.stop()
				raise err

			logger.info('[SERVER] Sharing %s' % self.root_path)
			logger.info('[SERVER] FTP listening on %s:%s' % (self.listen_ip, self.ftp_port))
			logger.info('[SERVER] HTTP listening on %s:%s' % (self.listen_ip, self.web_port))
			return True, None
		except Exception as e:
			logger.error('[SERVER] Failed to start. Reason: %s' % e)
			return None, e

	async def stop(self):
		await self.ftp_acceptor.stop()
		await self.web_acceptor.stop()
		logger.info('[SERVER] Stopped')

	async def serve_forever(self):
		"""Starts the server if needed and blocks until cancelled"""
		if not self.ftp_acceptor.is_serving():
			_, err = await self.start()
			if err is not None:
				raise err
		try:
			while True:
				await asyncio.sleep(3600)
		finally:
			await self.stop()
