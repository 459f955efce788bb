import posixpath
from coffret import logger
from coffret.common.target import ListenTarget
from coffret.common.connection import Connection
from coffret.common.fileops import FileOps
from coffret.common.utils import get_local_ipv4, is_usable_ipv4
from coffret.protocol.ftp import FTPCommand, FTPReply, FTPSessionState
from coffret.protocol.server.ftp.datachannel import PassiveDataChannel

PRE_LOGIN_COMMANDS = ['USER', 'PASS', 'QUIT', 'SYST', 'TYPE', 'NOOP']

class FTPSession:
	"""
	Serves one FTP control connection.
	Commands are processed strictly one after the other, a data transfer blocks
	the control connection until its final reply has been sent.
	"""
	def __init__(self, connection:Connection, fileops:FileOps, data_target:ListenTarget, login_required:bool = True, pasv_address:str = None, pasv_ports = None, data_timeout:int = 30):
		self.connection = connection
		self.fileops = fileops
		self.data_target = data_target
		self.login_required = login_required
		self.pasv_address = pasv_address
		self.pasv_ports = pasv_ports
		self.data_timeout = data_timeout

		self.current_directory = '/'
		self.state = FTPSessionState.UNAUTHENTICATED
		self.username = None
		self.data_channel:PassiveDataChannel = None
		self.active_channel:PassiveDataChannel = None
		self.peer = connection.get_peer_str()

	@property
	def is_logged_in(self):
		return self.state == FTPSessionState.AUTHENTICATED

	async def reply(self, code:int, text:str):
		reply = FTPReply(code, text)
		logger.debug('[FTP][%s] < %s' % (self.peer, reply))
		await self.connection.write(reply.to_bytes())

	async def run(self):
		try:
			logger.debug('[FTP][%s] Client connected' % self.peer)
			await self.reply(220, 'Coffret FTP Server Ready')
			async for line in self.connection.read():
				if line is None:
					break
				cmd = FTPCommand.from_line(line)
				if cmd is None:
					continue
				logger.debug('[FTP][%s] > %s' % (self.peer, cmd))
				if await self.handle_command(cmd) is False:
					break

			if self.connection.timed_out():
				await self.reply(421, 'Idle timeout, closing control connection')
		except Exception as e:
			logger.debug('[FTP][%s] Session ended. Reason: %r' % (self.peer, e))
		finally:
			await self.close()
			logger.debug('[FTP][%s] Client disconnected' % self.peer)

	async def handle_command(self, cmd:FTPCommand):
		if self.login_required is True and self.is_logged_in is False and cmd.verb not in PRE_LOGIN_COMMANDS:
			await self.reply(530, 'Please login with USER and PASS')
			return True

		func = None
		if cmd.verb.isalpha():
			func = getattr(self, 'cmd_%s' % cmd.verb.lower(), None)
		if func is None:
			await self.reply(502, 'Command not implemented')
			return True
		return await func(cmd.argument)

	async def close(self):
		await self.close_data_channel()
		await self.connection.close()

	async def terminate(self):
		await self.close_data_channel()
		if self.active_channel is not None:
			channel = self.active_channel
			self.active_channel = None
			await channel.close()
		self.connection.abort()

	async def close_data_channel(self):
		if self.data_channel is not None:
			channel = self.data_channel
			self.data_channel = None
			await channel.close()

	def get_virtual_path(self, path:str):
		return FileOps.normalize(posixpath.join(self.current_directory, path))

	def get_pasv_address(self):
		if self.pasv_address is not None:
			return self.pasv_address
		sockname = self.connection.get_extra_info('sockname')
		if sockname is not None:
			ip = sockname[0]
			if ip.startswith('::ffff:'):
				ip = ip[7:]
			if is_usable_ipv4(ip):
				return ip
		return get_local_ipv4()

	async def transfer_out(self, chunks, description:str):
		channel = self.data_channel
		self.data_channel = None
		self.active_channel = channel
		try:
			await self.reply(150, 'Opening data connection for %s' % description)
			_, err = await channel.accept()
			if err is not None:
				logger.debug('[FTP][%s] Data connection failed. Reason: %r' % (self.peer, err))
				code, text = 425, 'Can\'t open data connection'
			else:
				code, text = 226, 'Transfer complete'
				it = iter(chunks)
				while True:
					try:
						chunk = next(it)
					except StopIteration:
						break
					except OSError as e:
						logger.debug('[FTP][%s] Local read failed. Reason: %r' % (self.peer, e))
						code, text = 550, 'Failed to read file'
						break
					try:
						await channel.write(chunk)
					except Exception as e:
						logger.debug('[FTP][%s] Data connection broke. Reason: %r' % (self.peer, e))
						code, text = 426, 'Connection closed; transfer aborted'
						break
				if hasattr(it, 'close'):
					it.close()
		finally:
			self.active_channel = None
			await channel.close()
		await self.reply(code, text)
		return True

	async def cmd_user(self, arg:str):
		self.username = arg
		await self.reply(331, 'Username OK, need password')
		return True

	async def cmd_pass(self, arg:str):
		# any credential is accepted
		self.state = FTPSessionState.AUTHENTICATED
		logger.debug('[FTP][%s] User %r logged in' % (self.peer, self.username))
		await self.reply(230, 'User logged in')
		return True

	async def cmd_pwd(self, arg:str):
		await self.reply(257, '"%s" is current directory' % self.current_directory.replace('"', '""'))
		return True

	async def cmd_cwd(self, arg:str):
		if arg == '':
			await self.reply(550, 'Failed to change directory')
			return True
		virtual_path = self.get_virtual_path(arg)
		full_path, err = self.fileops.resolve(virtual_path)
		if err is not None or self.fileops.is_dir(full_path) is False:
			await self.reply(550, 'Directory not found')
			return True
		self.current_directory = virtual_path
		await self.reply(250, 'Directory changed')
		return True

	async def cmd_cdup(self, arg:str):
		return await self.cmd_cwd('..')

	async def cmd_list(self, arg:str):
		if self.data_channel is None:
			await self.reply(425, 'Use PASV first')
			return True

		# ls style flags such as -la are ignored
		path = ' '.join([x for x in arg.split(' ') if x != '' and not x.startswith('-')])
		full_path, err = self.fileops.resolve(self.get_virtual_path(path))
		if err is None:
			entries, err = self.fileops.list_directory(full_path)
		if err is not None:
			logger.debug('[FTP][%s] Listing failed. Reason: %r' % (self.peer, err))
			await self.close_data_channel()
			await self.reply(550, 'Failed to list directory')
			return True

		listing = ''.join([entry.to_list_line() for entry in entries]).encode('utf-8')
		return await self.transfer_out([listing], 'directory listing')

	async def cmd_nlst(self, arg:str):
		return await self.cmd_list(arg)

	async def cmd_retr(self, arg:str):
		if arg == '':
			await self.reply(550, 'File not specified')
			return True
		full_path, err = self.fileops.resolve(self.get_virtual_path(arg))
		if err is not None or self.fileops.is_file(full_path) is False:
			await self.close_data_channel()
			await self.reply(550, 'File not found')
			return True
		if self.data_channel is None:
			await self.reply(425, 'Use PASV first')
			return True
		return await self.transfer_out(self.fileops.iter_file(full_path), 'file transfer')

	async def cmd_stor(self, arg:str):
		if arg == '':
			await self.reply(550, 'File not specified')
			return True
		full_path, err = self.fileops.resolve(self.get_virtual_path(arg))
		if err is not None:
			await self.close_data_channel()
			await self.reply(550, 'Invalid file name')
			return True
		if self.data_channel is None:
			await self.reply(425, 'Use PASV first')
			return True

		channel = self.data_channel
		self.data_channel = None
		self.active_channel = channel
		try:
			await self.reply(150, 'Ready for data transfer')
			_, err = await channel.accept()
			if err is not None:
				logger.debug('[FTP][%s] Data connection failed. Reason: %r' % (self.peer, err))
				code, text = 425, 'Can\'t open data connection'
			else:
				try:
					data = await channel.read_all()
				except Exception as e:
					logger.debug('[FTP][%s] Data connection broke. Reason: %r' % (self.peer, e))
					code, text = 426, 'Connection closed; transfer aborted'
				else:
					_, err = self.fileops.write_file(full_path, data)
					if err is not None:
						logger.debug('[FTP][%s] Write failed. Reason: %r' % (self.peer, err))
						code, text = 550, 'Failed to write file'
					else:
						code, text = 226, 'Transfer complete'
		finally:
			self.active_channel = None
			await channel.close()
		await self.reply(code, text)
		return True

	async def cmd_type(self, arg:str):
		await self.reply(200, 'Type set to I')
		return True

	async def cmd_syst(self, arg:str):
		await self.reply(215, 'UNIX Type: L8')
		return True

	async def cmd_noop(self, arg:str):
		await self.reply(200, 'NOOP ok')
		return True

	async def cmd_pasv(self, arg:str):
		await self.close_data_channel()
		ip = self.get_pasv_address()
		if ip is None:
			await self.reply(425, 'Can\'t enter passive mode')
			return True

		channel, err = await PassiveDataChannel.open(self.data_target, timeout = self.data_timeout, ports = self.pasv_ports)
		if err is not None:
			logger.debug('[FTP][%s] Passive listener failed. Reason: %r' % (self.peer, err))
			await self.reply(425, 'Can\'t enter passive mode')
			return True

		self.data_channel = channel
		reply = FTPReply.passive_mode(ip, channel.port)
		logger.debug('[FTP][%s] < %s' % (self.peer, reply))
		await self.connection.write(reply.to_bytes())
		return True

	async def cmd_quit(self, arg:str):
		await self.reply(221, 'Goodbye')
		return False
