import enum
import ipaddress


class ListenProto(enum.Enum):
	FTP = 1
	HTTP = 2
	FTP_DATA = 3

listenproto_schemes = {
	ListenProto.FTP : 'ftp',
	ListenProto.HTTP : 'http',
	ListenProto.FTP_DATA : 'ftp-data',
}

class ListenTarget:
	def __init__(self, ip:str, port:int, protocol:ListenProto, timeout:int = 300, hostname:str = None):
		self.hostname = hostname
		self.port = port
		self.protocol = protocol
		self.timeout = timeout

		try:
			ipaddress.ip_address(ip)
			self.ip = ip
		except ValueError:
			if ip is not None:
				self.hostname = ip
			self.ip = None

		if self.ip is None and self.hostname is None:
			raise Exception('Both IP and Hostname can\'t be none!')

	def get_newtarget(self, ip, port, protocol:ListenProto = None, timeout:int = None):
		if protocol is None:
			protocol = self.protocol
		if timeout is None:
			timeout = self.timeout
		return ListenTarget(ip, port, protocol, timeout = timeout)

	def get_ip_or_hostname(self):
		if self.ip is not None:
			return self.ip
		return self.hostname

	def get_hostname_or_ip(self):
		if self.hostname is not None:
			return self.hostname
		return self.ip

	def is_wildcard(self):
		return self.get_ip_or_hostname() in ['', '0.0.0.0', '::', '::0']

	def get_url(self, ip:str = None, port:int = None):
		if ip is None:
			ip = self.get_hostname_or_ip()
		if port is None:
			port = self.port
		return '%s://%s:%s' % (listenproto_schemes[self.protocol], ip, port)

	def __str__(self):
		t = '==== ListenTarget ====\r\n'
		for k in self.__dict__:
			t += '%s: %s\r\n' % (k, self.__dict__[k])
		return t
