import enum
import ipaddress


class FTPSessionState(enum.Enum):
	UNAUTHENTICATED = 1
	AUTHENTICATED = 2

class FTPCommand:
	def __init__(self, verb:str, argument:str = ''):
		self.verb = verb
		self.argument = argument

	@staticmethod
	def from_line(line:str):
		line = line.strip('\r\n')
		if line.strip() == '':
			return None
		verb, _, argument = line.lstrip().partition(' ')
		return FTPCommand(verb.upper(), argument.strip())

	def __str__(self):
		if self.verb == 'PASS':
			return 'PASS ****'
		if self.argument == '':
			return self.verb
		return '%s %s' % (self.verb, self.argument)

class FTPReply:
	def __init__(self, code:int, text:str):
		self.code = code
		self.text = text

	@staticmethod
	def passive_mode(ip:str, port:int):
		h = str(ipaddress.IPv4Address(ip)).split('.')
		nums = h + [str(port >> 8), str(port & 0xFF)]
		return FTPReply(227, 'Entering Passive Mode (%s)' % ','.join(nums))

	def to_bytes(self):
		return ('%03d %s\r\n' % (self.code, self.text)).encode('utf-8')

	def __str__(self):
		return '%03d %s' % (self.code, self.text)
