import socket
import ipaddress


def get_local_ipv4():
	"""
	Returns the IPv4 address of the interface the default route goes through,
	None if the host has no usable IPv4 network.
	"""
	sock = None
	try:
		# connecting a UDP socket only selects a route, nothing is sent
		sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
		sock.connect(('10.254.254.254', 1))
		ip = sock.getsockname()[0]
		if ipaddress.IPv4Address(ip).is_unspecified:
			return None
		return ip
	except (OSError, ValueError):
		return None
	finally:
		if sock is not None:
			sock.close()

def is_usable_ipv4(ip:str):
	try:
		addr = ipaddress.ip_address(ip)
	except ValueError:
		return False
	return addr.version == 4 and not addr.is_unspecified
