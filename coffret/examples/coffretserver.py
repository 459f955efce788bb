import asyncio
import logging

from coffret import logger
from coffret.server import CoffretServer
from coffret._version import __banner__

def parse_port_range(text:str):
	start, sep, end = text.partition('-')
	if sep == '':
		return range(int(start), int(start) + 1)
	return range(int(start), int(end) + 1)

async def amain():
	try:
		import argparse
		parser = argparse.ArgumentParser(description='Shares a directory over FTP and HTTP at the same time')
		parser.add_argument('root', help='Directory to share')
		parser.add_argument('--listen-ip', default = '0.0.0.0', help='Listen IP')
		parser.add_argument('--ftp-port', type = int, default = 2121, help='FTP control port')
		parser.add_argument('--web-port', type = int, default = 8080, help='HTTP port')
		parser.add_argument('--idle-timeout', type = int, default = 300, help='Seconds of client inactivity before the connection is dropped')
		parser.add_argument('--data-timeout', type = int, default = 30, help='Seconds to wait for the client to open an FTP data connection')
		parser.add_argument('--no-login', action='store_true', help='Do not require USER/PASS before FTP commands')
		parser.add_argument('--pasv-address', help='IPv4 address to advertise in PASV replies')
		parser.add_argument('--pasv-ports', help='Port range for passive data connections, eg. 60000-60100')
		parser.add_argument('-v', '--verbose', action='count', default=0, help='Verbosity')
		parser.add_argument('-s', '--silent', action='store_true', help = 'dont print banner')

		args = parser.parse_args()

		if args.silent is False:
			print(__banner__)

		if args.verbose >=1:
			logger.setLevel(logging.DEBUG)

		pasv_ports = None
		if args.pasv_ports is not None:
			pasv_ports = parse_port_range(args.pasv_ports)

		server = CoffretServer(
			args.root,
			ftp_port = args.ftp_port,
			web_port = args.web_port,
			listen_ip = args.listen_ip,
			idle_timeout = args.idle_timeout,
			data_timeout = args.data_timeout,
			login_required = not args.no_login,
			pasv_address = args.pasv_address,
			pasv_ports = pasv_ports,
		)

		_, err = await server.start()
		if err is not None:
			raise err

		if args.silent is False:
			print('Sharing %s' % server.root_path)
			print('FTP : %s' % (server.get_ftp_url() or '%s:%s' % (args.listen_ip, server.ftp_port)))
			print('HTTP: %s' % (server.get_web_url() or '%s:%s' % (args.listen_ip, server.web_port)))

		await server.serve_forever()

	except Exception as e:
		print(e)

def main():
	try:
		asyncio.run(amain())
	except KeyboardInterrupt:
		pass

if __name__ == '__main__':
	main()
