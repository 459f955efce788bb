import os
import json
import mimetypes
import urllib.parse
from coffret import logger
from coffret.common.connection import Connection
from coffret.common.fileops import FileOps, PathEscapeError
from coffret.protocol.http import HTTPRequest, HTTPResponse, get_reason
from coffret.protocol.multipart import MultipartParser, MultipartError
from coffret.protocol.server.http.webinterface import INDEX_HTML


def sanitize_filename(filename:str):
	"""Keeps only the last path component of an uploaded file name, None if nothing usable is left"""
	name = filename.replace('\\', '/').split('/')[-1].strip()
	if name in ['', '.', '..'] or '\x00' in name:
		return None
	return name

def error_status(err:Exception, missing:int = 404):
	if isinstance(err, (FileNotFoundError, NotADirectoryError)):
		return missing
	if isinstance(err, PathEscapeError):
		return 400
	return 500


class HTTPSession:
	"""
	Serves one HTTP connection.
	Requests are handled in the order they arrived, a response is fully written
	before the next buffered request is looked at.
	"""
	def __init__(self, connection:Connection, fileops:FileOps, web_interface:bytes = None):
		self.connection = connection
		self.fileops = fileops
		self.web_interface = web_interface if web_interface is not None else INDEX_HTML
		self.peer = connection.get_peer_str()

	async def run(self):
		try:
			logger.debug('[HTTP][%s] Client connected' % self.peer)
			async for request in self.connection.read():
				if request is None:
					break
				if await self.handle_request(request) is False:
					break
		except Exception as e:
			logger.debug('[HTTP][%s] Session ended. Reason: %r' % (self.peer, e))
		finally:
			await self.close()
			logger.debug('[HTTP][%s] Client disconnected' % self.peer)

	async def close(self):
		await self.connection.close()

	async def terminate(self):
		self.connection.abort()

	async def handle_request(self, request:HTTPRequest):
		"""Answers one request, returns False when the connection has to be closed afterwards"""
		if request.error is not None:
			logger.debug('[HTTP][%s] Bad request: %s' % (self.peer, request.error))
			await self.send_response(HTTPResponse.from_text(400, 'Bad Request'))
			return False

		logger.debug('[HTTP][%s] %s %s' % (self.peer, request.method, request.uri))
		func = None
		if request.method.isalpha():
			func = getattr(self, 'do_%s' % request.method, None)
		if func is None:
			response = HTTPResponse.from_text(405, 'Method Not Allowed')
		else:
			try:
				response = await func(request)
			except Exception as e:
				logger.exception('[HTTP][%s] Handler failed for %s %s' % (self.peer, request.method, request.uri))
				response = HTTPResponse.from_text(500, 'Internal Server Error')

		if request.wants_close() is True:
			response.close_connection = True
		await self.send_response(response)
		logger.debug('[HTTP][%s] %s' % (self.peer, response))
		return response.close_connection is False

	async def send_response(self, response:HTTPResponse):
		if response.body_iter is None:
			await self.connection.write(response.to_bytes())
			return
		await self.connection.write(response.get_header_bytes())
		for chunk in response.body_iter:
			await self.connection.write(chunk)

	async def do_OPTIONS(self, request:HTTPRequest):
		return HTTPResponse(200, b'')

	async def do_GET(self, request:HTTPRequest):
		path = request.path
		if path in ['/', '/index.html']:
			return HTTPResponse(200, self.web_interface, 'text/html; charset=utf-8')
		if path == '/api/files' or path.startswith('/api/files/'):
			return self.list_files(urllib.parse.unquote(path[len('/api/files'):]))
		if path.startswith('/download/'):
			return self.download_file(urllib.parse.unquote(path[len('/download/'):]))
		return HTTPResponse.from_text(404, 'Not Found')

	async def do_POST(self, request:HTTPRequest):
		path = request.path
		if path == '/api/upload':
			return self.upload_files(request)
		if path == '/api/mkdir':
			return self.create_directory(request)
		return HTTPResponse.from_text(404, 'Not Found')

	async def do_DELETE(self, request:HTTPRequest):
		path = request.path
		if path.startswith('/api/delete/'):
			return self.delete_path(urllib.parse.unquote(path[len('/api/delete/'):]))
		return HTTPResponse.from_text(404, 'Not Found')

	def list_files(self, rel_path:str):
		full_path, err = self.fileops.resolve(rel_path)
		if err is None:
			entries, err = self.fileops.list_directory(full_path)
		if err is not None:
			logger.debug('[HTTP][%s] Listing %r failed. Reason: %r' % (self.peer, rel_path, err))
			status = error_status(err)
			return HTTPResponse.from_text(status, get_reason(status))

		body = json.dumps([entry.to_dict() for entry in entries]).encode('utf-8')
		return HTTPResponse(200, body, 'application/json')

	def download_file(self, rel_path:str):
		full_path, err = self.fileops.resolve(rel_path)
		if err is not None:
			return HTTPResponse.from_text(400, 'Invalid path')
		if self.fileops.exists(full_path) is False:
			return HTTPResponse.from_text(404, 'File Not Found')
		if self.fileops.is_file(full_path) is False:
			return HTTPResponse.from_text(400, 'Not a file')

		size, err = self.fileops.get_size(full_path)
		if err is not None:
			return HTTPResponse.from_text(500, 'Internal Server Error')

		content_type, _ = mimetypes.guess_type(full_path)
		response = HTTPResponse.attachment(
			os.path.basename(full_path),
			size,
			content_type or 'application/octet-stream'
		)
		response.body_iter = self.fileops.iter_file(full_path)
		return response

	def upload_files(self, request:HTTPRequest):
		try:
			parser = MultipartParser.from_content_type(request.get_header('Content-Type'))
		except MultipartError as e:
			logger.debug('[HTTP][%s] Upload rejected. Reason: %s' % (self.peer, e))
			return HTTPResponse.from_text(400, 'Invalid boundary')

		form = parser.parse(request.data)
		if len(form.files) == 0:
			return HTTPResponse.from_text(400, 'No file found in request')

		target_dir, err = self.fileops.resolve(form.target_path or '')
		if err is not None:
			return HTTPResponse.from_text(400, 'Invalid path')

		to_write = []
		for upload in form.files:
			filename = sanitize_filename(upload.filename)
			if filename is None:
				return HTTPResponse.from_text(400, 'Invalid filename')
			to_write.append((os.path.join(target_dir, filename), upload.data))

		for full_path, data in to_write:
			_, err = self.fileops.write_file(full_path, data, make_parents = True)
			if err is not None:
				logger.debug('[HTTP][%s] Saving %r failed. Reason: %r' % (self.peer, full_path, err))
				return HTTPResponse.from_text(500, 'Failed to save file')
			logger.debug('[HTTP][%s] Stored %s (%s bytes)' % (self.peer, full_path, len(data)))

		if len(to_write) == 1:
			return HTTPResponse.from_text(200, 'File uploaded successfully')
		return HTTPResponse.from_text(200, '%s files uploaded successfully' % len(to_write))

	def create_directory(self, request:HTTPRequest):
		try:
			params = json.loads(request.get_text())
		except ValueError:
			return HTTPResponse.from_text(400, 'Invalid request')

		if not isinstance(params, dict):
			return HTTPResponse.from_text(400, 'Invalid request')
		name = params.get('name')
		parent = params.get('path') or ''
		if not isinstance(name, str) or not isinstance(parent, str):
			return HTTPResponse.from_text(400, 'Invalid request')
		name = name.strip()
		if name in ['', '.', '..'] or '/' in name or '\\' in name:
			return HTTPResponse.from_text(400, 'Invalid directory name')

		full_path, err = self.fileops.resolve(parent + '/' + name)
		if err is not None:
			return HTTPResponse.from_text(400, 'Invalid path')

		_, err = self.fileops.make_directory(full_path)
		if err is not None:
			logger.debug('[HTTP][%s] mkdir %r failed. Reason: %r' % (self.peer, full_path, err))
			return HTTPResponse.from_text(500, 'Failed to create directory')
		return HTTPResponse.from_text(200, 'Directory created successfully')

	def delete_path(self, rel_path:str):
		full_path, err = self.fileops.resolve(rel_path)
		if err is not None:
			return HTTPResponse.from_text(400, 'Invalid path')
		if full_path == self.fileops.root_path:
			return HTTPResponse.from_text(403, 'Cannot delete the root directory')
		if self.fileops.exists(full_path) is False and os.path.islink(full_path) is False:
			return HTTPResponse.from_text(404, 'File Not Found')

		_, err = self.fileops.delete(full_path)
		if err is not None:
			logger.debug('[HTTP][%s] Delete %r failed. Reason: %r' % (self.peer, full_path, err))
			return HTTPResponse.from_text(error_status(err), 'Failed to delete file')
		return HTTPResponse.from_text(200, 'File deleted successfully')
