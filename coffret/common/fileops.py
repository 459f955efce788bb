import os
import shutil
import datetime
import posixpath

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

class PathEscapeError(Exception):
	def __init__(self, path, message = 'Path points outside of the served directory'):
		self.path = path
		self.message = message
		super().__init__('%s: %s' % (self.message, self.path))


class DirectoryEntry:
	def __init__(self, name:str, path:str, is_directory:bool, size:int, modified:float):
		self.name = name
		self.path = path
		self.is_directory = is_directory
		self.size = size
		self.modified = modified

	def get_modified_iso(self):
		dt = datetime.datetime.fromtimestamp(self.modified, tz=datetime.timezone.utc)
		return dt.strftime('%Y-%m-%dT%H:%M:%SZ')

	def to_dict(self):
		return {
			'name' : self.name,
			'path' : self.path,
			'isDirectory' : self.is_directory,
			'size' : self.size,
			'modified' : self.get_modified_iso(),
		}

	def to_list_line(self):
		"""Formats the entry the way `ls -l` does"""
		dt = datetime.datetime.fromtimestamp(self.modified)
		timestamp = '%s %02d %02d:%02d' % (MONTHS[dt.month - 1], dt.day, dt.hour, dt.minute)
		permissions = 'drwxr-xr-x' if self.is_directory is True else '-rw-r--r--'
		return '%s 1 user user %s %s %s\r\n' % (permissions, self.size, timestamp, self.name)

	def __str__(self):
		t = '==== DirectoryEntry ====\r\n'
		for k in self.__dict__:
			t += '%s: %s\r\n' % (k, self.__dict__[k])
		return t


class FileOps:
	"""
	Synchronous filesystem access confined to a single root directory.
	Every operation returns a (result, error) tuple instead of raising.
	"""
	def __init__(self, root_path:str):
		self.root_path = os.path.abspath(root_path)

	@staticmethod
	def normalize(path:str):
		"""Turns a client supplied path into an absolute virtual path, '..' never climbs above '/'"""
		if path is None:
			path = ''
		path = path.replace('\\', '/')
		path = posixpath.normpath('/' + path)
		if path.startswith('//'):
			path = '/' + path.lstrip('/')
		return path

	def resolve(self, path:str):
		try:
			if path is not None and '\x00' in path:
				raise PathEscapeError(path, 'Path contains a NUL character')
			virtual_path = FileOps.normalize(path)
			full_path = os.path.abspath(os.path.join(self.root_path, *[x for x in virtual_path.split('/') if x != '']))
			if os.path.commonpath([full_path, self.root_path]) != self.root_path:
				raise PathEscapeError(path)
			return full_path, None
		except Exception as e:
			return None, e

	def to_relative(self, full_path:str):
		rel = os.path.relpath(full_path, self.root_path)
		if rel == '.':
			return '/'
		return '/' + rel.replace(os.sep, '/')

	def is_dir(self, full_path:str):
		return os.path.isdir(full_path)

	def is_file(self, full_path:str):
		return os.path.isfile(full_path)

	def exists(self, full_path:str):
		return os.path.exists(full_path)

	def list_directory(self, full_path:str):
		try:
			entries = []
			with os.scandir(full_path) as it:
				for dentry in it:
					try:
						st = dentry.stat()
						is_directory = dentry.is_dir()
					except OSError:
						# dangling symlink
						st = dentry.stat(follow_symlinks=False)
						is_directory = False
					entries.append(DirectoryEntry(
						dentry.name,
						self.to_relative(dentry.path),
						is_directory,
						0 if is_directory else st.st_size,
						st.st_mtime,
					))
			entries.sort(key=lambda x: x.name.lower())
			return entries, None
		except Exception as e:
			return None, e

	def get_size(self, full_path:str):
		try:
			return os.path.getsize(full_path), None
		except Exception as e:
			return None, e

	def iter_file(self, full_path:str, chunk_size:int = 512*1024):
		"""Yields the file content in chunks, raises OSError on failure"""
		with open(full_path, 'rb') as f:
			while True:
				chunk = f.read(chunk_size)
				if not chunk:
					break
				yield chunk

	def write_file(self, full_path:str, data:bytes, make_parents:bool = False):
		try:
			if make_parents is True:
				os.makedirs(os.path.dirname(full_path), exist_ok=True)
			with open(full_path, 'wb') as f:
				f.write(data)
			return True, None
		except Exception as e:
			return None, e

	def make_directory(self, full_path:str):
		try:
			os.makedirs(full_path, exist_ok=True)
			return True, None
		except Exception as e:
			return None, e

	def delete(self, full_path:str):
		try:
			if full_path == self.root_path:
				raise PermissionError('Refusing to delete the served directory')
			if os.path.isdir(full_path) and not os.path.islink(full_path):
				shutil.rmtree(full_path)
			else:
				os.remove(full_path)
			return True, None
		except Exception as e:
			return None, e
