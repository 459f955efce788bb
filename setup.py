from setuptools import setup, find_packages
import re

VERSIONFILE="coffret/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))


setup(
	# Application name:
	name="coffret",

	# Version number (initial):
	version=verstr,

	# Packages
	packages=find_packages(exclude=["coffret.test"]),

	# Include additional files into the package
	include_package_data=True,

	zip_safe = True,
	#
	description="Concurrent FTP and HTTP file sharing server over a single directory",
	long_description="",

	python_requires='>=3.7',
	classifiers=[
		"Programming Language :: Python :: 3.7",
		"License :: OSI Approved :: MIT License",
		"Operating System :: OS Independent",
	],
	install_requires=[
	],
	extras_require={
		'test': [
			'pytest',
			'h11>=0.14.0',
		],
	},
	entry_points={
		'console_scripts': [
			'coffret-server = coffret.examples.coffretserver:main',
		],
	}
)
