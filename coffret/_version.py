
__version__ = "0.1.0"
__banner__ = \
"""
# coffret %s
# FTP + HTTP file sharing server
""" % __version__
