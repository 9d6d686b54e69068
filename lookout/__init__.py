"""lookout — report new, changed and deleted files on a remote FTP/SFTP drop"""
__version__ = "1.0.0"
