"""
kindlepost: extract web articles and social posts and deliver them to a Kindle as EPUB.
"""

__version__ = "0.1.0"
