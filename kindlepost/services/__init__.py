"""
Packaging and delivery services for kindlepost.
"""

from .epub_converter import EpubConverter, escape_yaml
from .mailer import KindleMailer

__all__ = ["EpubConverter", "escape_yaml", "KindleMailer"]
