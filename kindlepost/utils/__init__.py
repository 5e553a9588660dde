"""
Utility modules for kindlepost.
"""

from .logging_config import setup_logging, get_logger
from .file_utils import sanitize_filename, ensure_dir, get_input_type
from .html_utils import replace_youtube_embeds, fix_picture_sources, repair_markup
from .errors import (
    KindlePostError,
    NetworkError,
    ParsingError,
    ExtractionError,
    NotFoundError,
    ConversionError,
    ConfigurationError,
    DeliveryError,
    AuthenticationError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "sanitize_filename",
    "ensure_dir",
    "get_input_type",
    "replace_youtube_embeds",
    "fix_picture_sources",
    "repair_markup",
    "KindlePostError",
    "NetworkError",
    "ParsingError",
    "ExtractionError",
    "NotFoundError",
    "ConversionError",
    "ConfigurationError",
    "DeliveryError",
    "AuthenticationError",
]
