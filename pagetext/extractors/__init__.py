"""Extraction sub-package: content location, cleaning and metadata chains."""

from .cleaner import clean_content, flatten_text
from .main_content import locate_main_content
from .markdown import tag_to_markdown
from .metadata import extract_metadata
from .strategies import Strategy, first_qualifying

__all__ = [
    "clean_content",
    "extract_metadata",
    "first_qualifying",
    "flatten_text",
    "locate_main_content",
    "Strategy",
    "tag_to_markdown",
]
