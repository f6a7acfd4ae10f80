"""Parsers for model output."""

from sitepublisher.parsers.extractor import ConfigExtractor, extract_site_config
from sitepublisher.parsers.object_literal import (
    ObjectLiteralParser,
    ObjectLiteralSyntaxError,
    parse_object_literal,
)

__all__ = [
    "ConfigExtractor",
    "extract_site_config",
    "ObjectLiteralParser",
    "ObjectLiteralSyntaxError",
    "parse_object_literal",
]
