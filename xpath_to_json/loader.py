"""Load extraction configurations and HTML documents."""

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog
from bs4 import BeautifulSoup, UnicodeDammit
from pydantic import ValidationError

from .errors import ConfigurationInvalid
from .models import Configuration

logger = structlog.get_logger(__name__).bind(service="extractor")

META_CHARSET = re.compile(rb"""charset\s*=\s*["']?\s*([A-Za-z0-9_.:-]+)""", re.IGNORECASE)

# Declared charsets that are decoded as windows-1252
WINDOWS_1252_ALIASES = {"windows-1252", "cp1252", "iso-8859-1", "latin1", "latin-1"}


def parse_configuration(data: Dict[str, Any]) -> Configuration:
    """
    Validate a configuration mapping.

    Args:
        data: Decoded configuration JSON

    Returns:
        Configuration model

    Raises:
        ConfigurationInvalid: If the mapping does not match the rule schema
    """
    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationInvalid(f"Invalid configuration: {e}") from e


def load_configuration(path: Union[str, Path]) -> Configuration:
    """Read and validate a JSON configuration file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationInvalid(f"Failed to parse configuration JSON {path}: {e}") from e

    config = parse_configuration(data)
    logger.info("configuration_loaded", path=str(path), config_name=config.name, rules=len(config.rules))
    return config


def decode_html(raw: bytes, default_encoding: str = "utf-8") -> str:
    """
    Decode HTML bytes, honouring a declared charset.

    Args:
        raw: Document bytes
        default_encoding: Encoding used when nothing is declared

    Returns:
        Decoded markup
    """
    declared = _declared_charset(raw)
    if declared in WINDOWS_1252_ALIASES:
        declared = "windows-1252"

    candidates = [encoding for encoding in (declared, default_encoding) if encoding]
    dammit = UnicodeDammit(raw, known_definite_encodings=candidates, is_html=True)
    if dammit.unicode_markup is None:
        logger.warning("html_decode_fallback", declared=declared)
        return raw.decode(default_encoding, errors="replace")

    logger.debug("html_decoded", declared=declared, encoding=dammit.original_encoding)
    return dammit.unicode_markup


def read_html_file(path: Union[str, Path], default_encoding: str = "utf-8") -> str:
    """Read an HTML file from disk and decode it."""
    raw = Path(path).read_bytes()
    return decode_html(raw, default_encoding)


def parse_document(html: str, backend: str = "lxml") -> BeautifulSoup:
    """Parse markup into the tree rules are evaluated against."""
    return BeautifulSoup(html, backend)


def _declared_charset(raw: bytes) -> Optional[str]:
    match = META_CHARSET.search(raw[:4096])
    if not match:
        return None
    return match.group(1).decode("ascii", errors="ignore").lower()
