"""Site configuration validation."""

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
REQUIRED_SECTIONS = ("site", "theme", "navigation")


class ValidationResult(BaseModel):
    """Outcome of validating a configuration."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_site_config(config: Any) -> ValidationResult:
    """Validate a configuration, collecting every error rather than stopping at the first."""
    errors: list[str] = []

    if not isinstance(config, Mapping):
        return ValidationResult(is_valid=False, errors=["Configuration must be a valid object"])

    for section in REQUIRED_SECTIONS:
        if not isinstance(config.get(section), Mapping):
            errors.append(f"Missing required property: {section}")

    site = config.get("site")
    if isinstance(site, Mapping):
        if not _is_non_empty_string(site.get("title")):
            errors.append("Site title is required")
        if not _is_non_empty_string(site.get("description")):
            errors.append("Site description is required")

    theme = config.get("theme")
    if isinstance(theme, Mapping):
        primary = theme.get("primaryColor")
        if not primary:
            errors.append("Primary color is required")
        elif not isinstance(primary, str) or not HEX_COLOR_PATTERN.fullmatch(primary):
            errors.append("Primary color must be a valid hex color (e.g., #FF0000)")

    navigation = config.get("navigation")
    if isinstance(navigation, Mapping):
        menu = navigation.get("menu")
        if not isinstance(menu, list) or not menu:
            errors.append("Navigation menu must be a non-empty array")
        else:
            for index, item in enumerate(menu):
                if not isinstance(item, Mapping) or not (
                    _is_non_empty_string(item.get("label")) and _is_non_empty_string(item.get("href"))
                ):
                    errors.append(f"Navigation menu item {index} must have a label and href")

    return ValidationResult(is_valid=not errors, errors=errors)


def missing_sections(config: Any) -> list[str]:
    """Return the required sections absent from ``config`` (all of them if it is not a mapping)."""
    if not isinstance(config, Mapping):
        return list(REQUIRED_SECTIONS)
    return [section for section in REQUIRED_SECTIONS if not isinstance(config.get(section), Mapping)]
