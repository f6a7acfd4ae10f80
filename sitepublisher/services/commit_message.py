"""Commit message composition for configuration updates."""

import json
from datetime import date
from typing import Any, Callable


def _site_title(config: dict[str, Any]) -> Any:
    return (config.get("site") or {}).get("title")


def _primary_color(config: dict[str, Any]) -> Any:
    return (config.get("theme") or {}).get("primaryColor")


def _navigation_menu(config: dict[str, Any]) -> Any:
    return (config.get("navigation") or {}).get("menu")


def _products(config: dict[str, Any]) -> Any:
    return config.get("products")


# Order here is the order areas are listed in the message.
TRACKED_AREAS: tuple[tuple[str, Callable[[dict[str, Any]], Any]], ...] = (
    ("site title", _site_title),
    ("theme colors", _primary_color),
    ("navigation", _navigation_menu),
    ("products", _products),
)


def _serialized(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def changed_areas(current: dict[str, Any], previous: dict[str, Any]) -> list[str]:
    """List tracked areas whose serialized form differs.

    Values are compared as they would be written to the config file, so key
    order matters and ``true`` differs from ``1``.
    """
    return [
        name
        for name, getter in TRACKED_AREAS
        if _serialized(getter(current)) != _serialized(getter(previous))
    ]


def compose_commit_message(
    current: dict[str, Any],
    previous: dict[str, Any] | None = None,
    *,
    today: date | None = None,
) -> str:
    """Build a conventional-commit style message describing what changed."""
    stamp = (today or date.today()).isoformat()

    if previous is None:
        return f"feat: Update site configuration ({stamp})"

    changes = changed_areas(current, previous)
    if changes:
        return f"feat: Update {', '.join(changes)} ({stamp})"

    return f"chore: Minor configuration updates ({stamp})"
