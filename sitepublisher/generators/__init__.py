"""File generators for the website template repository."""

from sitepublisher.generators.site_config import (
    read_site_config_module,
    render_site_config_module,
)

__all__ = [
    "read_site_config_module",
    "render_site_config_module",
]
