"""Site configuration module generator.

Renders a configuration into the TypeScript module the website template reads
(``src/config/siteConfig.ts``) and reads such a module back.
"""

import json
import re
from typing import Any

from sitepublisher.parsers.object_literal import ObjectLiteralSyntaxError, parse_value_at

SITE_CONFIG_IMPORT = 'import { SiteConfig } from "@/types/siteConfig";'
SITE_CONFIG_DECLARATION = "const siteConfig: SiteConfig = "
SITE_CONFIG_EXPORT = "export default siteConfig;"

_DECLARATION_RE = re.compile(r"const\s+siteConfig\s*(?::\s*SiteConfig\s*)?=\s*(?=\{)")


def render_site_config_module(config: dict[str, Any]) -> str:
    """Render the module text.

    Output is byte-for-byte deterministic for a given configuration: keys keep
    their insertion order and nothing time-dependent is emitted, so publishing
    an unchanged configuration yields no diff.
    """
    body = json.dumps(config, indent=2, ensure_ascii=False)
    return (
        f"{SITE_CONFIG_IMPORT}\n"
        f"\n"
        f"{SITE_CONFIG_DECLARATION}{body};\n"
        f"\n"
        f"{SITE_CONFIG_EXPORT}\n"
    )


def read_site_config_module(text: str) -> dict[str, Any]:
    """Parse the configuration object back out of a rendered module."""
    match = _DECLARATION_RE.search(text)
    if not match:
        raise ValueError("No siteConfig declaration found in module")
    try:
        value, _ = parse_value_at(text, match.end())
    except ObjectLiteralSyntaxError as e:
        raise ValueError(f"Malformed siteConfig declaration: {e}") from e
    if not isinstance(value, dict):
        raise ValueError("siteConfig declaration is not an object")
    return value
