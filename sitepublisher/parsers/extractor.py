"""Site configuration extractor.

Finds a site configuration object literal embedded in free-form model output
and materializes it into plain Python data.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from sitepublisher.parsers.object_literal import ObjectLiteralSyntaxError, parse_value_at
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_SECTIONS = ("site", "theme", "navigation")

_JSON_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class LiteralPattern:
    """An anchor pattern; each match ends right before the literal's opening brace.

    Patterns only locate where a literal starts. The literal parser decides
    where it ends, so no pattern scans past the opening brace's first key.
    """

    name: str
    regex: re.Pattern[str]


# Most specific first. The first pattern whose match materializes into a
# configuration wins, even if a later pattern would also match.
PATTERNS: tuple[LiteralPattern, ...] = (
    LiteralPattern(
        "typed_declaration",
        re.compile(r"const\s+siteConfig\s*:\s*SiteConfig\s*=\s*(?=\{)"),
    ),
    LiteralPattern(
        "declaration",
        re.compile(r"const\s+siteConfig\s*=\s*(?=\{)"),
    ),
    LiteralPattern(
        "default_export",
        re.compile(r"export\s+default\s+(?=\{)"),
    ),
    LiteralPattern(
        # Any object opening with a property; the sections are checked after parsing
        "required_sections",
        re.compile(r"(?=\{\s*[\"']?[A-Za-z_$][\w$]*[\"']?\s*:)"),
    ),
    LiteralPattern(
        "fenced_block",
        re.compile(
            r"```(?:typescript|javascript|ts|js|json)?\s*"
            r"(?:const\s+siteConfig\s*(?::\s*SiteConfig)?\s*=\s*)?(?=\{)"
        ),
    ),
)


def looks_template_escaped(text: str) -> bool:
    """Doubled opening braces never occur in a valid literal outside strings."""
    return "{{" in text


def collapse_doubled_braces(text: str) -> str:
    return text.replace("{{", "{").replace("}}", "}")


def has_required_sections(value: Any) -> bool:
    """Check that the three required sections exist and are non-empty mappings."""
    if not isinstance(value, dict):
        return False
    return all(isinstance(value.get(key), dict) and value[key] for key in REQUIRED_SECTIONS)


class ConfigExtractor:
    """Extracts a site configuration from model output.

    Each anchor is parsed at most once per pattern. Anchors that fall inside a
    literal already parsed for the same pattern reuse the objects recorded
    during that parse instead of parsing again, which keeps extraction linear
    in the length of the text.
    """

    def __init__(self, patterns: tuple[LiteralPattern, ...] = PATTERNS):
        self.patterns = patterns

    def extract(self, text: str) -> dict[str, Any] | None:
        """Return the first configuration found in ``text``, or ``None``.

        Never raises for malformed input.
        """
        found = self.find(text)
        return found[1] if found else None

    def find(self, text: str) -> tuple[str, dict[str, Any]] | None:
        """Like :meth:`extract` but also report which pattern matched."""
        if not isinstance(text, str) or "{" not in text:
            return None

        source = collapse_doubled_braces(text) if looks_template_escaped(text) else text

        for pattern in self.patterns:
            completed: dict[int, tuple[Any, int]] = {}
            covered = -1
            for match in pattern.regex.finditer(source):
                start = match.end()
                if start < covered:
                    known = completed.get(start)
                    if known is None:
                        continue
                    value = known[0]
                else:
                    value, covered = self._materialize(source, start, completed)
                if value is None:
                    continue
                if has_required_sections(value):
                    logger.debug("extractor.config_found", pattern=pattern.name)
                    return pattern.name, value
                logger.debug(
                    "extractor.candidate_rejected",
                    pattern=pattern.name,
                    reason="missing required sections",
                )

        logger.debug("extractor.no_config_found", length=len(text))
        return None

    def _materialize(
        self,
        source: str,
        start: int,
        completed: dict[int, tuple[Any, int]],
    ) -> tuple[Any | None, int]:
        """Parse the literal at ``start`` permissively, then as strict JSON.

        Returns the value (``None`` when both fail) and the offset the parse
        got to. Trailing terminators and ``export default`` wrappers are never
        consumed since both parsers stop at the end of the literal.
        """
        reached = start
        try:
            return parse_value_at(source, start, completed)
        except ObjectLiteralSyntaxError as e:
            logger.debug("extractor.literal_parse_failed", error=str(e))
            reached = e.position
        except RecursionError:
            logger.debug("extractor.literal_parse_failed", error="recursion limit")

        try:
            return _JSON_DECODER.raw_decode(source, start)
        except (ValueError, RecursionError):
            return None, reached


_default_extractor = ConfigExtractor()


def extract_site_config(text: str) -> dict[str, Any] | None:
    """Convenience function to extract a configuration from text."""
    return _default_extractor.extract(text)
