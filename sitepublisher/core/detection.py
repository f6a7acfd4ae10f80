"""Configuration detection across a chat conversation."""

from collections.abc import Iterable
from functools import lru_cache

from sitepublisher.models.site_config import ChatMessage, DetectedConfig
from sitepublisher.parsers.extractor import ConfigExtractor
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)


class ConfigDetector:
    """Keeps an append-only log of configurations found in assistant messages.

    A message that has already produced a configuration is never scanned
    again. Messages that produced nothing are rescanned on the next call,
    since a streamed message may not be complete yet.

    Note: For production, this should be keyed per conversation.
    """

    def __init__(self, extractor: ConfigExtractor | None = None):
        self.extractor = extractor or ConfigExtractor()
        self._detected: list[DetectedConfig] = []
        self._seen_message_ids: set[str] = set()

    @property
    def detected(self) -> tuple[DetectedConfig, ...]:
        return tuple(self._detected)

    @property
    def latest(self) -> DetectedConfig | None:
        return self._detected[-1] if self._detected else None

    @property
    def has_configs(self) -> bool:
        return bool(self._detected)

    @property
    def config_count(self) -> int:
        return len(self._detected)

    def scan(self, messages: Iterable[ChatMessage]) -> list[DetectedConfig]:
        """Extract configurations from unseen assistant messages, in message order."""
        new_configs: list[DetectedConfig] = []
        for message in messages:
            if message.role != "assistant" or message.id in self._seen_message_ids:
                continue

            config = self.extractor.extract(message.content)
            if config is None:
                continue

            detected = DetectedConfig(config=config, source_message_id=message.id)
            self._seen_message_ids.add(message.id)
            self._detected.append(detected)
            new_configs.append(detected)
            logger.info("detector.config_detected", message_id=message.id, count=len(self._detected))

        return new_configs

    def previous_for(self, detected: DetectedConfig) -> DetectedConfig | None:
        """The configuration detected immediately before ``detected``, if any."""
        for index, entry in enumerate(self._detected):
            if entry.source_message_id == detected.source_message_id:
                return self._detected[index - 1] if index > 0 else None
        return None

    def clear(self) -> None:
        self._detected.clear()
        self._seen_message_ids.clear()


@lru_cache
def get_config_detector() -> ConfigDetector:
    """Get the config detector singleton."""
    return ConfigDetector()
