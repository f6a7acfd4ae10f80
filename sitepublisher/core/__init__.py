"""Core functionality for the site publisher."""

from sitepublisher.core.detection import ConfigDetector, get_config_detector
from sitepublisher.core.exceptions import (
    AuthError,
    ConfigValidationError,
    ErrorKind,
    SitePublisherError,
    StructureMismatchError,
    TransportError,
    UnsupportedProviderError,
)
from sitepublisher.core.publisher import RepositoryPublisher, build_remote_url
from sitepublisher.core.tracker import (
    DeploymentStore,
    DeploymentTracker,
    InMemoryDeploymentStore,
    normalize_status,
    verify_signature,
)
from sitepublisher.core.validation import ValidationResult, validate_site_config

__all__ = [
    "AuthError",
    "ConfigValidationError",
    "ErrorKind",
    "SitePublisherError",
    "StructureMismatchError",
    "TransportError",
    "UnsupportedProviderError",
    "ConfigDetector",
    "get_config_detector",
    "RepositoryPublisher",
    "build_remote_url",
    "DeploymentStore",
    "DeploymentTracker",
    "InMemoryDeploymentStore",
    "normalize_status",
    "verify_signature",
    "ValidationResult",
    "validate_site_config",
]
