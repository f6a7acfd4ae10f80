"""Site configuration endpoints: extract, validate, detect and publish."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from sitepublisher.api.deps import DetectorDep, PublisherDep
from sitepublisher.core.exceptions import ErrorKind, SitePublisherError
from sitepublisher.core.publisher import RepositoryPublisher
from sitepublisher.core.validation import missing_sections, validate_site_config
from sitepublisher.models.site_config import (
    DetectConfigRequest,
    DetectConfigResponse,
    ExtractConfigRequest,
    ExtractConfigResponse,
    PublishResult,
    UpdateConfigRequest,
    ValidateConfigRequest,
    ValidateConfigResponse,
)
from sitepublisher.parsers.extractor import ConfigExtractor
from sitepublisher.services.commit_message import compose_commit_message
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

_extractor = ConfigExtractor()


def _failure(status_code: int, result: PublishResult) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.to_wire())


def _publish_failure(exc: SitePublisherError) -> PublishResult:
    return PublishResult(
        success=False,
        error="Repository update failed",
        error_kind=exc.kind.value,
        message=(
            exc.message
            if exc.is_client_error
            else "An internal server error occurred while updating the repository"
        ),
        details=exc.message,
    )


async def _publish(
    publisher: RepositoryPublisher,
    config: dict[str, Any],
    commit_message: str | None,
) -> tuple[int, PublishResult]:
    try:
        result = await publisher.publish(config, commit_message)
    except SitePublisherError as e:
        logger.error("update_config.failed", error=e.message, kind=e.kind.value)
        return e.status_code, _publish_failure(e)
    return status.HTTP_200_OK, result


@router.post(
    "/update-config",
    response_model=PublishResult,
    response_model_exclude_none=True,
    summary="Publish a site configuration",
    description="Validate a configuration and push it to the website template repository.",
)
async def update_config(data: UpdateConfigRequest, publisher: PublisherDep) -> Any:
    config = data.config_object
    if not config:
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            PublishResult(
                success=False,
                error="Configuration object is required",
                error_kind=ErrorKind.VALIDATION.value,
                message="Please provide a valid configuration object in the request body",
            ),
        )

    missing = missing_sections(config)
    if missing:
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            PublishResult(
                success=False,
                error="Invalid configuration structure",
                error_kind=ErrorKind.VALIDATION.value,
                message="Configuration must include site, theme, and navigation properties",
                details=f"Missing properties: {', '.join(missing)}",
            ),
        )

    validation = validate_site_config(config)
    if not validation.is_valid:
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            PublishResult(
                success=False,
                error="Invalid configuration",
                error_kind=ErrorKind.VALIDATION.value,
                message="; ".join(validation.errors),
                details=validation.errors,
            ),
        )

    logger.info("update_config.started", commit_message=data.commit_message)
    status_code, result = await _publish(publisher, config, data.commit_message)
    if status_code != status.HTTP_200_OK:
        return _failure(status_code, result)
    return result


@router.post(
    "/validate-config",
    response_model=ValidateConfigResponse,
    summary="Validate a site configuration",
)
async def validate_config(data: ValidateConfigRequest) -> ValidateConfigResponse:
    """Run validation without publishing."""
    result = validate_site_config(data.config_object)
    return ValidateConfigResponse(is_valid=result.is_valid, errors=result.errors)


@router.post(
    "/extract-config",
    response_model=ExtractConfigResponse,
    response_model_exclude_none=True,
    summary="Extract a configuration from free text",
)
async def extract_config(data: ExtractConfigRequest) -> ExtractConfigResponse:
    found = _extractor.find(data.text)
    if found is None:
        return ExtractConfigResponse(found=False)
    pattern, config = found
    return ExtractConfigResponse(found=True, pattern=pattern, config_object=config)


@router.post(
    "/detect-config",
    response_model=DetectConfigResponse,
    response_model_exclude_none=True,
    summary="Detect configurations in chat messages",
    description=(
        "Scan assistant messages for configurations not seen before. With autoPublish, "
        "the newest detected configuration is published with a diff-aware commit message."
    ),
)
async def detect_config(
    data: DetectConfigRequest,
    detector: DetectorDep,
    publisher: PublisherDep,
) -> DetectConfigResponse:
    new_configs = detector.scan(data.messages)

    publish_result: PublishResult | None = None
    if data.auto_publish and new_configs:
        latest = new_configs[-1]
        validation = validate_site_config(latest.config)
        if not validation.is_valid:
            publish_result = PublishResult(
                success=False,
                error="Invalid configuration",
                error_kind=ErrorKind.VALIDATION.value,
                message="Detected configuration failed validation",
                details=validation.errors,
            )
        else:
            previous = detector.previous_for(latest)
            commit_message = compose_commit_message(
                latest.config, previous.config if previous else None
            )
            _, publish_result = await _publish(publisher, latest.config, commit_message)

    return DetectConfigResponse(
        detected=new_configs,
        latest=detector.latest,
        config_count=detector.config_count,
        publish_result=publish_result,
    )
