"""API routes."""

from fastapi import APIRouter

from sitepublisher.api.routes import deployments, health, site_config

router = APIRouter()

# Include sub-routers
router.include_router(health.router, tags=["health"])
router.include_router(site_config.router, tags=["site-config"])
router.include_router(deployments.router, tags=["deployments"])
