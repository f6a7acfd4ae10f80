"""Services for the site publisher."""

from sitepublisher.services.commit_message import compose_commit_message
from sitepublisher.services.vercel_client import VercelClient

__all__ = [
    "compose_commit_message",
    "VercelClient",
]
