"""Deployment transports."""

from .base import DeploymentBackend
from .cloudflare import CloudflareBackend
from .git import GitBackend
from .netlify import NetlifyBackend
from .rsync import RsyncBackend

__all__ = [
    "DeploymentBackend",
    "GitBackend",
    "RsyncBackend",
    "NetlifyBackend",
    "CloudflareBackend",
]
