"""Deployment orchestration for built sites."""

from .backends import (
    CloudflareBackend,
    DeploymentBackend,
    GitBackend,
    NetlifyBackend,
    RsyncBackend,
)
from .environments import EnvironmentStore, parse_config_values
from .history import DeploymentHistory, generate_deployment_id
from .manager import DeploymentManager
from .models import (
    DeploymentConfig,
    DeploymentRecord,
    DeploymentResult,
    DeploymentStrategy,
    EnvironmentConfig,
)
from .validation import (
    IssueCategory,
    IssueType,
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
    get_default_validation_options,
    validate_deployment,
)

__all__ = [
    "DeploymentManager",
    "DeploymentConfig",
    "DeploymentResult",
    "DeploymentRecord",
    "DeploymentStrategy",
    "EnvironmentConfig",
    "DeploymentHistory",
    "EnvironmentStore",
    "DeploymentBackend",
    "GitBackend",
    "RsyncBackend",
    "NetlifyBackend",
    "CloudflareBackend",
    "ValidationOptions",
    "ValidationResult",
    "ValidationIssue",
    "IssueType",
    "IssueCategory",
    "validate_deployment",
    "get_default_validation_options",
    "generate_deployment_id",
    "parse_config_values",
]
