"""garp: publish static sites built with the garp toolchain."""

__version__ = "0.1.0"

from .config import find_project_root, load_config, load_config_model
from .errors import DeploymentError, GarpError

__all__ = [
    "find_project_root",
    "load_config",
    "load_config_model",
    "GarpError",
    "DeploymentError",
]
