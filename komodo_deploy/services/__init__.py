"""Services for komodo-deploy."""

from komodo_deploy.services.komodo import (
    ControlPlane,
    KomodoClient,
    find_by_name,
    resource_id,
)
from komodo_deploy.services.request_logging import RequestLogger

__all__ = [
    "ControlPlane",
    "KomodoClient",
    "RequestLogger",
    "find_by_name",
    "resource_id",
]
