# src/querytrace/telemetry/client_info.py
"""Client environment document sent once per process."""

import platform
from typing import Any

from querytrace import __version__


def client_info_document(deployment: str | None = None) -> dict[str, Any]:
    """Describe the connector's runtime environment.

    Args:
        deployment: Optional deployment name from configuration

    Returns:
        Flat document of string values, keys in a stable order.
    """
    info: dict[str, Any] = {
        "connector_version": __version__,
        "python_version": platform.python_version(),
        "python_implementation": platform.python_implementation(),
        "os_name": platform.system(),
        "os_version": platform.release(),
        "os_arch": platform.machine(),
    }
    if deployment is not None:
        info["deployment"] = deployment
    return info
