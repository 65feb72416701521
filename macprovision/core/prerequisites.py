"""
Prerequisite checks — everything that must hold before the first step.

Any failure raises PrerequisiteError; the CLI turns it into exit code 2
and nothing on the host has been touched.
"""

from __future__ import annotations

import logging
import platform
import urllib.error
import urllib.request

from macprovision.core.errors import PrerequisiteError

logger = logging.getLogger(__name__)

CONNECTIVITY_URL = "https://www.google.com"
CONNECTIVITY_TIMEOUT_S = 5


def check_platform() -> None:
    """Raise unless running on macOS."""
    system = platform.system()
    if system != "Darwin":
        raise PrerequisiteError(f"macprovision only runs on macOS (this is {system or 'unknown'})")


def check_network(url: str = CONNECTIVITY_URL, timeout: int = CONNECTIVITY_TIMEOUT_S) -> None:
    """Raise unless ``url`` answers within ``timeout`` seconds."""
    req = urllib.request.Request(url, method="HEAD", headers={"User-Agent": "macprovision/1.0"})
    try:
        with urllib.request.urlopen(req, timeout=timeout):
            pass
    except urllib.error.HTTPError:
        # Any HTTP answer proves connectivity
        pass
    except (urllib.error.URLError, OSError) as e:
        raise PrerequisiteError(f"No internet connection ({url}: {e})") from e
    logger.debug("Network check passed (%s)", url)


def check_prerequisites(*, offline: bool = False) -> None:
    """Run every host check.

    Args:
        offline: Skip the platform and network probes (mock mode).
    """
    if not offline:
        check_platform()
        check_network()
    logger.info("Prerequisites check passed")
