"""Version and build information."""

from __future__ import annotations

import os
import platform

from . import __version__

VERSION = __version__
# Stamped by the release build; "unknown" for source checkouts
COMMIT = os.environ.get("ELB_ROLL_COMMIT", "unknown")
BUILD_DATE = os.environ.get("ELB_ROLL_BUILD_DATE", "unknown")


def version_string() -> str:
    return f"{VERSION}-{COMMIT}"


def detailed() -> str:
    return (
        f"elb-roll {VERSION}\n"
        f"Commit:\t\t{COMMIT}\n"
        f"Build date:\t{BUILD_DATE}\n"
        f"Python:\t\t{platform.python_version()}"
    )
