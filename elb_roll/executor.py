"""Runs the wrapped command through a shell with inherited stdin/stdout/stderr."""

from __future__ import annotations

import logging
import subprocess

from .config import CommandConfig
from .models import CommandResult, LogContext

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Runs a command string verbatim via ``<shell> -c`` and waits for it to finish."""

    def __init__(self, config: CommandConfig | None = None):
        self._shell = (config or CommandConfig()).shell

    def run(self, command: str, ctx: LogContext | None = None) -> CommandResult:
        """Run command synchronously. Never raises for a failing or unlaunchable command."""
        extra = {**(ctx or LogContext()).extra, "command": command}
        argv = [self._shell, "-c", command]

        logger.info("Running command", extra=extra)
        logger.debug("Command argv: %s", argv, extra=extra)
        try:
            proc = subprocess.run(argv, check=False)
        except OSError as exc:
            logger.warning("Failed to run command: %s", exc, extra=extra)
            return CommandResult(command=command, returncode=None, error=str(exc))

        if proc.returncode != 0:
            logger.warning(
                "Command exited with status %d", proc.returncode,
                extra={**extra, "returncode": proc.returncode},
            )
        else:
            logger.info("Command finished", extra={**extra, "returncode": 0})
        return CommandResult(command=command, returncode=proc.returncode)
