# -*- coding: utf-8 -*-
"""
Shell command execution for the sandbox runtime.
"""

import asyncio
import logging
from typing import Optional

from workbench.config.settings import RuntimeConfig
from workbench.core.runtime.models import CommandResult

logger = logging.getLogger(__name__)


class ProcessExecutionError(Exception):
    """A shell command exited non-zero or overflowed its output buffer."""

    def __init__(self, command: str, exit_code: Optional[int], stdout: str = "", stderr: str = "", reason: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        detail = reason or stderr.strip() or stdout.strip() or "no output"
        super().__init__(f"Command failed ({exit_code}): {command}\n{detail}")


class ProcessExecutor:
    """
    Runs shell commands and captures their output.

    No timeout is applied: a hung command blocks its caller. The only limit
    is the output ceiling, checked per stream.
    """

    def __init__(self, default_max_buffer: int = RuntimeConfig.DEFAULT_MAX_BUFFER):
        self._default_max_buffer = default_max_buffer

    async def run(self, command: str, max_buffer: Optional[int] = None) -> CommandResult:
        """
        Run a shell command.

        Args:
            command: Command line passed to /bin/sh
            max_buffer: Output ceiling in bytes for stdout and stderr

        Returns:
            CommandResult with decoded output

        Raises:
            ProcessExecutionError: On non-zero exit or buffer overflow
        """
        limit = max_buffer or self._default_max_buffer
        logger.debug(f"Running command: {command}")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessExecutionError(command, None, reason=f"failed to spawn: {e}") from e

        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if len(stdout_bytes) > limit or len(stderr_bytes) > limit:
            raise ProcessExecutionError(
                command,
                process.returncode,
                reason=f"output exceeded max buffer of {limit} bytes",
            )

        if process.returncode != 0:
            raise ProcessExecutionError(command, process.returncode, stdout, stderr)

        return CommandResult(exit_code=process.returncode, stdout=stdout, stderr=stderr)
