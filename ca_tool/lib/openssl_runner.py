"""Runs openssl command lines and reports failures as exceptions."""

import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .logging_config import LOGGER


class OpenSSLCommandError(RuntimeError):
    """Raised when an openssl command fails to spawn or exits nonzero."""

    def __init__(self, command: Sequence[str], returncode: int | None, stderr: str) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            detail = f"failed to run {self.command[0]}: {stderr}"
        else:
            detail = f"{' '.join(self.command[:2])} exited with status {returncode}"
            if stderr:
                detail = f"{detail}: {stderr.strip()}"
        super().__init__(detail)


class OpenSSLRunner:
    """Executes one openssl invocation at a time."""

    def __init__(self, openssl_bin: str = "openssl") -> None:
        """Initialize runner.

        Args:
            openssl_bin: openssl executable name or path
        """
        self.openssl_bin = openssl_bin

    def run(self, args: Sequence[str | Path]) -> str:
        """Run `openssl <args>` and return its stdout.

        Args:
            args: Subcommand and its arguments, without the executable

        Returns:
            Captured standard output

        Raises:
            OpenSSLCommandError: If the process cannot be started or exits nonzero
        """
        command = [self.openssl_bin, *(str(arg) for arg in args)]
        LOGGER.debug("Running: %s", shlex.join(command))

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise OpenSSLCommandError(command, None, str(e)) from e

        if completed.returncode != 0:
            raise OpenSSLCommandError(command, completed.returncode, completed.stderr)

        if completed.stderr:
            LOGGER.debug("openssl stderr: %s", completed.stderr.strip())
        return completed.stdout
