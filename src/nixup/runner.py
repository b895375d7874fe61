"""Subprocess execution for external commands.

CommandRunner is the only place nixup starts processes. Non-interactive
commands have stdout and stderr merged and streamed line by line through
the transcript, so the log file holds their full output. Interactive tools
(TUIs) inherit the terminal directly.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from typing import TYPE_CHECKING, Optional, Sequence

from nixup.exceptions import WorkdirError

if TYPE_CHECKING:
    from nixup.transcript import Transcript

logger = logging.getLogger(__name__)

# Exit status reported when a process cannot be started at all, as a shell does.
EXIT_NOT_EXECUTABLE = 127


class CommandRunner:
    """Run external commands on behalf of the update actions.

    Args:
        transcript: Receives streamed output and error messages.
        sudo: Prefix privileged commands with ``sudo``.
    """

    def __init__(self, transcript: Transcript, *, sudo: bool = True) -> None:
        self.transcript = transcript
        self.sudo = sudo

    def check_command(self, name: str) -> bool:
        """Report whether ``name`` resolves on PATH (or is an executable path).

        Advisory only: a missing command is logged, the caller carries on.
        """
        if shutil.which(name) is not None:
            return True
        self.transcript.log_error(f"{name} command not found.")
        return False

    def _build_argv(self, argv: Sequence[str], privileged: bool) -> list[str]:
        if privileged and self.sudo:
            return ["sudo", *argv]
        return list(argv)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[str] = None,
        privileged: bool = False,
        interactive: bool = False,
    ) -> int:
        """Run a command to completion and return its exit status.

        Raises:
            WorkdirError: ``cwd`` does not exist or cannot be entered. The
                command is not started.
        """
        if cwd is not None:
            if not os.path.isdir(cwd):
                raise WorkdirError(cwd, "no such directory")
            if not os.access(cwd, os.X_OK):
                raise WorkdirError(cwd, "permission denied")

        full_argv = self._build_argv(argv, privileged)
        logger.debug("exec: %s (cwd=%s)", shlex.join(full_argv), cwd or ".")

        try:
            if interactive:
                returncode = subprocess.run(full_argv, cwd=cwd).returncode
            else:
                with subprocess.Popen(
                    full_argv,
                    cwd=cwd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    errors="replace",
                    bufsize=1,
                ) as proc:
                    assert proc.stdout is not None
                    for line in proc.stdout:
                        self.transcript.echo(line)
                returncode = proc.returncode
        except OSError as e:
            self.transcript.log_error(f"Cannot execute {full_argv[0]}: {e.strerror or e}")
            returncode = EXIT_NOT_EXECUTABLE

        logger.debug("exit %d: %s", returncode, full_argv[0])
        return returncode

    def capture(self, argv: Sequence[str]) -> Optional[str]:
        """Run a command and return its stdout, or None if it failed."""
        logger.debug("capture: %s", shlex.join(argv))
        try:
            result = subprocess.run(list(argv), capture_output=True, text=True)
        except OSError as e:
            self.transcript.log_error(f"Cannot execute {argv[0]}: {e.strerror or e}")
            return None
        if result.returncode != 0:
            logger.debug("exit %d: %s", result.returncode, argv[0])
            return None
        return result.stdout
