"""Session transcript: tee every line to the terminal and a timestamped log file.

The Transcript is the single writer for session output. It is passed
explicitly to the prompter, the command runner and the actions, so there is
no redirected global stream. Terminal output is coloured by Rich; the log
file gets the same lines without ANSI codes.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.text import Text

if TYPE_CHECKING:
    from typing import TextIO

LOG_NAME_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LEVEL_STYLES = {
    "INFO": "green",
    "PROMPT": "blue",
    "ERROR": "red",
    "DEBUG": "dim",
}


def log_file_name(now: datetime, attempt: int = 0) -> str:
    """Return the log file name for a session started at ``now``.

    ``attempt`` > 0 appends a numeric suffix, used when a session started
    within the same second already owns the plain name.
    """
    stem = now.strftime(LOG_NAME_FORMAT)
    if attempt:
        stem = f"{stem}-{attempt}"
    return f"{stem}.log"


def create_log_file(log_dir: str, now: Optional[datetime] = None) -> tuple[str, TextIO]:
    """Create a fresh log file in ``log_dir`` and return ``(path, handle)``.

    The directory is created if missing. Files are opened exclusively so an
    existing log is never overwritten.
    """
    now = now or datetime.now()
    os.makedirs(log_dir, exist_ok=True)

    attempt = 0
    while True:
        path = os.path.join(log_dir, log_file_name(now, attempt))
        try:
            fh = open(path, "x", encoding="utf-8")
        except FileExistsError:
            attempt += 1
            continue
        return path, fh


class Transcript:
    """Writer that duplicates session output to a console and a log file."""

    def __init__(
        self,
        console: Console,
        log_file: TextIO,
        path: Optional[str] = None,
    ) -> None:
        self.console = console
        self.path = path
        self._file = log_file
        self._file_console = Console(
            file=log_file,
            force_terminal=False,
            no_color=True,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    @classmethod
    def open(
        cls,
        log_dir: str,
        console: Optional[Console] = None,
        now: Optional[datetime] = None,
    ) -> Transcript:
        """Create a new session log under ``log_dir`` and wrap it."""
        path, fh = create_log_file(log_dir, now)
        return cls(console or Console(), fh, path=path)

    @property
    def closed(self) -> bool:
        return self._file.closed

    # ------------------------------------------------------------------
    # Leveled messages
    # ------------------------------------------------------------------

    def _emit(self, level: str, message: str) -> None:
        line = Text.assemble((f"[{level}]", _LEVEL_STYLES[level]), " ", message)
        self.console.print(line, highlight=False, soft_wrap=True)
        self._file_console.print(line)
        self._file.flush()

    def log(self, message: str) -> None:
        """Informational message."""
        self._emit("INFO", message)

    def log_action(self, message: str) -> None:
        """A question put to the operator."""
        self._emit("PROMPT", message)

    def log_error(self, message: str) -> None:
        """Error message. Never exits; callers decide whether to continue."""
        self._emit("ERROR", message)

    def debug(self, message: str) -> None:
        """Diagnostic detail, only written when verbose logging is attached."""
        self._emit("DEBUG", message)

    # ------------------------------------------------------------------
    # Raw output
    # ------------------------------------------------------------------

    def echo(self, line: str) -> None:
        """Write one line of subprocess output to both sinks.

        The terminal gets the line verbatim; ANSI escapes are stripped for the file.
        """
        line = line.rstrip("\r\n")
        self.console.out(line, highlight=False)
        self._file_console.out(Text.from_ansi(line).plain, highlight=False)
        self._file.flush()

    def record(self, text: str) -> None:
        """Write to the log file only (e.g. what the operator typed)."""
        self._file.write(text.rstrip("\r\n") + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> Transcript:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class TranscriptHandler(logging.Handler):
    """Logging handler that routes records through a Transcript.

    Each record is formatted once and written as the same ``[DEBUG]`` line to
    the terminal and the log file.
    """

    def __init__(self, transcript: Transcript, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.transcript = transcript
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        if self.transcript.closed:
            return
        try:
            self.transcript.debug(self.format(record))
        except Exception:
            self.handleError(record)
