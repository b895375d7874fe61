"""Shared test fixtures for nixup.

Provides a transcript writing to an in-memory console and a temporary log
directory, a scripted answer source, and a FakeRunner that records
commands instead of executing Nix tools.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Sequence

import pytest
from rich.console import Console

from nixup.config import NixupConfig
from nixup.exceptions import WorkdirError
from nixup.transcript import Transcript

DF_OUTPUT = (
    "Filesystem      Size  Used Avail Use% Mounted on\n"
    "/dev/nvme0n1p2  468G  301G  144G  68% /\n"
)


@pytest.fixture
def console() -> Console:
    """Non-terminal console capturing output in memory."""
    return Console(file=io.StringIO(), force_terminal=False, width=200)


@pytest.fixture
def transcript(tmp_path, console):
    t = Transcript.open(str(tmp_path / "logs"), console=console)
    yield t
    t.close()


@pytest.fixture
def config(tmp_path) -> NixupConfig:
    return NixupConfig(
        log_dir=str(tmp_path / "logs"),
        txr_command="txr",
        repo_path=str(tmp_path / "repo"),
        flake_path=str(tmp_path / "repo" / "nixos"),
        nixos_path=str(tmp_path / "etc-nixos"),
        home_manager_path=str(tmp_path / "home-manager"),
    )


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def terminal_text(t: Transcript) -> str:
    """Everything the transcript printed to its (in-memory) console."""
    return t.console.file.getvalue()


def log_text(t: Transcript) -> str:
    with open(t.path, encoding="utf-8") as fh:
        return fh.read()


def scripted_input(answers: Sequence[str]):
    """Input function returning ``answers`` in order, then EOFError."""
    remaining = list(answers)

    def _input(prompt: str = "") -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    _input.remaining = remaining
    return _input


@dataclass(frozen=True)
class Call:
    argv: list[str]
    cwd: Optional[str]
    privileged: bool
    interactive: bool

    @property
    def command(self) -> str:
        return " ".join(self.argv)


class FakeRunner:
    """CommandRunner stand-in that records invocations.

    Args:
        fail: Command prefixes (joined argv) that exit with status 1.
        missing: Command names check_command reports as absent.
        bad_dirs: Working directories that raise WorkdirError.
        df_output: What ``capture`` returns for ``df``.
    """

    def __init__(
        self,
        transcript: Optional[Transcript] = None,
        *,
        sudo: bool = True,
        fail: Sequence[str] = (),
        missing: Sequence[str] = (),
        bad_dirs: Sequence[str] = (),
        df_output: Optional[str] = DF_OUTPUT,
    ) -> None:
        self.transcript = transcript
        self.sudo = sudo
        self.fail = tuple(fail)
        self.missing = set(missing)
        self.bad_dirs = set(bad_dirs)
        self.df_output = df_output
        self.calls: list[Call] = []
        self.checked: list[str] = []
        self.captured: list[list[str]] = []

    def check_command(self, name: str) -> bool:
        self.checked.append(name)
        return name not in self.missing

    def run(self, argv, *, cwd=None, privileged=False, interactive=False) -> int:
        if cwd in self.bad_dirs:
            raise WorkdirError(cwd)
        call = Call(list(argv), cwd, privileged, interactive)
        self.calls.append(call)
        return 1 if self.fail and call.command.startswith(self.fail) else 0

    def capture(self, argv) -> Optional[str]:
        self.captured.append(list(argv))
        return self.df_output

    @property
    def commands(self) -> list[str]:
        return [c.command for c in self.calls]


@pytest.fixture
def fake_runner(transcript) -> FakeRunner:
    return FakeRunner(transcript)
