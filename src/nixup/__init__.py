"""nixup: interactive NixOS update, switch and cleanup sessions.

Runs the maintenance commands of a NixOS workstation behind yes/no prompts
and keeps a transcript of every session in a timestamped log file.
"""

from nixup._version import __version__

# Configuration
from nixup.config import NixupConfig, load_config

# Session building blocks
from nixup.actions import Actions
from nixup.prompt import Prompter, PromptState, classify_answer, is_strict_yes
from nixup.runner import CommandRunner
from nixup.transcript import Transcript
from nixup.workflow import (
    Step,
    StepGating,
    SwitchFlow,
    SwitchOutcome,
    UpdateSession,
    run_switch_flow,
)

# Exceptions
from nixup.exceptions import (
    ConfigError,
    InputClosedError,
    NixupError,
    WorkdirError,
)

__all__ = [
    "__version__",
    "NixupConfig",
    "load_config",
    "Actions",
    "Prompter",
    "PromptState",
    "classify_answer",
    "is_strict_yes",
    "CommandRunner",
    "Transcript",
    "Step",
    "StepGating",
    "SwitchFlow",
    "SwitchOutcome",
    "UpdateSession",
    "run_switch_flow",
    "ConfigError",
    "InputClosedError",
    "NixupError",
    "WorkdirError",
]
