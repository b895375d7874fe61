"""Update session orchestration.

The session is an ordered list of named steps. ``ALWAYS`` steps run
unconditionally; ``PROMPTED`` steps ask the operator first. Each step's
failure is reported but never stops the sequence.

The two configuration switches share one sub-flow::

    switch? --no--> SKIPPED
       |yes
    dry run first? --no--> switch --> SWITCHED | FAILED
       |yes
    dry run --fail--> DRY_RUN_FAILED
       |ok
    proceed? --no--> DECLINED_AFTER_DRY_RUN
       |yes
    switch --> SWITCHED | FAILED
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from nixup.actions import Actions
    from nixup.prompt import Prompter
    from nixup.transcript import Transcript

logger = logging.getLogger(__name__)


class StepGating(str, enum.Enum):
    """Whether a step runs unconditionally or behind its own prompt."""

    ALWAYS = "always"
    PROMPTED = "prompted"


class SwitchOutcome(str, enum.Enum):
    """Result of a configuration switch sub-flow."""

    SKIPPED = "skipped"
    SWITCHED = "switched"
    FAILED = "failed"
    DRY_RUN_FAILED = "dry_run_failed"
    DECLINED_AFTER_DRY_RUN = "declined_after_dry_run"


@dataclass(frozen=True)
class Step:
    """One entry of the session sequence.

    Attributes:
        name: Stable identifier, also the key in the session results.
        gating: ALWAYS or PROMPTED (the prompt lives inside ``run``).
        run: Callable executing the step; its return value is recorded.
        condition: Optional predicate evaluated just before the step; when
            it returns False the step is skipped silently.
    """

    name: str
    gating: StepGating
    run: Callable[[], Any]
    condition: Optional[Callable[[], bool]] = None


@dataclass(frozen=True)
class SwitchFlow:
    """The two actions behind one configuration switch prompt."""

    label: str
    dry_run: Callable[[], bool]
    switch: Callable[[], bool]


def run_switch_flow(
    prompter: Prompter,
    transcript: Transcript,
    flow: SwitchFlow,
) -> SwitchOutcome:
    """Ask whether to switch ``flow`` and run it, optionally after a dry run."""
    if not prompter.ask(f"Do you want to switch your {flow.label} configuration? (y/n)"):
        transcript.log(f"Skipping {flow.label} switch.")
        return SwitchOutcome.SKIPPED

    if prompter.ask("Do you want to perform a dry run first? (y/n)"):
        if not flow.dry_run():
            transcript.log_error(f"Dry run for {flow.label} failed. Not switching.")
            return SwitchOutcome.DRY_RUN_FAILED

        if not prompter.ask(
            f"Dry run completed. Do you want to proceed with the actual "
            f"{flow.label} switch? (y/n)"
        ):
            transcript.log(f"Skipping {flow.label} switch after dry run.")
            return SwitchOutcome.DECLINED_AFTER_DRY_RUN

    return SwitchOutcome.SWITCHED if flow.switch() else SwitchOutcome.FAILED


class UpdateSession:
    """The fixed maintenance sequence of one nixup run."""

    def __init__(
        self,
        actions: Actions,
        prompter: Prompter,
        transcript: Transcript,
    ) -> None:
        self.actions = actions
        self.prompter = prompter
        self.transcript = transcript
        self.complete_clean_done = False
        self.results: dict[str, Any] = {}

    def steps(self) -> list[Step]:
        """Return the session sequence in execution order."""
        return [
            Step("txr", StepGating.ALWAYS, self.actions.run_txr),
            Step("lazygit", StepGating.ALWAYS, self.actions.run_lazygit),
            Step("disk-space", StepGating.ALWAYS, self.actions.check_disk_space),
            Step("update-flake", StepGating.PROMPTED, self.ask_update_flake),
            Step("switches", StepGating.PROMPTED, self.ask_switches),
            Step("cleanup", StepGating.PROMPTED, self.ask_cleanup),
            Step("complete-clean", StepGating.PROMPTED, self.ask_complete_clean),
            Step(
                "rebuild-after-clean",
                StepGating.PROMPTED,
                self.ask_rebuild_after_clean,
                condition=lambda: self.complete_clean_done,
            ),
        ]

    # ------------------------------------------------------------------
    # Prompted steps
    # ------------------------------------------------------------------

    def ask_update_flake(self) -> Optional[bool]:
        if not self.prompter.ask("Do you want to update the flake? (y/n)"):
            self.transcript.log("Skipping flake update.")
            return None
        return self.actions.update_flake()

    def ask_switches(self) -> dict[str, SwitchOutcome]:
        """Home-manager first, then NixOS; the second is asked whatever the first did."""
        home = run_switch_flow(
            self.prompter,
            self.transcript,
            SwitchFlow(
                "home-manager",
                self.actions.home_manager_dry_run,
                self.actions.home_manager_switch,
            ),
        )
        nixos = run_switch_flow(
            self.prompter,
            self.transcript,
            SwitchFlow("NixOS", self.actions.nixos_dry_run, self.actions.nixos_switch),
        )
        return {"home-manager": home, "nixos": nixos}

    def ask_cleanup(self) -> Optional[bool]:
        if not self.prompter.ask(
            "Do you want to clean old generations, perform garbage collection, "
            "and remove orphaned packages? (y/n)"
        ):
            self.transcript.log("Skipping cleanup.")
            return None
        return self.actions.cleanup_system()

    def ask_complete_clean(self) -> Optional[bool]:
        if not self.prompter.confirm_strict(
            "Do you want to do a COMPLETE clean of old generations, perform garbage "
            "collection, and remove all orphaned packages? (YES/n)"
        ):
            self.transcript.log("Skipping complete clean.")
            return None
        self.complete_clean_done = True
        return self.actions.complete_clean()

    def ask_rebuild_after_clean(self) -> Optional[bool]:
        # Rebuilding after a complete clean is the NixOS system switch.
        if not self.prompter.ask(
            "Do you want to rebuild the system after the complete clean? (y/n)"
        ):
            self.transcript.log("Skipping rebuild.")
            return None
        return self.actions.nixos_switch()

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self, steps: Optional[list[Step]] = None) -> dict[str, Any]:
        """Run every step in order and return ``{step name: result}``."""
        started = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.transcript.log(f"Running NixOS Update Script - {started}")

        for step in steps if steps is not None else self.steps():
            if step.condition is not None and not step.condition():
                logger.debug("step %s skipped (condition not met)", step.name)
                continue
            logger.debug("step %s (%s)", step.name, step.gating.value)
            self.results[step.name] = step.run()

        if self.transcript.path:
            self.transcript.log(f"Update session finished. Log saved to {self.transcript.path}")
        else:
            self.transcript.log("Update session finished.")
        return self.results
