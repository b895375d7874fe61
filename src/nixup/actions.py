"""Action runners: one external maintenance command each.

Every action returns True on success and False on failure. A failing
command is logged and reported to the caller, never raised, so the session
can carry on with its next step.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from nixup.exceptions import WorkdirError

if TYPE_CHECKING:
    from nixup.config import NixupConfig
    from nixup.runner import CommandRunner
    from nixup.transcript import Transcript

logger = logging.getLogger(__name__)

REBUILD_ADVICE = (
    "***It's a good idea to rebuild the system after a complete clean to clear "
    "old boot entries and to make sure nothing went wrong!***"
)


def parse_available_space(df_output: str) -> Optional[str]:
    """Extract the "Avail" column from ``df -h`` output (second line, fourth field)."""
    lines = df_output.splitlines()
    if len(lines) < 2:
        return None
    fields = lines[1].split()
    if len(fields) < 4:
        return None
    return fields[3]


class Actions:
    """The maintenance commands of an update session."""

    def __init__(
        self,
        config: NixupConfig,
        runner: CommandRunner,
        transcript: Transcript,
    ) -> None:
        self.config = config
        self.runner = runner
        self.transcript = transcript

    def _attempt(
        self,
        argv: Sequence[str],
        failure: str,
        *,
        cwd: Optional[str] = None,
        privileged: bool = False,
        interactive: bool = False,
    ) -> bool:
        try:
            code = self.runner.run(
                argv, cwd=cwd, privileged=privileged, interactive=interactive
            )
        except WorkdirError as e:
            self.transcript.log_error(str(e))
            return False
        if code != 0:
            self.transcript.log_error(failure)
            return False
        return True

    # ------------------------------------------------------------------
    # Unconditional tools
    # ------------------------------------------------------------------

    def run_txr(self) -> bool:
        txr = self.config.txr_command
        self.runner.check_command(txr)
        self.transcript.log("Running txr...")
        return self._attempt([txr], "txr command failed.", interactive=True)

    def run_lazygit(self) -> bool:
        self.runner.check_command("lazygit")
        self.transcript.log("Running lazygit...")
        return self._attempt(
            ["lazygit"],
            "lazygit command failed.",
            cwd=self.config.repo_path,
            interactive=True,
        )

    def check_disk_space(self) -> Optional[str]:
        """Log the free space on the configured filesystem and return it."""
        self.transcript.log("Checking disk space usage...")
        output = self.runner.capture(["df", "-h", self.config.disk_path])
        avail = parse_available_space(output) if output is not None else None
        if avail is None:
            self.transcript.log_error("Failed to determine available disk space.")
            return None
        self.transcript.log(f"Available disk space: {avail}")
        return avail

    # ------------------------------------------------------------------
    # Flake and configuration switches
    # ------------------------------------------------------------------

    def update_flake(self) -> bool:
        self.transcript.log("Updating flake.lock...")
        ok = self._attempt(
            ["nix", "flake", "update"],
            "Failed to update flake.lock.",
            cwd=self.config.flake_path,
        )
        if ok:
            self.transcript.log("Flake update completed.")
        return ok

    def nixos_switch(self) -> bool:
        self.runner.check_command("nixos-rebuild")
        self.transcript.log("Running nixos-rebuild...")
        ok = self._attempt(
            ["nixos-rebuild", "switch", "--flake", self.config.flake_ref(self.config.nixos_target)],
            "nixos-rebuild failed.",
            cwd=self.config.nixos_path,
            privileged=True,
        )
        if ok:
            self.transcript.log("NixOS switch completed successfully.")
        return ok

    def home_manager_switch(self) -> bool:
        self.runner.check_command("home-manager")
        self.transcript.log("Running home-manager switch...")
        ok = self._attempt(
            [
                "home-manager",
                "switch",
                "--flake",
                self.config.flake_ref(self.config.home_manager_target),
            ],
            "home-manager switch failed.",
            cwd=self.config.home_manager_path,
        )
        if ok:
            self.transcript.log("Home-manager switch completed successfully.")
        return ok

    def nixos_dry_run(self) -> bool:
        self.runner.check_command("nixos-rebuild")
        self.transcript.log("Performing flake-based dry run for nixos...")
        ok = self._attempt(
            ["nixos-rebuild", "dry-run", "--flake", self.config.flake_ref(self.config.nixos_target)],
            "Failed to perform flake-based dry run.",
            cwd=self.config.nixos_path,
            privileged=True,
        )
        if ok:
            self.transcript.log("Dry run for nixos completed successfully.")
        return ok

    def home_manager_dry_run(self) -> bool:
        self.runner.check_command("home-manager")
        self.transcript.log("Performing flake-based dry run for home-manager...")
        ok = self._attempt(
            [
                "home-manager",
                "build",
                "--dry-run",
                "--flake",
                self.config.flake_ref(self.config.home_manager_target),
                "--extra-experimental-features",
                self.config.extra_experimental_features,
            ],
            "Failed to perform flake-based dry run for home-manager.",
            cwd=self.config.home_manager_path,
        )
        if ok:
            self.transcript.log("Dry run for home-manager completed successfully.")
        return ok

    # ------------------------------------------------------------------
    # Garbage collection
    # ------------------------------------------------------------------

    def remove_old_generations(self) -> bool:
        self.transcript.log("Removing orphaned packages...")
        return self._attempt(
            ["nix-env", "--delete-generations", self.config.delete_generations],
            "Failed to remove orphaned packages.",
            privileged=True,
        )

    def cleanup_system(self) -> bool:
        """Routine cleanup. Each of the three commands runs even if an earlier one failed."""
        self.transcript.log("Cleaning up old generations and running garbage collection...")
        results = [
            self._attempt(
                ["nix-collect-garbage", "--delete-older-than", self.config.gc_older_than],
                "Failed to clean up old generations.",
                privileged=True,
            ),
            self._attempt(
                ["nix-store", "--gc"],
                "Failed to clean up orphaned dependencies.",
                privileged=True,
            ),
            self.remove_old_generations(),
        ]
        return all(results)

    def complete_clean(self) -> bool:
        """Delete every old generation and collect all garbage."""
        self.transcript.log("Performing complete clean of all old generations and unused files...")
        results = [
            self._attempt(
                ["nix-collect-garbage", "-d"],
                "Failed to perform complete clean.",
                privileged=True,
            ),
            self._attempt(
                ["nix-store", "--gc"],
                "Failed to clean up unused dependencies.",
                privileged=True,
            ),
            self._attempt(
                ["nix-env", "--delete-generations", self.config.delete_generations],
                "Failed to remove orphaned packages.",
                privileged=True,
            ),
        ]
        self.transcript.log("Complete clean finished.")
        self.transcript.log(REBUILD_ADVICE)
        return all(results)
