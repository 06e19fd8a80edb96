"""Console output formatting utilities for BetterBuild."""

from __future__ import annotations

import sys
from typing import Iterable, Optional, Sequence

from betterbuild.model import RunResult, TargetStatus


STATUS_LABELS = {
    TargetStatus.SUCCEEDED: "SUCCESS",
    TargetStatus.FAILED: "FAILED",
    TargetStatus.SKIPPED: "SKIPPED",
    TargetStatus.NOT_REACHED: "NOT REACHED",
}


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        build: str,
        goals: Sequence[str],
        order: Sequence[str],
        configuration: str | None = None,
    ) -> None:
        """Print run start information."""
        print("\nBUILD STARTED")
        print(f"Build: {build}")
        if configuration:
            print(f"Configuration: {configuration}")
        print(f"Goals: {', '.join(goals)}")
        print(f"Plan: {' -> '.join(order)}")
        print()

    def print_plan(self, order: Sequence[str]) -> None:
        for i, name in enumerate(order, start=1):
            print(f"  {i}. {name}")

    def print_target_start(self, name: str) -> None:
        print(f"\nTARGET STARTED: {name}")

    def print_target_success(self, name: str, duration: Optional[float] = None) -> None:
        if duration is None:
            print("STATUS: success")
        else:
            print(f"STATUS: success ({duration:.1f}s)")

    def print_target_skipped(self, name: str, reason: str) -> None:
        print(f"\nTARGET SKIPPED: {name} ({reason})")

    def print_target_failure(self, name: str, error: str, proceeding: bool) -> None:
        """
        Print failure message.

        Args:
            name: Target name
            error: Error detail captured from the action
            proceeding: Whether the run continues with the next target
        """
        print(f"TARGET FAILED: {name}")
        if self.debug:
            print(f"Error details: {error}")
        else:
            # Show first line of error for non-debug mode
            print(f"Error: {error.splitlines()[0] if error else 'Unknown error'}")
        print("Run: proceeding (proceed_after_failure)" if proceeding else "Run: halted")

    def print_run_aborted(self, name: str, reason: str) -> None:
        print(f"\nRUN ABORTED by {name}: {reason}")

    def print_results(self, result: RunResult) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for name in result.order:
            r = result.targets[name]
            line = f"  {name}: {STATUS_LABELS[r.status]}"
            if r.duration is not None:
                line += f" ({r.duration:.1f}s)"
            if r.reason and r.status is not TargetStatus.SUCCEEDED:
                line += f" - {r.reason}"
            print(line)
        print("-" * 40)
        print("BUILD SUCCEEDED" if result.success else "BUILD FAILED")

    def print_targets(self, rows: Iterable[tuple[str, str, str]]) -> None:
        for name, description, relations in rows:
            print(f"  {name}")
            if description:
                print(f"      {description}")
            if relations:
                print(f"      {relations}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
