"""External command execution."""

import logging
import subprocess
from collections.abc import Sequence

logger = logging.getLogger(__name__)

CommandSequence = Sequence[Sequence[str]]


class CommandError(Exception):
    """Error running an external command."""

    def __init__(self, message: str, command: Sequence[str] = (), returncode: int | None = None):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(message)


def run_command(command: Sequence[str]) -> None:
    """Run a single argv vector, inheriting stdout and stderr.

    Raises:
        CommandError: If the command is empty, missing, or exits non-zero
    """
    if not command:
        raise CommandError("Empty command in sequence")

    display = " ".join(command)
    logger.info("Running: %s", display)
    try:
        completed = subprocess.run(list(command), check=False)
    except OSError as e:
        raise CommandError(f"Cannot run {display!r}: {e}", command) from e

    if completed.returncode != 0:
        raise CommandError(
            f"Command {display!r} exited with status {completed.returncode}",
            command,
            completed.returncode,
        )


def run_command_sequence(commands: CommandSequence) -> None:
    """Run commands one at a time, stopping at the first failure."""
    if not commands:
        raise CommandError("Empty command sequence")

    for command in commands:
        run_command(command)
