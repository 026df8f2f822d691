"""Process execution for automatasaurus.

Every external call (the agent CLI and the GitHub CLI) goes through
run_process(), which streams the child's output as it arrives and returns
everything that was captured once the process exits.
"""

import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Captured result of a finished process."""

    command: str
    args: List[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return self.stdout + self.stderr


class ExternalCommandError(RuntimeError):
    """Raised when an external process exits non-zero or cannot be started."""

    def __init__(
        self,
        command: str,
        args: List[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.args_list = args
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = f"{command} exited with code {returncode}"
        detail = stderr.strip() or stdout.strip()
        if detail:
            message = f"{message}: {detail.splitlines()[-1]}"
        super().__init__(message)


def _pump(stream: IO[str], chunks: List[str], sink: Optional[IO[str]]) -> None:
    """Copy lines from a child pipe into chunks, echoing to sink if given."""
    for line in iter(stream.readline, ""):
        chunks.append(line)
        if sink is not None:
            sink.write(line)
            sink.flush()
    stream.close()


def run_process(
    command: str,
    args: List[str],
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    echo: bool = True,
) -> ProcessResult:
    """Run a command to completion, streaming its output.

    No timeout is applied: the call blocks for as long as the child runs.

    Args:
        command: Executable to run
        args: Arguments passed to the executable
        cwd: Working directory (defaults to the current directory)
        env: Extra environment variables layered over os.environ
        echo: Mirror the child's stdout/stderr to ours while it runs

    Returns:
        ProcessResult with the captured output

    Raises:
        ExternalCommandError: If the process exits non-zero or can't be started
    """
    full_env = None
    if env:
        full_env = {**os.environ, **env}

    logger.debug(f"Running: {command} {' '.join(args)}")

    try:
        proc = subprocess.Popen(
            [command] + list(args),
            cwd=cwd,
            env=full_env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        )
    except OSError as e:
        raise ExternalCommandError(command, list(args), 127, stderr=str(e)) from e

    stdout_chunks: List[str] = []
    stderr_chunks: List[str] = []

    # stderr is drained on a helper thread so neither pipe can fill up and block the child
    stderr_thread = threading.Thread(
        target=_pump,
        args=(proc.stderr, stderr_chunks, sys.stderr if echo else None),
        daemon=True,
    )
    stderr_thread.start()
    _pump(proc.stdout, stdout_chunks, sys.stdout if echo else None)
    stderr_thread.join()
    returncode = proc.wait()

    result = ProcessResult(
        command=command,
        args=list(args),
        stdout="".join(stdout_chunks),
        stderr="".join(stderr_chunks),
        returncode=returncode,
    )

    if returncode != 0:
        logger.debug(f"{command} failed (exit {returncode})")
        raise ExternalCommandError(
            command, result.args, returncode, result.stdout, result.stderr
        )

    return result
