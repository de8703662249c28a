"""Shell command execution with live log streaming and cancellation.

The shell convention is chosen once from the host platform:
- POSIX: ``/bin/bash -c "<command>"`` (``/bin/sh`` when bash is absent)
- Windows: ``cmd.exe /C "<command>"``

A non-zero exit code is logged, not raised. Spawn failures are logged
and reported as ``exit_code=None``. Callers that need strict success
check ``CommandResult.success``.
"""

import asyncio
import logging
import os
import shlex
import signal
import subprocess
import sys
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import EnvironmentConfig

logger = logging.getLogger(__name__)

# Long pip progress lines exceed asyncio's 64 KiB default
STREAM_LIMIT = 1024 * 1024

# Grandchildren may hold the pipes open after the shell exits
DRAIN_TIMEOUT = 5.0


class PosixInvoker:
    """``<shell> -c <command>``."""

    def __init__(self, shell: str | None = None):
        if shell is None:
            shell = "/bin/bash" if os.path.exists("/bin/bash") else "/bin/sh"
        self.shell = shell

    def argv(self, command: str) -> list[str]:
        return [self.shell, "-c", command]

    def join(self, args: list[str]) -> str:
        return shlex.join(str(a) for a in args)


class WindowsInvoker:
    """``cmd.exe /C <command>``."""

    shell = "cmd.exe"

    def argv(self, command: str) -> list[str]:
        return [self.shell, "/C", command]

    def join(self, args: list[str]) -> str:
        return subprocess.list2cmdline([str(a) for a in args])


def select_invoker(platform: str | None = None) -> PosixInvoker | WindowsInvoker:
    """Invoker for the host platform (or the given ``sys.platform`` value)."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsInvoker()
    return PosixInvoker()


@dataclass
class CommandResult:
    """Result of a shell command.

    Attributes:
        command: Command line as given
        exit_code: Process exit code, None if the process never started
        lines: stdout and stderr lines in arrival order
        cancelled: True if the process was killed through the cancel event
    """

    command: str
    exit_code: int | None = None
    lines: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.cancelled


async def _pump(stream: asyncio.StreamReader, result: CommandResult, config: "EnvironmentConfig") -> None:
    while True:
        raw = await stream.readline()
        if not raw:
            return
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        result.lines.append(line)
        config.log(line)


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        if os.name == "posix":
            # Child runs in its own session, take the whole group down
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


async def run_command(
    command: str,
    config: "EnvironmentConfig",
    cwd: Path | None = None,
    cancel_event: asyncio.Event | None = None,
) -> CommandResult:
    """
    Run command through the configured shell, streaming output to the log.

    Args:
        command: Shell command line
        config: Session config (invoker and log sink)
        cwd: Working directory, defaults to the runtime home. The command
            is not started when it does not exist.
        cancel_event: Setting it kills the process if still running

    Returns:
        CommandResult (never raises for spawn or exit-code failures)

    Example:
        >>> result = await run_command("python.exe -V", config)
        >>> result.success
        True
    """
    result = CommandResult(command=command)
    argv = config.invoker.argv(command)
    workdir = Path(cwd if cwd is not None else config.home)
    config.log(f"> {' '.join(argv)}")
    if not workdir.is_dir():
        config.log(f"run_command: working directory '{workdir}' does not exist", logging.ERROR)
        return result

    proc: asyncio.subprocess.Process | None = None
    tasks: list[asyncio.Task] = []
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(workdir),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
            start_new_session=os.name == "posix",
        )

        readers = [
            asyncio.create_task(_pump(proc.stdout, result, config)),
            asyncio.create_task(_pump(proc.stderr, result, config)),
        ]
        waiter = asyncio.create_task(proc.wait())
        tasks.extend(readers)
        tasks.append(waiter)

        watched: set[asyncio.Task] = {waiter}
        if cancel_event is not None:
            cancel_waiter = asyncio.create_task(cancel_event.wait())
            tasks.append(cancel_waiter)
            watched.add(cancel_waiter)

        done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)
        if waiter not in done:
            result.cancelled = True
            config.log(f"Cancelling command: '{command}'", logging.WARNING)
            _kill(proc)

        await waiter
        _, pending = await asyncio.wait(readers, timeout=DRAIN_TIMEOUT)
        if pending:
            logger.debug(f"Output streams still open after exit of '{command}'")

        result.exit_code = proc.returncode
        if proc.returncode != 0:
            config.log(f" => exit code {proc.returncode}")

    except asyncio.CancelledError:
        if proc is not None:
            _kill(proc)
        raise
    except Exception as e:
        config.log(f"run_command: error with command '{command}': {e}", logging.ERROR)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        if proc is not None and proc.returncode is None:
            _kill(proc)

    return result
