"""
Shell command runner — launch one program, drain it, extract a result.

This is the most fundamental adapter: every package manager talks to
its tool through it. A single call:

    1. Starts the program with stdout and stderr wired to pipes.
    2. Drains both pipes concurrently, one thread per stream, so a
       child that fills one pipe's OS buffer can never stall while we
       block on the other.
    3. Optionally echoes every line to a sink as soon as it is read.
    4. After the process has exited AND both drains have finished,
       searches the complete stdout for ``result_pattern`` and returns
       its first capturing group.

Errors are raised, never returned:

    CommandNotFoundError  the executable does not exist
    CommandLaunchError    the process could not be started
    CommandOutputError    reading or echoing a stream failed
    CommandFailedError    the process exited non-zero (even if the
                          pattern matched)
"""

from __future__ import annotations

import logging
import queue
import re
import subprocess
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import IO, Any

import click

from familiar.core.errors import FamiliarError

logger = logging.getLogger(__name__)

ResultPattern = str | re.Pattern[str] | None
PopenFactory = Callable[..., Any]


class ShellCommandError(FamiliarError):
    """Base class for failures running an external command."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command


class CommandLaunchError(ShellCommandError):
    """The process could not be started (pipe setup or exec failed)."""


class CommandNotFoundError(CommandLaunchError):
    """The program does not exist on this machine."""


class CommandOutputError(ShellCommandError):
    """Reading or echoing the command's output failed."""


class CommandFailedError(ShellCommandError):
    """The command exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int) -> None:
        super().__init__(
            f'error running command "{command}", with exit code {exit_code}',
            command=command,
        )
        self.exit_code = exit_code


def format_command(program: str, args: Sequence[str] = ()) -> str:
    """Human-readable form of a command line, used in errors and logs."""
    return " ".join([program, *args])


def extract_result(output: str, result_pattern: ResultPattern) -> str:
    """Return the first capturing group of ``result_pattern`` in ``output``.

    Returns an empty string if there is no pattern, the pattern has no
    capturing group, or it does not match.
    """
    if result_pattern is None:
        return ""

    pattern = re.compile(result_pattern) if isinstance(result_pattern, str) else result_pattern
    if pattern.groups < 1:
        return ""

    match = pattern.search(output)
    if match is None:
        return ""
    return match.group(1) or ""


# ── Stream draining ─────────────────────────────────────────────


class _EchoSink:
    """Serializes line writes from both drain threads onto one stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            click.echo(line, file=self._stream)


@dataclass
class _DrainOutcome:
    text: str = ""
    error: BaseException | None = None


class _StreamDrain(threading.Thread):
    """Reads one stream to EOF into a private buffer.

    The outcome (full text, plus the first fault seen) is delivered
    through this drain's own single-slot queue. An echo fault stops
    echoing but not reading. A read fault calls ``on_read_fault`` so
    the child cannot block forever on a pipe nobody reads.
    """

    def __init__(
        self,
        stream: Iterable[str],
        label: str,
        echo: _EchoSink | None,
        on_read_fault: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(name=f"drain-{label}", daemon=True)
        self.label = label
        self._stream = stream
        self._echo = echo
        self._on_read_fault = on_read_fault
        self.outcome: queue.Queue[_DrainOutcome] = queue.Queue(maxsize=1)

    def run(self) -> None:
        lines: list[str] = []
        error: BaseException | None = None
        try:
            for raw_line in self._stream:
                line = raw_line.rstrip("\r\n")
                lines.append(line + "\n")
                if self._echo is None or error is not None:
                    continue
                try:
                    self._echo.write_line(line)
                except Exception as e:  # reported through the outcome slot
                    error = e
        except Exception as e:  # reported through the outcome slot
            if error is None:
                error = e
            if self._on_read_fault is not None:
                self._on_read_fault()
        self.outcome.put(_DrainOutcome(text="".join(lines), error=error))


# ── Runner ──────────────────────────────────────────────────────


def run(
    program: str,
    args: Sequence[str] = (),
    result_pattern: ResultPattern = None,
    echo_sink: IO[str] | None = None,
    popen: PopenFactory = subprocess.Popen,
) -> str:
    """Run a program to completion and extract a result from its stdout.

    Args:
        program: Executable name or path.
        args: Arguments passed to the program.
        result_pattern: Regex with one capturing group, matched against
            the complete stdout once the process has exited.
        echo_sink: If given, every stdout/stderr line is written here as
            soon as it is read.
        popen: Process factory (``subprocess.Popen`` signature).

    Returns:
        The first captured group, or "" if nothing was captured.

    Raises:
        ShellCommandError: See module docstring for the subclasses.
    """
    args = list(args)
    command = format_command(program, args)
    logger.debug("Running: %s", command)

    try:
        proc = popen(
            [program, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError as e:
        raise CommandNotFoundError(f"{program}: command not found", command=command) from e
    except OSError as e:
        raise CommandLaunchError(f"error starting command \"{command}\": {e}", command=command) from e

    if proc.stdout is None or proc.stderr is None:
        raise CommandLaunchError(f"no output pipes for command \"{command}\"", command=command)

    def kill() -> None:
        try:
            proc.kill()
        except OSError as e:
            logger.debug("Could not kill %s after a read fault: %s", command, e)

    # Leaving the block closes both pipes
    with proc:
        echo = _EchoSink(echo_sink) if echo_sink is not None else None
        stdout_drain = _StreamDrain(proc.stdout, "stdout", echo, on_read_fault=kill)
        stderr_drain = _StreamDrain(proc.stderr, "stderr", echo, on_read_fault=kill)
        stdout_drain.start()
        stderr_drain.start()

        exit_code = proc.wait()

        # The result must reflect the complete output, never a prefix.
        stdout_drain.join()
        stderr_drain.join()

    stdout_outcome = stdout_drain.outcome.get_nowait()
    stderr_outcome = stderr_drain.outcome.get_nowait()

    for drain, outcome in ((stdout_drain, stdout_outcome), (stderr_drain, stderr_outcome)):
        if outcome.error is not None:
            raise CommandOutputError(
                f"error reading {drain.label} of command \"{command}\": {outcome.error}",
                command=command,
            ) from outcome.error

    logger.debug("Command exited with code %d: %s", exit_code, command)
    if exit_code != 0:
        raise CommandFailedError(command, exit_code)

    return extract_result(stdout_outcome.text, result_pattern)


class ShellCommandService:
    """Runs commands on behalf of package managers.

    Holds the stream that command output is echoed to, so callers only
    decide *whether* output is shown, not where it goes.
    """

    def __init__(
        self,
        output: IO[str] | None = None,
        popen: PopenFactory = subprocess.Popen,
    ) -> None:
        self._output = output
        self._popen = popen

    def run(
        self,
        program: str,
        *args: str,
        result_pattern: ResultPattern = None,
        print_output: bool = False,
    ) -> str:
        """Run ``program args...``; see :func:`run` for semantics."""
        echo_sink = self._output if print_output else None
        if print_output and echo_sink is None:
            echo_sink = click.get_text_stream("stdout")
        return run(
            program,
            args,
            result_pattern=result_pattern,
            echo_sink=echo_sink,
            popen=self._popen,
        )
