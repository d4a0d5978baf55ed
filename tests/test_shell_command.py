"""
Tests for the shell command runner — real child processes.

Children are ``python -c`` scripts, so no external tool is needed.
"""

import io
import sys
import threading

import pytest

from familiar.adapters.shell.command import (
    CommandFailedError,
    CommandLaunchError,
    CommandNotFoundError,
    CommandOutputError,
    ShellCommandError,
    ShellCommandService,
    extract_result,
    run,
)

PYTHON = sys.executable


class FakeProcess:
    """Popen stand-in with scripted streams and exit code."""

    def __init__(self, stdout, stderr=(), exit_code=0):
        self.stdout = stdout
        self.stderr = iter(stderr)
        self.exit_code = exit_code
        self.killed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def kill(self):
        self.killed = True

    def wait(self):
        return self.exit_code


class BrokenSink:
    def write(self, text):
        raise OSError("sink closed")

    def flush(self):
        pass


def py(script: str) -> tuple[str, list[str]]:
    return PYTHON, ["-c", script]


# ── Result extraction ────────────────────────────────────────────────


class TestExtractResult:
    def test_first_group(self):
        assert extract_result("The result is 42.", r"The result is (\d+)") == "42"

    def test_no_pattern(self):
        assert extract_result("anything", None) == ""

    def test_pattern_without_group(self):
        assert extract_result("The result is 42.", r"The result is \d+") == ""

    def test_no_match(self):
        assert extract_result("nothing here", r"The result is (\d+)") == ""

    def test_compiled_pattern(self):
        import re

        assert extract_result("a=1\nb=2", re.compile(r"(?m)^b=(\d)$")) == "2"


# ── Runner ───────────────────────────────────────────────────────────


class TestRun:
    def test_captures_from_stdout(self):
        program, args = py("print('working...'); print('The result is 42.')")
        assert run(program, args, result_pattern=r"The result is (\d+)") == "42"

    def test_no_pattern_returns_empty(self):
        program, args = py("print('The result is 42.')")
        assert run(program, args) == ""

    def test_pattern_without_group_returns_empty(self):
        program, args = py("print('The result is 42.')")
        assert run(program, args, result_pattern=r"The result is \d+") == ""

    def test_stderr_is_not_searched(self):
        program, args = py("import sys; sys.stderr.write('The result is 42.\\n')")
        assert run(program, args, result_pattern=r"The result is (\d+)") == ""

    def test_pattern_sees_the_whole_output(self):
        script = "for i in range(3): print(f'line {i}')\nprint('done')"
        program, args = py(script)
        assert run(program, args, result_pattern=r"(?s)(line 0.*done)").endswith("done")

    def test_non_zero_exit_wins_over_a_match(self):
        program, args = py("import sys; print('The result is 42.'); sys.exit(3)")
        with pytest.raises(CommandFailedError) as exc_info:
            run(program, args, result_pattern=r"The result is (\d+)")
        assert exc_info.value.exit_code == 3
        assert "with exit code 3" in str(exc_info.value)
        assert str(exc_info.value).startswith('error running command "')

    def test_echoes_both_streams(self):
        sink = io.StringIO()
        program, args = py(
            "import sys; print('to stdout', flush=True); sys.stderr.write('to stderr\\n')"
        )
        run(program, args, echo_sink=sink)
        echoed = sink.getvalue().splitlines()
        assert "to stdout" in echoed
        assert "to stderr" in echoed

    def test_no_echo_without_sink(self, capsys):
        program, args = py("print('quiet')")
        run(program, args)
        assert "quiet" not in capsys.readouterr().out

    def test_large_output_on_both_streams_does_not_deadlock(self):
        # Well past typical pipe buffer sizes on both streams
        script = (
            "import sys\n"
            "for i in range(20000):\n"
            "    sys.stdout.write('o' * 40 + '\\n')\n"
            "    sys.stderr.write('e' * 40 + '\\n')\n"
            "print('The result is 7.')\n"
        )
        program, args = py(script)
        assert run(program, args, result_pattern=r"The result is (\d+)") == "7"

    def test_echo_fault_still_drains_the_child(self):
        # Well past typical pipe buffer sizes, so an undrained pipe would block the child
        program, args = py(
            "import sys\nfor i in range(20000): sys.stdout.write('o' * 40 + '\\n')\n"
        )
        raised = []

        def target():
            try:
                run(program, args, echo_sink=BrokenSink())
            except CommandOutputError as e:
                raised.append(e)

        worker = threading.Thread(target=target, daemon=True)
        worker.start()
        worker.join(timeout=30)

        assert not worker.is_alive(), "run() did not return after the echo sink failed"
        assert len(raised) == 1
        assert "sink closed" in str(raised[0])

    def test_echo_fault_beats_exit_code(self):
        program, args = py("import sys; print('line'); sys.exit(4)")
        with pytest.raises(CommandOutputError):
            run(program, args, echo_sink=BrokenSink())

    def test_missing_program(self):
        with pytest.raises(CommandNotFoundError) as exc_info:
            run("familiar-test-no-such-program-xyz", ["--version"])
        assert isinstance(exc_info.value, CommandLaunchError)
        assert isinstance(exc_info.value, ShellCommandError)

    def test_launch_failure(self):
        def broken_popen(*args, **kwargs):
            raise PermissionError("not allowed")

        with pytest.raises(CommandLaunchError) as exc_info:
            run("tool", ["x"], popen=broken_popen)
        assert not isinstance(exc_info.value, CommandNotFoundError)
        assert exc_info.value.command == "tool x"

    def test_read_fault_is_an_output_error(self):
        class FaultyStream:
            def __iter__(self):
                yield "first line\n"
                raise OSError("pipe broke")

        process = FakeProcess(FaultyStream())
        with pytest.raises(CommandOutputError) as exc_info:
            run("tool", popen=lambda *a, **kw: process)
        assert "stdout" in str(exc_info.value)
        assert process.killed

    def test_read_fault_takes_priority_over_exit_code(self):
        class FaultyStream:
            def __iter__(self):
                raise OSError("pipe broke")

        process = FakeProcess(iter(["ok\n"]), exit_code=5)
        process.stderr = FaultyStream()
        with pytest.raises(CommandOutputError):
            run("tool", popen=lambda *a, **kw: process)


class TestShellCommandService:
    def test_run_with_print_output(self):
        out = io.StringIO()
        service = ShellCommandService(output=out)
        program, args = py("print('The result is 5.')")
        result = service.run(program, *args, result_pattern=r"The result is (\d+)", print_output=True)
        assert result == "5"
        assert "The result is 5." in out.getvalue()

    def test_run_without_print_output(self):
        out = io.StringIO()
        service = ShellCommandService(output=out)
        program, args = py("print('hidden')")
        service.run(program, *args)
        assert out.getvalue() == ""
