"""Tests for the process runners."""

import sys
from unittest.mock import MagicMock, patch

from helm_ci.cli.deployment.shell_commands import (
    CommandResult,
    CommandRunner,
    ProcessRunner,
    RecordingRunner,
)


class TestRecordingRunner:
    """Tests for RecordingRunner."""

    def test_is_a_process_runner(self) -> None:
        assert isinstance(RecordingRunner(), ProcessRunner)
        assert isinstance(CommandRunner(), ProcessRunner)

    def test_records_invocations_and_input(self) -> None:
        runner = RecordingRunner()

        runner.run(["kubectl", "apply", "-f", "-"], input="kind: Namespace")

        assert runner.commands == [("kubectl", "apply", "-f", "-")]
        assert runner.invocations[0].input == "kind: Namespace"
        assert runner.was_called("kubectl", "apply", "-f", "-")

    def test_default_response(self) -> None:
        assert RecordingRunner().run(["helm", "version"]).success

    def test_longest_prefix_wins(self) -> None:
        runner = RecordingRunner()
        runner.respond(["helm"], CommandResult(success=True, stdout="generic"))
        runner.respond(["helm", "get"], CommandResult(success=False, returncode=1))

        assert runner.run(["helm", "get", "manifest", "x"]).success is False
        assert runner.run(["helm", "list"]).stdout == "generic"

    def test_exact_match(self) -> None:
        runner = RecordingRunner()
        runner.respond(["helm", "repo", "update"], CommandResult(success=True, stdout="ok"))

        assert runner.run(["helm", "repo", "update"]).stdout == "ok"

    def test_callable_response(self) -> None:
        runner = RecordingRunner()
        runner.respond(
            ["echo"],
            lambda invocation: CommandResult(success=True, stdout=" ".join(invocation.args)),
        )

        assert runner.run(["echo", "a", "b"]).stdout == "a b"

    def test_streaming_replays_output(self) -> None:
        runner = RecordingRunner()
        runner.respond(["helm"], CommandResult(success=True, stdout="one\ntwo\n"))
        lines: list[str] = []

        runner.run_streaming(["helm", "upgrade"], on_output=lines.append)

        assert lines == ["one", "two"]

    def test_counting_and_filtering(self) -> None:
        runner = RecordingRunner()
        runner.run(["helm", "repo", "add", "a", "b"])
        runner.run(["kubectl", "get", "ns"])
        runner.run(["helm", "repo", "update"])

        assert runner.count("helm") == 2
        assert len(runner.calls_starting_with("helm", "repo")) == 2


class TestCommandRunner:
    """Tests for CommandRunner."""

    @patch("helm_ci.cli.deployment.shell_commands.runner.subprocess.run")
    def test_run_wraps_completed_process(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(returncode=1, stdout="diff", stderr="")

        result = CommandRunner().run(["kubectl", "diff", "-f", "a.yaml"], input="x")

        assert result == CommandResult(success=False, stdout="diff", stderr="", returncode=1)
        assert mock_run.call_args.kwargs["input"] == "x"
        assert mock_run.call_args.kwargs["capture_output"] is True

    def test_missing_executable(self) -> None:
        result = CommandRunner().run(["definitely-not-a-real-binary-helm-ci"])

        assert result.success is False
        assert result.returncode == 127

    def test_streaming_forwards_lines(self) -> None:
        lines: list[str] = []

        result = CommandRunner().run_streaming(
            [sys.executable, "-c", "print('a'); print('b')"], on_output=lines.append
        )

        assert result.success
        assert lines == ["a", "b"]
