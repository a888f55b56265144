"""
Tests for the codex-exec CLI commands.

The CLI is pointed at a fake codex script through CODEX_EXEC_* variables,
so these tests exercise the whole stack from flags to process.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from codex_exec import __version__
from codex_exec.cli import app
from codex_exec.cli.errors import ExitCode
from codex_exec.cli.render import TranscriptBuffer, describe_item
from codex_exec.cli.run import parse_config_overrides, process_config
from codex_exec.core.config import AppConfig
from codex_exec.core.errors import InvalidConfigurationError
from codex_exec.core.exec import (
    CommandExecutionItem,
    ExecConfiguration,
    JsonEvent,
    JsonEventLine,
    StderrLine,
    StdoutLine,
    TodoListItem,
)

runner = CliRunner()

JSON_TURN = """\
prompt=$(cat)
echo '{"type":"thread.started","thread_id":"th_1"}'
echo "{\\"type\\":\\"item.completed\\",\\"item\\":{\\"type\\":\\"agent_message\\",\\"text\\":\\"echo: $prompt\\"}}"
"""


@pytest.fixture
def use_codex(project_dir, fake_codex, monkeypatch):
    """Point the CLI at a fake codex script run by plain /bin/sh."""

    def _use(body: str) -> Path:
        script = fake_codex(body)
        monkeypatch.setenv("CODEX_EXEC_COMMAND", str(script))
        monkeypatch.setenv("CODEX_EXEC_SHELL", "/bin/sh")
        monkeypatch.setenv("CODEX_EXEC_LOGIN_SHELL", "false")
        return script

    return _use


class TestApp:
    """Test top-level options."""

    def test_version(self):
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_file(self, project_dir):
        """Test a config that fails validation is a user error."""
        (project_dir / ".codex-exec.json").write_text('{"defaults": {"timeout": -1}}')
        result = runner.invoke(app, ["run", "hi"])
        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid codex-exec configuration" in result.output


class TestRunCommand:
    """Test `codex-exec run`."""

    def test_json_answer(self, use_codex):
        """Test the agent message is printed as the answer."""
        use_codex(JSON_TURN)
        result = runner.invoke(app, ["run", "hello"])
        assert result.exit_code == 0
        assert "echo: hello" in result.output
        assert "thread.started" not in result.output

    def test_prompt_from_stdin(self, use_codex):
        """Test piped stdin is used when no prompt argument is given."""
        use_codex('echo "got: $(cat)"\n')
        result = runner.invoke(app, ["run", "--no-json"], input="piped prompt\n")
        assert result.exit_code == 0
        assert "got: piped prompt" in result.output

    def test_dash_reads_stdin(self, use_codex):
        """Test '-' reads the prompt from stdin."""
        use_codex('echo "got: $(cat)"\n')
        result = runner.invoke(app, ["run", "-", "--no-json"], input="dash prompt")
        assert "got: dash prompt" in result.output

    def test_flags_reach_codex(self, use_codex):
        """Test command-line flags are mapped onto codex exec flags."""
        use_codex('cat > /dev/null\necho "$*"\n')
        result = runner.invoke(
            app,
            ["run", "hi", "--no-json", "-m", "gpt-5", "-s", "read-only", "-c", "a=b"],
        )
        assert result.exit_code == 0
        assert "exec --model gpt-5 --sandbox read-only -c a=b -" in result.output

    def test_no_output(self, use_codex):
        """Test a silent run prints the placeholder."""
        use_codex("cat > /dev/null\n")
        result = runner.invoke(app, ["run", "hi"])
        assert result.exit_code == 0
        assert "(no output)" in result.output

    def test_stderr_used_when_no_answer(self, use_codex):
        """Test stderr becomes the answer when stdout is empty."""
        use_codex("cat > /dev/null\necho 'only logs' >&2\n")
        result = runner.invoke(app, ["run", "hi"])
        assert "only logs" in result.output

    def test_failure_shows_partial_output(self, use_codex):
        """Test a failing run prints the error and output so far."""
        use_codex("cat > /dev/null\necho partial\necho bad >&2\nexit 3\n")
        result = runner.invoke(app, ["run", "hi", "--no-json"])
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Error:" in result.output
        assert "exited with code 3" in result.output
        assert "Output so far:" in result.output
        assert "partial" in result.output

    def test_failure_shows_logs(self, use_codex):
        """Test a failing run without output prints its logs."""
        use_codex("cat > /dev/null\necho 'fatal: no auth' >&2\nexit 1\n")
        result = runner.invoke(app, ["run", "hi"])
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Logs:" in result.output
        assert "fatal: no auth" in result.output

    def test_timeout_exit_code(self, use_codex):
        """Test a timed out run exits with 124."""
        use_codex("while true; do sleep 0.1; done\n")
        result = runner.invoke(app, ["run", "hi", "--timeout", "0.3"])
        assert result.exit_code == ExitCode.TIMEOUT
        assert "timed out" in result.output

    def test_empty_prompt(self, use_codex):
        """Test an empty prompt is a user error."""
        use_codex("echo never\n")
        result = runner.invoke(app, ["run"], input="")
        assert result.exit_code == ExitCode.USER_ERROR
        assert "A prompt is required" in result.output

    def test_conflicting_resume_flags(self, use_codex):
        """Test --last and --resume cannot be combined."""
        use_codex("echo never\n")
        result = runner.invoke(app, ["run", "hi", "--last", "--resume", "abc"])
        assert result.exit_code == ExitCode.USER_ERROR

    def test_bad_config_override(self, use_codex):
        """Test a -c value without '=' is rejected."""
        use_codex("echo never\n")
        result = runner.invoke(app, ["run", "hi", "-c", "novalue"])
        assert result.exit_code == ExitCode.USER_ERROR
        assert "key=value" in result.output

    def test_missing_mcp_config(self, use_codex):
        """Test a missing --mcp-config path is rejected before running."""
        use_codex("echo never\n")
        result = runner.invoke(app, ["run", "hi", "--mcp-config", "/no/such/mcp.json"])
        assert result.exit_code == ExitCode.USER_ERROR
        assert "MCP config path does not exist." in result.output

    def test_inline_mcp_file_removed(self, use_codex, tmp_path, monkeypatch):
        """Test --mcp-json is passed as a temp file that is deleted after the run."""
        mcp_dir = tmp_path / "mcp-tmp"
        mcp_dir.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(mcp_dir))
        use_codex(
            'cat > /dev/null\n'
            'while [ $# -gt 0 ]; do\n'
            '  if [ "$1" = "--mcp-config" ]; then cat "$2"; fi\n'
            '  shift\n'
            'done\n'
        )

        result = runner.invoke(
            app, ["run", "hi", "--no-json", "--mcp-json", '{"mcpServers": {"x": {}}}']
        )

        assert result.exit_code == 0
        assert '{"mcpServers": {"x": {}}}' in result.output
        assert list(mcp_dir.iterdir()) == []

    def test_binary_outside_path_is_resolved(self, project_dir, fake_codex, monkeypatch):
        """Test a codex found only in a common bin dir is used by run."""
        script = fake_codex(
            'if [ "$1" = "--version" ]; then echo "codex-cli 9.9.9"; exit 0; fi\n'
            'echo "found: $(cat)"\n'
        )
        monkeypatch.setenv("PATH", "/usr/bin:/bin")
        monkeypatch.setenv("CODEX_EXEC_SHELL", "/bin/sh")
        monkeypatch.setenv("CODEX_EXEC_LOGIN_SHELL", "false")

        with patch("codex_exec.core.binary.COMMON_BIN_DIRS", (str(script.parent),)):
            doctor_result = runner.invoke(app, ["doctor"])
            result = runner.invoke(app, ["run", "hi", "--no-json"])

        assert doctor_result.exit_code == 0
        assert result.exit_code == 0
        assert "found: hi" in result.output

    def test_explicit_command_not_probed(self, project_dir):
        """Test an explicit command path is used without detection."""
        config = AppConfig(process=ExecConfiguration(command="/opt/codex/bin/codex"))
        with patch("codex_exec.cli.run.resolve_binary") as mock_resolve:
            assert process_config(config).command == "/opt/codex/bin/codex"
        mock_resolve.assert_not_called()


class TestChatCommand:
    """Test `codex-exec chat`."""

    SCRIPT = """\
echo "$*" >> '{log}'
echo "reply to: $(cat)"
"""

    def test_turns_resume(self, use_codex, tmp_path):
        """Test the second message resumes the session."""
        log = tmp_path / "calls.log"
        use_codex(self.SCRIPT.format(log=log))

        result = runner.invoke(app, ["chat"], input="one\ntwo\n")

        assert result.exit_code == 0
        assert "reply to: one" in result.output
        assert "reply to: two" in result.output
        assert log.read_text().splitlines() == ["exec --json -", "exec resume --last -"]

    def test_new_and_exit(self, use_codex, tmp_path):
        """Test /new starts over and /exit stops reading input."""
        log = tmp_path / "calls.log"
        use_codex(self.SCRIPT.format(log=log))

        result = runner.invoke(app, ["chat"], input="one\n/new\ntwo\n/exit\nthree\n")

        assert result.exit_code == 0
        assert log.read_text().splitlines() == ["exec --json -", "exec --json -"]
        assert "reply to: three" not in result.output

    def test_failed_turn_continues(self, use_codex):
        """Test an error is shown and the chat keeps going."""
        use_codex("cat > /dev/null\necho broken >&2\nexit 5\n")
        result = runner.invoke(app, ["chat"], input="one\n")
        assert result.exit_code == 0
        assert "exited with code 5" in result.output
        assert "Logs:" in result.output


class TestDoctorCommand:
    """Test `codex-exec doctor`."""

    def test_binary_found(self, use_codex):
        """Test the configured binary and its version are reported."""
        use_codex('echo "codex-cli 0.63.0"\n')
        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == 0
        assert "codex-cli 0.63.0" in result.output
        assert "/bin/sh" in result.output

    def test_version_unknown(self, use_codex):
        """Test a binary failing --version is reported without a version."""
        use_codex("exit 1\n")
        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == 0
        assert "version unknown" in result.output

    def test_binary_missing(self, project_dir, monkeypatch, tmp_path):
        """Test a missing binary fails the check."""
        monkeypatch.setenv("CODEX_EXEC_COMMAND", str(tmp_path / "missing" / "codex"))
        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Install with" in result.output


class TestRendering:
    """Test transcript accumulation and summaries."""

    def test_final_answer_fallbacks(self):
        """Test answer, then logs, then the placeholder."""
        transcript = TranscriptBuffer(Console())
        assert transcript.final_answer() == "(no output)"

        transcript(StderrLine("  warn  "))
        assert transcript.final_answer() == "warn"

        transcript(StdoutLine("answer"))
        transcript(
            JsonEventLine(
                JsonEvent.model_validate(
                    {"type": "item.completed", "item": {"type": "agent_message", "text": "more"}}
                )
            )
        )
        assert transcript.final_answer() == "answer\nmore"

    def test_describe_item(self):
        """Test progress summaries for common items."""
        assert describe_item(CommandExecutionItem(command="ls", exit_code=2)) == "$ ls (exit 2)"
        assert describe_item(TodoListItem()) == "todo 0/0"

    def test_parse_config_overrides(self):
        """Test -c values split on the first '='."""
        assert parse_config_overrides(["a=b=c", "x="]) == {"a": "b=c", "x": ""}
        with pytest.raises(InvalidConfigurationError):
            parse_config_overrides(["=value"])
