"""
Invocation options and process configuration for codex exec.

ExecOptions is the per-call record that maps onto `codex exec` flags.
ExecConfiguration is set once per client and describes how the process
is hosted (shell, PATH, environment).
"""

import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codex_exec.core.binary import detect_nvm_bin_path
from codex_exec.core.mcp.models import McpServerConfig


class SandboxPolicy(str, Enum):
    """Filesystem/execution restriction level for a turn (`--sandbox`)."""

    READ_ONLY = "read-only"
    WORKSPACE_WRITE = "workspace-write"
    DANGER_FULL_ACCESS = "danger-full-access"


class ApprovalMode(str, Enum):
    """Approval policy, sent as a `-c approval=<mode>` config override."""

    UNTRUSTED = "untrusted"
    ON_FAILURE = "on-failure"
    ON_REQUEST = "on-request"
    NEVER = "never"


class ColorMode(str, Enum):
    """Color output mode (`--color`)."""

    ALWAYS = "always"
    NEVER = "never"
    AUTO = "auto"


# Options that `codex exec resume` rejects; cleared by ExecOptions.for_resume()
RESUME_REJECTED_FIELDS: dict[str, object] = {
    "json_events": False,
    "sandbox": None,
    "model": None,
    "full_auto": False,
    "change_directory": None,
    "mcp_config_path": None,
    "mcp_servers": None,
}


class ExecOptions(BaseModel):
    """
    Options for a single `codex exec` invocation.

    Each field maps onto one CLI flag (see command.build_argument_list).
    Instances are immutable; derive variants with model_copy(update=...).

    Resume:
        Set resume_session_id to continue a specific session, or
        resume_last_session to continue the most recent one. The two are
        mutually exclusive. On resume, the flags listed in
        RESUME_REJECTED_FIELDS are never sent.

    MCP:
        mcp_config_path wins over mcp_servers when both are set.
    """

    model: str | None = Field(default=None, description="Model override (first turn only)")
    profile: str | None = Field(default=None, description="Config profile name")
    use_oss_backend: bool = Field(default=False, description="Use the OSS provider (--oss)")
    approval: ApprovalMode | None = Field(default=None, description="Approval policy override")
    sandbox: SandboxPolicy | None = Field(
        default=None, description="Sandbox policy (first turn only)"
    )
    full_auto: bool = Field(default=False, description="Send --full-auto (first turn only)")
    dangerously_bypass: bool = Field(
        default=False,
        description="Send --dangerously-bypass-approvals-and-sandbox",
    )
    change_directory: str | None = Field(
        default=None, description="Working directory override, --cd (first turn only)"
    )
    additional_write_directories: list[str] = Field(
        default_factory=list, description="Extra writable directories (--add-dir)"
    )
    skip_git_repo_check: bool = Field(default=False, description="Send --skip-git-repo-check")
    enable_search: bool = Field(default=False, description="Enable web search (--search)")
    enable_features: list[str] = Field(default_factory=list, description="Feature toggles (--enable)")
    disable_features: list[str] = Field(
        default_factory=list, description="Feature disables (--disable)"
    )
    config_overrides: dict[str, str] = Field(
        default_factory=dict, description="Config overrides (-c key=value)"
    )
    json_events: bool = Field(default=False, description="Emit JSON events, --json (first turn only)")
    output_schema: str | None = Field(default=None, description="Structured output schema path")
    output_file: str | None = Field(
        default=None, description="Save final message to file (--output-last-message)"
    )
    color_mode: ColorMode | None = Field(default=None, description="Color mode (--color)")
    image_paths: list[str] = Field(default_factory=list, description="Attached images (--image)")
    resume_session_id: str | None = Field(default=None, description="Resume a specific session")
    resume_last_session: bool = Field(default=False, description="Resume the most recent session")
    prompt_via_stdin: bool = Field(
        default=True, description="Pipe the prompt via stdin (`-`) instead of argv"
    )
    timeout: float | None = Field(default=None, gt=0, description="Client-side timeout in seconds")
    extra_flags: list[str] = Field(
        default_factory=list, description="Raw flags appended verbatim (not escaped)"
    )
    mcp_config_path: str | None = Field(
        default=None, description="MCP config file path (first turn only)"
    )
    mcp_servers: dict[str, McpServerConfig] | None = Field(
        default=None, description="Inline MCP servers, written to a temp file (first turn only)"
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_resume_mode(self) -> "ExecOptions":
        if self.resume_session_id is not None and self.resume_last_session:
            raise ValueError(
                "resume_session_id and resume_last_session are mutually exclusive"
            )
        return self

    @property
    def is_resume(self) -> bool:
        """True when this call continues a previous session."""
        return self.resume_session_id is not None or self.resume_last_session

    def for_resume(self) -> "ExecOptions":
        """Return a copy without the flags `codex exec resume` rejects."""
        return self.model_copy(update=RESUME_REJECTED_FIELDS)

    def rejected_on_resume(self) -> list[str]:
        """Names of populated fields that would be dropped on resume."""
        return [
            name
            for name, cleared in RESUME_REJECTED_FIELDS.items()
            if getattr(self, name) != cleared
        ]


def _default_shell() -> str:
    return os.environ.get("SHELL") or "/bin/sh"


class ExecConfiguration(BaseModel):
    """
    Process/shell configuration for invoking `codex exec`.

    Set once when constructing an ExecClient and never changed afterwards.
    The command string is run as `<shell> [-l] -c '<command> exec ...'`.
    """

    command: str = Field(default="codex", description="Binary name or full path to the CLI")
    shell: str = Field(default_factory=_default_shell, description="Shell hosting the command")
    use_login_shell: bool = Field(
        default=True, description="Launch the shell with -l (sources login startup files)"
    )
    working_directory: str | None = Field(
        default=None, description="Working directory for the child process"
    )
    additional_paths: list[str] = Field(
        default_factory=list, description="Entries prepended to PATH for the child"
    )
    environment: dict[str, str] = Field(
        default_factory=dict, description="Environment overrides, applied last"
    )
    debug_logging: bool = Field(default=False, description="Emit verbose debug logs")

    model_config = ConfigDict(frozen=True)

    def with_nvm_support(self) -> "ExecConfiguration":
        """
        Return a copy with the newest nvm node bin directory on PATH.

        Login shells often skip nvm initialisation, leaving an npm-installed
        codex off PATH. If no nvm install containing the command is found,
        the configuration is returned unchanged.
        """
        bin_dir = detect_nvm_bin_path(os.path.basename(self.command))
        if bin_dir is None or bin_dir in self.additional_paths:
            return self
        return self.model_copy(update={"additional_paths": [bin_dir, *self.additional_paths]})
