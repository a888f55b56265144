"""
Pydantic models for codex-exec configuration.

The on-disk config has two sections: `process` describes how the codex
CLI is hosted, `defaults` holds per-call options applied to every run.
"""

from pydantic import BaseModel, ConfigDict, Field

from codex_exec.core.exec.options import (
    ApprovalMode,
    ExecConfiguration,
    ExecOptions,
    SandboxPolicy,
)


class DefaultOptions(BaseModel):
    """
    Invocation defaults applied by the CLI before command-line flags.

    Only the options worth setting per user or per project live here;
    everything else is chosen per call.
    """

    model: str | None = Field(default=None, description="Default model")
    profile: str | None = Field(default=None, description="Default config profile")
    sandbox: SandboxPolicy | None = Field(default=None, description="Default sandbox policy")
    approval: ApprovalMode | None = Field(default=None, description="Default approval policy")
    json_events: bool = Field(default=True, description="Request JSON events")
    timeout: float | None = Field(default=None, gt=0, description="Timeout in seconds")
    skip_git_repo_check: bool = Field(
        default=False, description="Allow running outside a git repository"
    )
    full_auto: bool = Field(default=False, description="Send --full-auto")

    model_config = ConfigDict(frozen=True)

    def to_options(self, **overrides: object) -> ExecOptions:
        """
        Build ExecOptions from these defaults.

        Args:
            **overrides: ExecOptions fields that win over the defaults;
                None values are ignored

        Returns:
            Validated ExecOptions
        """
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ExecOptions(**values)


class AppConfig(BaseModel):
    """
    Complete codex-exec configuration.

    Example:
        >>> config = AppConfig()
        >>> config.process.command
        'codex'
        >>> config.defaults.json_events
        True
    """

    process: ExecConfiguration = Field(
        default_factory=ExecConfiguration, description="How the codex CLI is launched"
    )
    defaults: DefaultOptions = Field(
        default_factory=DefaultOptions, description="Per-call option defaults"
    )

    model_config = ConfigDict(frozen=True)
