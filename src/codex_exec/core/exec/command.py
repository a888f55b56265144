"""
Command construction for `codex exec`.

Turns ExecOptions into the ordered, shell-escaped argument list and the
full command string that the launcher hands to `<shell> -c`.
"""

import logging

from codex_exec.core.mcp.writer import write_mcp_servers

from .options import ExecOptions

logger = logging.getLogger(__name__)

STDIN_MARKER = "-"


def shell_escape(value: str) -> str:
    """
    Quote a value as a single POSIX shell token.

    Wraps the value in single quotes and rewrites each embedded single
    quote as '\\''.

    Example:
        >>> shell_escape("it's")
        "'it'\\\\''s'"
    """
    return "'" + value.replace("'", "'\\''") + "'"


def resume_prefix(options: ExecOptions) -> list[str]:
    """
    Tokens placed right after `exec` to select fresh vs. resumed sessions.

    A specific session id takes precedence over resume-last; neither means
    a fresh invocation (empty prefix).
    """
    if options.resume_session_id is not None:
        return ["resume", shell_escape(options.resume_session_id)]
    if options.resume_last_session:
        return ["resume", "--last"]
    return []


def build_argument_list(options: ExecOptions) -> list[str]:
    """
    Map options onto `codex exec` flags.

    Order is significant and fixed. Config overrides follow the mapping's
    iteration order, which callers must not rely on. When resuming, the
    flags `codex exec resume` rejects are dropped first.

    Raises:
        InvalidConfigurationError: If inline MCP servers cannot be written
    """
    if options.is_resume:
        dropped = options.rejected_on_resume()
        if dropped:
            logger.debug("Dropping options rejected on resume: %s", ", ".join(dropped))
        options = options.for_resume()

    args: list[str] = []

    for image in options.image_paths:
        args.extend(["--image", shell_escape(image)])

    if options.model is not None:
        args.extend(["--model", shell_escape(options.model)])

    if options.approval is not None:
        # Config override rather than --ask-for-approval, which newer CLIs may drop
        args.extend(["-c", shell_escape(f"approval={options.approval.value}")])

    if options.profile is not None:
        args.extend(["--profile", shell_escape(options.profile)])

    if options.use_oss_backend:
        args.append("--oss")

    if options.sandbox is not None:
        args.extend(["--sandbox", options.sandbox.value])

    if options.full_auto:
        args.append("--full-auto")

    if options.dangerously_bypass:
        args.append("--dangerously-bypass-approvals-and-sandbox")

    if options.change_directory is not None:
        args.extend(["--cd", shell_escape(options.change_directory)])

    for directory in options.additional_write_directories:
        args.extend(["--add-dir", shell_escape(directory)])

    if options.skip_git_repo_check:
        args.append("--skip-git-repo-check")

    if options.enable_search:
        args.append("--search")

    for feature in options.enable_features:
        args.extend(["--enable", shell_escape(feature)])

    for feature in options.disable_features:
        args.extend(["--disable", shell_escape(feature)])

    for key, value in options.config_overrides.items():
        args.extend(["-c", shell_escape(f"{key}={value}")])

    if options.mcp_config_path is not None:
        args.extend(["--mcp-config", shell_escape(options.mcp_config_path)])
    elif options.mcp_servers is not None:
        path = write_mcp_servers(options.mcp_servers)
        args.extend(["--mcp-config", shell_escape(str(path))])

    if options.json_events:
        args.append("--json")

    if options.output_schema is not None:
        args.extend(["--output-schema", shell_escape(options.output_schema)])

    if options.output_file is not None:
        args.extend(["--output-last-message", shell_escape(options.output_file)])

    if options.color_mode is not None:
        args.extend(["--color", options.color_mode.value])

    # Passed through verbatim; quoting is the caller's job
    args.extend(options.extra_flags)

    return args


def build_command(
    executable: str,
    prompt: str,
    options: ExecOptions,
    send_prompt_via_stdin: bool,
) -> str:
    """
    Build the full shell command string for one invocation.

    Layout: `<executable> exec [resume ...] [flags...] [-|<prompt>]`.
    The trailing token is only added for a non-empty prompt.

    Args:
        executable: Command or path of the codex CLI
        prompt: Prompt text
        options: Invocation options
        send_prompt_via_stdin: Append `-` instead of the escaped prompt

    Returns:
        Command string suitable for `<shell> -c`

    Raises:
        InvalidConfigurationError: If inline MCP servers cannot be written
    """
    parts = [shell_escape(executable), "exec"]
    parts.extend(resume_prefix(options))
    parts.extend(build_argument_list(options))

    if prompt:
        parts.append(STDIN_MARKER if send_prompt_via_stdin else shell_escape(prompt))

    return " ".join(parts)
