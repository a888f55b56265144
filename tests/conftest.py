"""
Pytest configuration and shared fixtures.

Process-level tests run real child processes: small POSIX shell scripts
written into tmp_path stand in for the codex CLI and are hosted by
/bin/sh without a login shell.
"""

import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from codex_exec.core.config import clear_cache
from codex_exec.core.exec import ExecClient, ExecConfiguration

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, dotenv files and CODEX_EXEC_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("CODEX_EXEC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("NVM_DIR", str(tmp_path / "no-nvm"))
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Provide an empty project directory as the working directory."""
    directory = tmp_path / "project"
    directory.mkdir()
    monkeypatch.chdir(directory)
    return directory


# ==============================================================================
# Fake codex CLI
# ==============================================================================


@pytest.fixture
def fake_codex(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing an executable shell script that plays the codex CLI."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(body: str, name: str = "codex") -> Path:
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def make_client() -> Callable[..., ExecClient]:
    """Factory for an ExecClient running a script through plain /bin/sh."""

    def _make(script: Path, **config: object) -> ExecClient:
        configuration = ExecConfiguration(
            command=str(script),
            shell="/bin/sh",
            use_login_shell=False,
            **config,
        )
        return ExecClient(configuration)

    return _make
