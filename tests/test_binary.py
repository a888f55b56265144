"""
Tests for codex binary discovery.
"""

from pathlib import Path
from unittest.mock import patch

from codex_exec.core.binary import (
    BinaryInfo,
    candidate_paths,
    detect_codex_binary,
    detect_nvm_bin_path,
    probe_version,
    resolve_binary,
    version_tuple,
)
from codex_exec.core.exec import ExecConfiguration


def _fake_binary(directory: Path, version: str | None, name: str = "codex") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    if version is None:
        path.write_text("#!/bin/sh\nexit 1\n")
    else:
        path.write_text(f"#!/bin/sh\necho 'codex-cli {version}'\n")
    path.chmod(0o755)
    return path


class TestVersionTuple:
    """Test version string parsing."""

    def test_cli_style(self):
        """Test the codex --version format."""
        assert version_tuple("codex-cli 0.63.0") == (0, 63, 0)

    def test_node_dir_style(self):
        """Test nvm directory names."""
        assert version_tuple("v20.11.1") == (20, 11, 1)

    def test_partial_and_missing(self):
        """Test missing parts default to zero."""
        assert version_tuple("1.2") == (1, 2, 0)
        assert version_tuple("unknown") == (0, 0, 0)


class TestDetection:
    """Test scanning PATH and nvm installs."""

    def test_probe_version(self, tmp_path):
        """Test probing reports stdout of --version."""
        assert probe_version(str(_fake_binary(tmp_path, "1.0.0"))) == "codex-cli 1.0.0"

    def test_probe_failure(self, tmp_path):
        """Test a failing or missing binary has no version."""
        assert probe_version(str(_fake_binary(tmp_path, None))) is None
        assert probe_version(str(tmp_path / "missing")) is None

    def test_newest_binary_wins(self, tmp_path, monkeypatch):
        """Test the highest reported version is selected across locations."""
        old = _fake_binary(tmp_path / "a", "0.9.0")
        new = _fake_binary(tmp_path / "nvm" / "versions" / "node" / "v20.0.0" / "bin", "0.63.1")
        _fake_binary(tmp_path / "broken", None)
        monkeypatch.setenv("PATH", f"{tmp_path / 'a'}:{tmp_path / 'broken'}")
        monkeypatch.setenv("NVM_DIR", str(tmp_path / "nvm"))

        with patch("codex_exec.core.binary.COMMON_BIN_DIRS", ()):
            info = detect_codex_binary()

        assert info == BinaryInfo(path=str(new), version="codex-cli 0.63.1")
        assert str(old) in candidate_paths()

    def test_nothing_found(self, tmp_path, monkeypatch):
        """Test detection returns None without candidates."""
        monkeypatch.setenv("PATH", str(tmp_path))
        with patch("codex_exec.core.binary.COMMON_BIN_DIRS", ()):
            assert detect_codex_binary() is None

    def test_candidates_deduplicated(self, tmp_path, monkeypatch):
        """Test a directory listed twice yields one candidate."""
        binary = _fake_binary(tmp_path / "bin", "1.0.0")
        monkeypatch.setenv("PATH", f"{tmp_path / 'bin'}:{tmp_path / 'bin'}")
        with patch("codex_exec.core.binary.COMMON_BIN_DIRS", ()):
            assert candidate_paths() == [str(binary)]

    def test_nvm_bin_path(self, tmp_path, monkeypatch):
        """Test the numerically newest node version containing codex is chosen."""
        node = tmp_path / "nvm" / "versions" / "node"
        _fake_binary(node / "v9.1.0" / "bin", "0.1.0")
        _fake_binary(node / "v18.2.0" / "bin", "0.1.0")
        (node / "v22.0.0" / "bin").mkdir(parents=True)
        monkeypatch.setenv("NVM_DIR", str(tmp_path / "nvm"))

        assert detect_nvm_bin_path() == str(node / "v18.2.0" / "bin")


class TestResolveBinary:
    """Test resolving the configured command."""

    def test_bare_name_replaced(self):
        """Test a bare command is replaced by the detected path."""
        config = ExecConfiguration(command="codex")
        detected = BinaryInfo(path="/opt/codex/bin/codex", version="codex-cli 1.2.3")

        with patch("codex_exec.core.binary.detect_codex_binary", return_value=detected):
            resolved, version = resolve_binary(config)

        assert resolved.command == "/opt/codex/bin/codex"
        assert version == "codex-cli 1.2.3"
        assert config.command == "codex"

    def test_bare_name_not_found(self):
        """Test the configuration is kept when nothing is detected."""
        config = ExecConfiguration(command="codex")
        with patch("codex_exec.core.binary.detect_codex_binary", return_value=None):
            assert resolve_binary(config) == (config, None)

    def test_explicit_path_probed(self, tmp_path):
        """Test an explicit path is kept and only probed."""
        binary = _fake_binary(tmp_path, "2.0.0")
        config = ExecConfiguration(command=str(binary))

        with patch("codex_exec.core.binary.detect_codex_binary") as mock_detect:
            resolved, version = resolve_binary(config)

        mock_detect.assert_not_called()
        assert resolved is config
        assert version == "codex-cli 2.0.0"
