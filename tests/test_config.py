"""
Tests for YAML config loading and defaults.
"""

from pathlib import Path

import pytest

from cli_reinstaller.config import ReinstallConfig, load_config


class TestDefaults:
    def test_target_defaults(self):
        cfg = ReinstallConfig(raw={}, environ={})
        assert cfg.command == "iflow"
        assert cfg.package == "@iflow-ai/iflow-cli"
        assert cfg.npm_aliases == ["@iflow-ai/iflow-cli", "iflow-cli", "iflow"]
        assert cfg.os_packages == ["iflow", "iflow-cli"]
        assert "~/.nvm/versions/node/*/bin/iflow" in cfg.binary_paths
        assert cfg.config_dirs == ["~/.iflow", "~/.config/iflow", "~/.cache/iflow", "~/.local/share/iflow"]

    def test_runtime_defaults(self):
        cfg = ReinstallConfig(raw={}, environ={})
        assert cfg.node_min_major == 20
        assert cfg.node_version == "22"
        assert cfg.registry == "https://registry.npmjs.org"
        assert cfg.nvm_dir == "~/.nvm"
        assert cfg.nvm_archive_url == "https://github.com/nvm-sh/nvm/archive/refs/tags/v0.40.3.tar.gz"
        assert (cfg.connect_timeout, cfg.max_time) == (10, 60)
        assert cfg.uv_enabled is True

    def test_environment_overrides(self):
        cfg = ReinstallConfig(
            raw={"nvm": {"version": "v0.39.0"}},
            environ={"NVM_DIR": "/opt/nvm", "NVM_VERSION": "v0.40.1", "NODE_VERSION": "20"},
        )
        assert cfg.nvm_dir == "/opt/nvm"
        assert cfg.nvm_version == "v0.40.1"
        assert cfg.node_version == "20"
        assert cfg.nvm_archive_url.endswith("/v0.40.1.tar.gz")

    def test_derived_names_follow_command(self):
        cfg = ReinstallConfig(raw={"target": {"command": "qwen", "package": "@qwen/cli"}}, environ={})
        assert cfg.npm_aliases == ["@qwen/cli", "qwen-cli", "qwen"]
        assert "/opt/qwen-cli" in cfg.binary_paths

    def test_bad_section_type(self):
        cfg = ReinstallConfig(raw={"target": ["nope"]}, environ={})
        with pytest.raises(ValueError):
            _ = cfg.command


class TestLoadConfig:
    def test_none_means_defaults(self):
        cfg = load_config(None, environ={})
        assert cfg.raw == {}

    def test_reads_yaml(self, tmp_path: Path):
        p = tmp_path / "reinstall.yaml"
        p.write_text(
            "target:\n"
            "  command: foo\n"
            "  os_packages: [foo-bin]\n"
            "runtime:\n"
            "  min_major: 18\n"
            "optional_tools:\n"
            "  uv:\n"
            "    enabled: false\n"
        )
        cfg = load_config(str(p), environ={})
        assert cfg.command == "foo"
        assert cfg.os_packages == ["foo-bin"]
        assert cfg.node_min_major == 18
        assert cfg.uv_enabled is False

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_rejects_non_yaml(self, tmp_path: Path):
        p = tmp_path / "reinstall.json"
        p.write_text("{}")
        with pytest.raises(ValueError):
            load_config(str(p))

    def test_rejects_non_mapping(self, tmp_path: Path):
        p = tmp_path / "reinstall.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(str(p))

    def test_example_config_parses(self, project_root: Path):
        cfg = load_config(str(project_root / "reinstall.example.yaml"), environ={})
        assert cfg.command == "iflow"
        assert cfg.node_version == "22"
