"""
Tests for marker-guarded appends and pattern stripping.
"""

import threading
from pathlib import Path

from cli_reinstaller.lib.textpatch import append_once, strip_lines


class TestAppendOnce:
    def test_creates_missing_file(self, tmp_path: Path):
        profile = tmp_path / "sub" / ".bashrc"
        assert append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR") is True
        assert profile.read_text() == "export NVM_DIR=x\n"

    def test_second_append_is_noop(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        profile.write_text("alias ll='ls -l'\n")
        append_once(profile, "export NVM_DIR=x", marker="NVM_DIR")
        assert append_once(profile, "export NVM_DIR=x", marker="NVM_DIR") is False
        assert profile.read_text().count("NVM_DIR") == 1
        assert profile.read_text().startswith("alias ll='ls -l'\n")

    def test_adds_separator_newline(self, tmp_path: Path):
        profile = tmp_path / ".zshrc"
        profile.write_text("setopt autocd")
        append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR")
        assert profile.read_text() == "setopt autocd\nexport NVM_DIR=x\n"

    def test_existing_marker_anywhere_blocks_append(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        profile.write_text("# NVM_DIR handled elsewhere\n")
        assert append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR") is False

    def test_dry_run_leaves_file_alone(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        assert append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR", dry_run=True) is False
        assert not profile.exists()

    def test_preserves_mode(self, tmp_path: Path):
        profile = tmp_path / ".profile"
        profile.write_text("umask 022\n")
        profile.chmod(0o600)
        append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR")
        assert profile.stat().st_mode & 0o777 == 0o600

    def test_no_temp_files_left(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR")
        assert list(tmp_path.glob("*.tmp")) == []
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_concurrent_appends_insert_once(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        profile.write_text("")
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert profile.read_text().count("NVM_DIR") == 1

    def test_writes_through_symlinked_profile(self, tmp_path: Path):
        dotfiles = tmp_path / "dotfiles"
        dotfiles.mkdir()
        real = dotfiles / "bashrc"
        real.write_text("alias ll='ls -l'\n")
        link = tmp_path / ".bashrc"
        link.symlink_to(real)

        assert append_once(link, "export NVM_DIR=x\n", marker="NVM_DIR") is True

        assert link.is_symlink()
        assert real.read_text() == "alias ll='ls -l'\nexport NVM_DIR=x\n"
        assert append_once(link, "export NVM_DIR=x\n", marker="NVM_DIR") is False

    def test_non_utf8_profile_bytes_survive(self, tmp_path: Path):
        profile = tmp_path / ".bashrc"
        profile.write_bytes(b"# caf\xe9\n")

        assert append_once(profile, "export NVM_DIR=x\n", marker="NVM_DIR") is True

        assert profile.read_bytes() == b"# caf\xe9\nexport NVM_DIR=x\n"


class TestStripLines:
    PATTERN = r"^(prefix|globalconfig) *= *"

    def test_removes_conflicting_npmrc_lines(self, tmp_path: Path):
        npmrc = tmp_path / ".npmrc"
        npmrc.write_text(
            "prefix=/home/u/.npm-global\n"
            "registry=https://registry.npmmirror.com\n"
            "globalconfig = /etc/npmrc\n"
            "//registry.npmjs.org/:_authToken=abc\n"
        )
        assert strip_lines(npmrc, self.PATTERN) == 2
        assert npmrc.read_text() == (
            "registry=https://registry.npmmirror.com\n"
            "//registry.npmjs.org/:_authToken=abc\n"
        )

    def test_is_idempotent(self, tmp_path: Path):
        npmrc = tmp_path / ".npmrc"
        npmrc.write_text("prefix=/x\nsave-exact=true\n")
        strip_lines(npmrc, self.PATTERN)
        assert strip_lines(npmrc, self.PATTERN) == 0
        assert npmrc.read_text() == "save-exact=true\n"

    def test_missing_file(self, tmp_path: Path):
        assert strip_lines(tmp_path / ".npmrc", self.PATTERN) == 0
        assert not (tmp_path / ".npmrc").exists()

    def test_prefix_inside_other_key_is_kept(self, tmp_path: Path):
        npmrc = tmp_path / ".npmrc"
        npmrc.write_text("init-prefix=foo\n")
        assert strip_lines(npmrc, self.PATTERN) == 0

    def test_non_utf8_npmrc(self, tmp_path: Path):
        npmrc = tmp_path / ".npmrc"
        npmrc.write_bytes(b"prefix=/x\n; caf\xe9\n")
        assert strip_lines(npmrc, self.PATTERN) == 1
        assert npmrc.read_bytes() == b"; caf\xe9\n"

    def test_symlinked_npmrc_stays_a_link(self, tmp_path: Path):
        real = tmp_path / "npmrc.real"
        real.write_text("prefix=/x\nfund=false\n")
        link = tmp_path / ".npmrc"
        link.symlink_to(real)
        strip_lines(link, self.PATTERN)
        assert link.is_symlink()
        assert real.read_text() == "fund=false\n"
