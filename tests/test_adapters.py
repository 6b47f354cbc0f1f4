"""
Tests for the real HostEnvironment and the FakeEnvironment test double.

HostEnvironment tests only run harmless commands (sh, echo, sleep).
"""

import io
import os
from pathlib import Path

from hostboot.adapters.host import HostEnvironment, parse_os_release
from hostboot.adapters.mock import FakeEnvironment
from hostboot.core.services.bootstrap.execution.process_runner import ProcessRunner

# ── HostEnvironment ──────────────────────────────────────────────────


class TestHostRun:
    def test_success(self):
        r = HostEnvironment().run(["sh", "-c", "echo hello"])
        assert r.ok
        assert r.stdout == "hello\n"

    def test_failure_is_data(self):
        r = HostEnvironment().run(["sh", "-c", "echo oops >&2; exit 3"])
        assert not r.ok
        assert r.returncode == 3
        assert r.stderr == "oops\n"
        assert r.describe() == "exit 3: oops"

    def test_not_found(self):
        r = HostEnvironment().run(["hostboot-no-such-command"])
        assert r.returncode == 127
        assert "not found" in r.error

    def test_timeout(self):
        r = HostEnvironment().run(["sleep", "5"], timeout=1)
        assert r.returncode == 124
        assert "timed out" in r.error

    def test_extra_env(self):
        r = HostEnvironment().run(["sh", "-c", "echo $DEBIAN_FRONTEND"], env={"DEBIAN_FRONTEND": "noninteractive"})
        assert r.stdout.strip() == "noninteractive"


class TestHostSpawn:
    def test_merged_output_through_runner(self, tmp_path):
        console = io.BytesIO()
        runner = ProcessRunner(HostEnvironment(), console=console, capture_dir=str(tmp_path))
        run = runner.run("sh", ["-c", "echo 'password: abc'; echo warn >&2; exit 4"])

        assert run.exit_status == 4
        captured = Path(run.log_path).read_bytes()
        assert captured == console.getvalue()
        assert b"password: abc\n" in captured
        assert b"warn\n" in captured

    def test_missing_binary(self, tmp_path):
        runner = ProcessRunner(HostEnvironment(), console=io.BytesIO(), capture_dir=str(tmp_path))
        assert runner.run("hostboot-no-such-command", []).exit_status == 127


class TestHostMisc:
    def test_refuses_plain_http(self, tmp_path):
        result = HostEnvironment().fetch("http://example.com/key", str(tmp_path / "key"))
        assert not result.ok
        assert "non-HTTPS" in result.error
        assert not (tmp_path / "key").exists()

    def test_lookup_unknown_user(self):
        assert HostEnvironment().lookup_user("hostboot-no-such-user") is None

    def test_identity_without_sudo(self, monkeypatch):
        monkeypatch.delenv("SUDO_UID", raising=False)
        monkeypatch.delenv("SUDO_USER", raising=False)
        identity = HostEnvironment().identity()
        assert identity.effective == identity.invoking
        assert identity.effective_uid == os.geteuid()


class TestParseOsRelease:
    def test_parse(self):
        text = 'NAME="Debian GNU/Linux"\nVERSION_CODENAME=bookworm\n# comment\n\nID=debian\n'
        info = parse_os_release(text)
        assert info == {"NAME": "Debian GNU/Linux", "VERSION_CODENAME": "bookworm", "ID": "debian"}


# ── FakeEnvironment ──────────────────────────────────────────────────


class TestFakeEnvironment:
    def test_unscripted_command_succeeds(self):
        env = FakeEnvironment()
        assert env.run(["anything"]).ok
        assert env.calls == [["anything"]]

    def test_longest_prefix_wins(self):
        env = FakeEnvironment()
        env.set_result("apt-get", returncode=1)
        env.set_result("apt-get", "update", returncode=0)
        assert env.run(["apt-get", "update"]).ok
        assert not env.run(["apt-get", "install", "-y", "x"]).ok

    def test_queued_results(self):
        env = FakeEnvironment()
        env.push_result("docker", "info", returncode=1)
        env.push_result("docker", "info", returncode=0)
        assert not env.run(["docker", "info"]).ok
        assert env.run(["docker", "info"]).ok
        assert env.run(["docker", "info"]).ok

    def test_fetch(self, tmp_path):
        env = FakeEnvironment()
        env.set_payload("https://x/key", b"data")
        dest = tmp_path / "key"
        result = env.fetch("https://x/key", str(dest))
        assert result.ok and result.size_bytes == 4
        assert dest.read_bytes() == b"data"
        assert not env.fetch("https://x/other", str(tmp_path / "other")).ok
