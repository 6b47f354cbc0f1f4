"""
Tests for the install run, credential extraction and credential output.
"""

import io
import stat
from pathlib import Path

import pytest

from hostboot.adapters.mock import FakeEnvironment
from hostboot.core.errors import CredentialNotFoundError, OutputWriteError
from hostboot.core.models.config import OutputSettings
from hostboot.core.services.bootstrap.detection.host_context import detect_host_context
from hostboot.core.services.bootstrap.execution.credentials import CredentialExtractor
from hostboot.core.services.bootstrap.execution.output_writer import OutputWriter
from hostboot.core.services.bootstrap.execution.process_runner import (
    EXIT_NOT_STARTED,
    ProcessRunner,
    TeeWriter,
)

TOOL = "/usr/local/bin/bloodhound-cli"
QUERY = [TOOL, "config", "get", "default_password"]

INSTALL_OUTPUT = (
    b"[+] Pulling images\n"
    b"[+] Starting containers\n"
    b"[+] Initial password: Xk9mP2qR7vL4\n"
    b"[+] Done\n"
)


# ── Tee / process runner ─────────────────────────────────────────────


class TestTeeWriter:
    def test_both_sinks_get_same_bytes(self):
        console, capture = io.BytesIO(), io.BytesIO()
        tee = TeeWriter(console, capture)
        total = tee.pump(io.BytesIO(INSTALL_OUTPUT), chunk_size=7)
        assert total == len(INSTALL_OUTPUT)
        assert console.getvalue() == INSTALL_OUTPUT
        assert capture.getvalue() == INSTALL_OUTPUT

    def test_empty_chunk_ignored(self):
        console, capture = io.BytesIO(), io.BytesIO()
        tee = TeeWriter(console, capture)
        tee.write(b"")
        assert tee.bytes_written == 0


class TestProcessRunner:
    def test_run_captures_output(self, tmp_path):
        env = FakeEnvironment()
        env.set_spawn(TOOL, "install", output=INSTALL_OUTPUT)
        console = io.BytesIO()

        run = ProcessRunner(env, console=console, capture_dir=str(tmp_path)).run(TOOL, ["install"])

        assert run.ok
        assert run.argv == [TOOL, "install"]
        assert run.bytes_captured == len(INSTALL_OUTPUT)
        assert Path(run.log_path).read_bytes() == INSTALL_OUTPUT
        assert console.getvalue() == INSTALL_OUTPUT

    def test_nonzero_exit_is_recorded(self, tmp_path):
        env = FakeEnvironment()
        env.set_spawn(TOOL, output=b"error: port 8080 in use\n", returncode=2)
        run = ProcessRunner(env, console=io.BytesIO(), capture_dir=str(tmp_path)).run(TOOL, ["install"])
        assert run.exit_status == 2
        assert not run.ok
        assert Path(run.log_path).read_bytes() == b"error: port 8080 in use\n"

    def test_unique_capture_files(self, tmp_path):
        env = FakeEnvironment()
        env.set_spawn(TOOL, output=b"x")
        runner = ProcessRunner(env, console=io.BytesIO(), capture_dir=str(tmp_path))
        assert runner.run(TOOL, ["install"]).log_path != runner.run(TOOL, ["install"]).log_path

    def test_cannot_start(self, tmp_path):
        env = FakeEnvironment()
        run = ProcessRunner(env, console=io.BytesIO(), capture_dir=str(tmp_path)).run(TOOL, ["install"])
        assert run.exit_status == EXIT_NOT_STARTED
        assert Path(run.log_path).read_bytes() == b""


# ── Extraction ───────────────────────────────────────────────────────


class TestCredentialExtractor:
    def test_from_log(self, tmp_path):
        log = tmp_path / "capture.log"
        log.write_bytes(INSTALL_OUTPUT)
        env = FakeEnvironment()

        extractor = CredentialExtractor(env)
        assert extractor.extract(str(log), QUERY) == "Xk9mP2qR7vL4"
        assert extractor.source == "log"
        assert not env.ran(TOOL)

    def test_fallback_query(self, tmp_path):
        log = tmp_path / "capture.log"
        log.write_bytes(b"[+] Done\n")
        env = FakeEnvironment()
        env.set_result(*QUERY, stdout="Fb7secret\r\n")

        extractor = CredentialExtractor(env)
        assert extractor.extract(str(log), QUERY) == "Fb7secret"
        assert extractor.source == "query"

    def test_fallback_failure(self, tmp_path):
        log = tmp_path / "capture.log"
        log.write_bytes(b"")
        env = FakeEnvironment()
        env.set_result(TOOL, returncode=1, stderr="config key not set")

        extractor = CredentialExtractor(env)
        assert extractor.extract(str(log), QUERY) is None
        assert extractor.source is None

    def test_both_empty(self, tmp_path):
        log = tmp_path / "capture.log"
        log.write_bytes(b"nothing useful\n")
        assert CredentialExtractor(FakeEnvironment()).extract(str(log), QUERY) is None

    def test_missing_log_uses_fallback(self, tmp_path):
        env = FakeEnvironment()
        env.set_result(*QUERY, stdout="abc\n")
        assert CredentialExtractor(env).extract(str(tmp_path / "gone.log"), QUERY) == "abc"

    def test_credential_never_logged(self, tmp_path, caplog):
        log = tmp_path / "capture.log"
        log.write_bytes(INSTALL_OUTPUT)
        with caplog.at_level("DEBUG"):
            CredentialExtractor(FakeEnvironment()).extract(str(log), QUERY)
        assert "Xk9mP2qR7vL4" not in caplog.text


# ── Output ───────────────────────────────────────────────────────────


class TestOutputWriter:
    def test_write_to_invoking_home(self, fake_env, home_dir):
        ctx = detect_host_context(fake_env)
        path = OutputWriter(fake_env, OutputSettings()).write("Xk9mP2qR7vL4", ctx)

        assert path == home_dir / "bloodhound-ce" / "admin-password.txt"
        assert path.read_text() == "Xk9mP2qR7vL4\n"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert stat.S_IMODE(path.parent.stat().st_mode) == 0o700

    def test_chowned_to_invoking_user(self, fake_env):
        ctx = detect_host_context(fake_env)
        path = OutputWriter(fake_env, OutputSettings()).write("abc", ctx)
        assert (str(path), 1000, 1000) in fake_env.chowns
        assert (str(path.parent), 1000, 1000) in fake_env.chowns

    def test_no_credential_writes_nothing(self, fake_env, home_dir):
        ctx = detect_host_context(fake_env)
        with pytest.raises(CredentialNotFoundError) as exc:
            OutputWriter(fake_env, OutputSettings()).write(None, ctx)
        assert exc.value.stage == "output"
        assert not (home_dir / "bloodhound-ce").exists()

    def test_overwrite_is_complete(self, fake_env):
        ctx = detect_host_context(fake_env)
        writer = OutputWriter(fake_env, OutputSettings())
        writer.write("a-much-longer-first-credential", ctx)
        path = writer.write("short", ctx)
        assert path.read_text() == "short\n"
        assert [p.name for p in path.parent.iterdir()] == ["admin-password.txt"]

    def test_unknown_user_degrades_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        env = FakeEnvironment(invoking="ghost")
        ctx = detect_host_context(env)

        writer = OutputWriter(env, OutputSettings())
        path = writer.write("abc", ctx)

        assert writer.degraded
        assert path == tmp_path / "bloodhound-ce" / "admin-password.txt"
        assert env.chowns == []

    def test_blocked_directory_is_an_output_error(self, fake_env, home_dir):
        (home_dir / "bloodhound-ce").write_text("not a directory\n")
        ctx = detect_host_context(fake_env)

        with pytest.raises(OutputWriteError) as exc:
            OutputWriter(fake_env, OutputSettings()).write("Xk9mP2qR7vL4", ctx)

        assert exc.value.stage == "output"
        assert exc.value.describe().startswith("[output] OutputWriteError: ")
        assert "Xk9mP2qR7vL4" not in str(exc.value)

    def test_ownership_failure_is_an_output_error(self, fake_env, home_dir):
        def refuse(path, uid, gid):
            raise PermissionError(1, "Operation not permitted", path)

        fake_env.chown = refuse
        ctx = detect_host_context(fake_env)

        with pytest.raises(OutputWriteError, match="Operation not permitted"):
            OutputWriter(fake_env, OutputSettings()).write("abc", ctx)
