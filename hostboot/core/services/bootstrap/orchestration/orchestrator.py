"""
L5 Orchestration — The bootstrap pipeline.

Strictly sequential, fail-fast:

    preflight → repository → runtime → service → artifact
              → install → credential → output

Each stage's success is a precondition for the next. The first fatal
error is stamped with the stage label, recorded on the report, and
re-raised; later stages never run and are recorded as ``skipped``.
The install run and credential extraction tolerate partial failure
(non-zero exit, no credential) and only the output stage turns
"no credential" into a fatal error.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO, Callable

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import BootstrapError, SubprocessError
from hostboot.core.models.artifacts import InstallRun, ReleaseArtifact, RepositoryDescriptor
from hostboot.core.models.config import BootstrapConfig
from hostboot.core.models.host import HostContext
from hostboot.core.models.report import PipelineReport, StageResult
from hostboot.core.observability.logging_config import register_secret
from hostboot.core.services.bootstrap.detection.host_context import detect_host_context
from hostboot.core.services.bootstrap.detection.service_status import get_service_status
from hostboot.core.services.bootstrap.execution.artifact import ArtifactInstaller
from hostboot.core.services.bootstrap.execution.credentials import CredentialExtractor
from hostboot.core.services.bootstrap.execution.output_writer import OutputWriter
from hostboot.core.services.bootstrap.execution.package_manager import AptPackageManager
from hostboot.core.services.bootstrap.execution.preflight import PreflightChecker
from hostboot.core.services.bootstrap.execution.process_runner import ProcessRunner
from hostboot.core.services.bootstrap.execution.repository import RepositoryConfigurator
from hostboot.core.services.bootstrap.execution.service import ServiceActivator

logger = logging.getLogger(__name__)

STAGES: tuple[str, ...] = (
    "preflight",
    "repository",
    "runtime",
    "service",
    "artifact",
    "install",
    "credential",
    "output",
)


class BootstrapPipeline:
    """Wires the stage components together over one SystemEnvironment."""

    def __init__(
        self,
        env: SystemEnvironment,
        config: BootstrapConfig,
        *,
        console: BinaryIO | None = None,
        capture_dir: str | None = None,
    ):
        self.env = env
        self.config = config

        self.packages = AptPackageManager(env)
        self.preflight = PreflightChecker(
            env,
            self.packages,
            prerequisites=config.prerequisites,
            interpreter=config.interpreter,
        )
        self.repository = RepositoryConfigurator(env, self.packages, config.repository)
        self.service = ServiceActivator(env, config.runtime)
        self.artifacts = ArtifactInstaller(env, config.artifact)
        self.runner = ProcessRunner(env, console=console, capture_dir=capture_dir)
        self.extractor = CredentialExtractor(env, fallback_timeout=config.tool.fallback_timeout)
        self.writer = OutputWriter(env, config.output)

        self.report = PipelineReport()
        self.context: HostContext | None = None
        self.descriptor: RepositoryDescriptor | None = None
        self.artifact: ReleaseArtifact | None = None
        self.install_run: InstallRun | None = None
        self._credential: str | None = None

    # ── Driver ──────────────────────────────────────────────────

    def run(self) -> PipelineReport:
        """Run every stage in order.

        After a failure the stages that never ran are recorded as
        ``skipped``, so the report always lists all of ``STAGES``.

        Raises:
            BootstrapError: The first fatal stage failure, with ``stage`` set.
        """
        try:
            for name in STAGES:
                self._stage(name, getattr(self, f"_run_{name}"))
        except Exception:
            self._skip_remaining()
            raise
        finally:
            self._credential = None
            self.report.ended_at = datetime.now(UTC).isoformat()
        return self.report

    def _skip_remaining(self) -> None:
        seen = {s.stage for s in self.report.stages}
        detail = f"not run: {self.report.failed_stage} failed"
        for name in STAGES:
            if name not in seen:
                self.report.add(StageResult(stage=name, status="skipped", detail=detail))

    def _stage(self, name: str, fn: Callable[[], dict]) -> None:
        logger.info("── %s ──", name)
        start = time.monotonic()
        try:
            metadata = fn()
        except BootstrapError as e:
            e.stage = name
            self._record(name, start, status="failed", error=f"{e.__class__.__name__}: {e}")
            logger.error("%s", e.describe())
            raise
        except Exception as e:
            self._record(name, start, status="failed", error=f"{e.__class__.__name__}: {e}")
            logger.exception("Unexpected failure in stage %s", name)
            raise
        self._record(name, start, status="ok", metadata=metadata)

    def _record(self, name: str, start: float, **fields) -> None:
        metadata = fields.pop("metadata", None) or {}
        self.report.add(
            StageResult(
                stage=name,
                duration_ms=int((time.monotonic() - start) * 1000),
                detail=str(metadata.pop("detail", "")),
                metadata=metadata,
                **fields,
            )
        )

    def _warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.report.warnings.append(message)

    # ── Stages ──────────────────────────────────────────────────

    def _run_preflight(self) -> dict:
        self.context = detect_host_context(self.env)
        summary = self.preflight.check(self.context)
        return {"detail": "host ready", "host": self.context.to_dict(), **summary}

    def _run_repository(self) -> dict:
        assert self.context is not None
        self.descriptor = self.repository.configure(self.context)
        return {
            "detail": self.descriptor.source_line,
            "family": self.descriptor.family,
            "codename": self.descriptor.codename,
            "detected_codename": self.context.codename,
        }

    def _run_runtime(self) -> dict:
        rt = self.config.runtime
        installed = self.packages.install_first_available(rt.preferred_packages, rt.fallback_packages)
        self.packages.clean_cache()
        return {"detail": " ".join(installed), "packages": installed}

    def _run_service(self) -> dict:
        assert self.context is not None
        summary = self.service.ensure_running()
        if self.context.identity.escalated:
            summary["group_granted"] = self.service.grant_access(self.context.identity.invoking)
        return {"detail": f"{summary['service']} responsive", **summary}

    def _run_artifact(self) -> dict:
        assert self.context is not None
        self.artifact = self.artifacts.install_release(self.context.architecture)
        return {"detail": self.artifact.install_path, **self.artifact.model_dump()}

    def _run_install(self) -> dict:
        assert self.artifact is not None
        run = self.runner.run(self.artifact.install_path, self.config.tool.install_args)
        self.install_run = run
        if not run.ok:
            self._warn(SubprocessError(run.argv, run.exit_status).describe())
        return {
            "detail": f"exit {run.exit_status}",
            "exit_status": run.exit_status,
            "log_path": run.log_path,
        }

    def _run_credential(self) -> dict:
        assert self.install_run is not None and self.artifact is not None
        query = [self.artifact.install_path, *self.config.tool.fallback_query]
        self._credential = self.extractor.extract(self.install_run.log_path, query)
        register_secret(self._credential)
        if self._credential is None:
            self._warn("No credential found in installer output or via fallback query")
        return {
            "detail": f"source={self.extractor.source or 'none'}",
            "found": self._credential is not None,
            "source": self.extractor.source,
        }

    def _run_output(self) -> dict:
        assert self.context is not None
        credential, self._credential = self._credential, None
        path = self.writer.write(credential, self.context)
        self.report.credential_path = str(path)
        return {"detail": str(path), "path": str(path), "degraded": self.writer.degraded}


def collect_status(env: SystemEnvironment, config: BootstrapConfig) -> dict:
    """Read-only snapshot of how far a host has been bootstrapped.

    Does not require root and mutates nothing.
    """
    ctx = detect_host_context(env)
    repo = RepositoryConfigurator(env, AptPackageManager(env), config.repository)
    writer = OutputWriter(env, config.output)
    target, _ = writer.resolve_target(ctx)
    family_name, family = repo.family_for(ctx)

    return {
        "host": ctx.to_dict(),
        "repository": {
            "family": family_name,
            "codename": repo.resolve_codename(ctx.codename, family),
            "sources_present": Path(config.repository.sources_path).is_file(),
            "keyring_present": Path(config.repository.keyring_path).is_file(),
        },
        "runtime": get_service_status(env, config.runtime.service, config.runtime.probe),
        "tool": {
            "path": config.artifact.install_path,
            "installed": Path(config.artifact.install_path).is_file(),
        },
        "credential": {
            "path": str(target),
            "present": target.is_file(),
            "degraded_location": writer.degraded,
        },
    }
