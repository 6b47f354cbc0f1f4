"""
Domain models — Pydantic types for the orchestrator.

All models are re-exported here for convenient access:

    from hostboot.core.models import HostContext, BootstrapConfig, InstallRun
"""

from hostboot.core.models.artifacts import InstallRun, ReleaseArtifact, RepositoryDescriptor
from hostboot.core.models.config import (
    ArtifactSettings,
    BootstrapConfig,
    OutputSettings,
    RepositoryFamily,
    RepositorySettings,
    RuntimeSettings,
    ToolSettings,
)
from hostboot.core.models.host import HostContext, Identity, UserRecord
from hostboot.core.models.package import PackageSpec, PackageStatus
from hostboot.core.models.report import PipelineReport, StageResult

__all__ = [
    # artifacts.py
    "InstallRun",
    "ReleaseArtifact",
    "RepositoryDescriptor",
    # config.py
    "ArtifactSettings",
    "BootstrapConfig",
    "OutputSettings",
    "RepositoryFamily",
    "RepositorySettings",
    "RuntimeSettings",
    "ToolSettings",
    # host.py
    "HostContext",
    "Identity",
    "UserRecord",
    # package.py
    "PackageSpec",
    "PackageStatus",
    # report.py
    "PipelineReport",
    "StageResult",
]
