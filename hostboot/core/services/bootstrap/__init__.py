"""
Host bootstrap service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (domain → detection → execution → orchestration)::

    from hostboot.core.services.bootstrap import BootstrapPipeline
"""

# ── L1: Domain ──
from hostboot.core.services.bootstrap.domain.credential_parse import (  # noqa: F401
    parse_credential,
)
from hostboot.core.services.bootstrap.domain.platform_names import (  # noqa: F401
    normalize_arch,
    remap_codename,
)
from hostboot.core.services.bootstrap.domain.version_constraint import (  # noqa: F401
    check_minimum_version,
    parse_semver,
)

# ── L3: Detection ──
from hostboot.core.services.bootstrap.detection.host_context import (  # noqa: F401
    detect_host_context,
)

# ── L4: Execution ──
from hostboot.core.services.bootstrap.execution.artifact import ArtifactInstaller  # noqa: F401
from hostboot.core.services.bootstrap.execution.credentials import CredentialExtractor  # noqa: F401
from hostboot.core.services.bootstrap.execution.output_writer import OutputWriter  # noqa: F401
from hostboot.core.services.bootstrap.execution.package_manager import AptPackageManager  # noqa: F401
from hostboot.core.services.bootstrap.execution.preflight import PreflightChecker  # noqa: F401
from hostboot.core.services.bootstrap.execution.process_runner import (  # noqa: F401
    ProcessRunner,
    TeeWriter,
)
from hostboot.core.services.bootstrap.execution.repository import RepositoryConfigurator  # noqa: F401
from hostboot.core.services.bootstrap.execution.service import ServiceActivator  # noqa: F401

# ── L5: Orchestration ──
from hostboot.core.services.bootstrap.orchestration.orchestrator import (  # noqa: F401
    STAGES,
    BootstrapPipeline,
    collect_status,
)
