"""hostboot — host bootstrap orchestrator for containerized applications."""

__version__ = "0.1.0"
