"""Contractdrift custom exceptions."""


class ContractDriftError(Exception):
    """Base exception for contractdrift errors."""


class ProjectRootError(ContractDriftError):
    """Project root is missing, not a directory, or unreadable."""


class ConfigError(ContractDriftError):
    """Invalid engine configuration."""


class ExtractionError(ContractDriftError):
    """Error extracting symbols or usages from a source file."""
