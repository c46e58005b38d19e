"""
Core module: data models, exceptions, configuration.

Models (models.py):
    - SourceFile / DependencyEdge: nodes and edges of the source graph
    - ExportedFunction / ExportedShape: contracts declared in shared files
    - UsageSite: a call or field access in consumer code
    - Mismatch / Finding: a near-miss against a contract, and its report form

Exceptions (exceptions.py):
    - ContractDriftError: Base exception for all contractdrift errors
    - ProjectRootError: Project root missing or unreadable
    - ConfigError: Invalid configuration values
    - ExtractionError: A source file could not be analysed

Configuration (config.py):
    - EngineConfig: validated settings for a checking session

The graph (graph/), the export index (index.py) and the session driver
(engine.py) build on these.
"""

from contractdrift.core.config import EngineConfig
from contractdrift.core.exceptions import (
    ConfigError,
    ContractDriftError,
    ExtractionError,
    ProjectRootError,
)
from contractdrift.core.models import (
    ChangeKind,
    ChangeResult,
    CheckResult,
    DependencyEdge,
    ExportedFunction,
    ExportedShape,
    Finding,
    Mismatch,
    MismatchKind,
    Role,
    RunStats,
    SourceFile,
    UsageSite,
)

__all__ = [
    # Models
    "ChangeKind",
    "ChangeResult",
    "CheckResult",
    "DependencyEdge",
    "ExportedFunction",
    "ExportedShape",
    "Finding",
    "Mismatch",
    "MismatchKind",
    "Role",
    "RunStats",
    "SourceFile",
    "UsageSite",
    # Exceptions
    "ContractDriftError",
    "ConfigError",
    "ExtractionError",
    "ProjectRootError",
    # Configuration
    "EngineConfig",
]
