"""
contractdrift: contract drift detection for TypeScript/JavaScript projects.

contractdrift indexes the functions, class methods and data shapes exported
by shared files, then checks client and server code for near-miss usages:
- Calls to renamed or misspelled functions
- Calls with too few arguments or misnamed object keys
- Field accesses that drift from a declared shape

Usage:
    from contractdrift.core import EngineConfig
    from contractdrift.core.engine import ContractEngine

    engine = ContractEngine(EngineConfig(shared_dirs=["shared"]))
    result = engine.run(Path("."))
    for finding in result.findings:
        print(finding.file, finding.line, finding.message)
"""

__version__ = "0.1.0"
