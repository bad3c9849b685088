"""State migration engine.

Architecture:
- keys: immutable key tables, one per schema version
- context: routing of reads and writes to the three stores
- detector: schema version detection (marker, then sentinel keys)
- steps: the ordered v1 -> v2 -> v3 -> v4 chain
- service: orchestrator entry point, ``migrate_if_needed()``
"""

from state_migrator.migration.context import MigrationContext
from state_migrator.migration.detector import VersionDetector
from state_migrator.migration.service import (
    MigrationResult,
    StateMigrationService,
    validate_chain,
)
from state_migrator.migration.steps import MIGRATION_STEPS, MigrationStep

__all__ = [
    "MIGRATION_STEPS",
    "MigrationContext",
    "MigrationResult",
    "MigrationStep",
    "StateMigrationService",
    "VersionDetector",
    "validate_chain",
]
