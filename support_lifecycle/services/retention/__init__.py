# support_lifecycle/services/retention/__init__.py
"""
Retention and purge services for support data.

Services:
- purger: Bounded-batch, safety-stopped delete loop (best-effort)
- enforcer: Scheduled archival / deletion / audit log pruning (fail-loud)
- hard_reset: Whole-tenant purge of support entities (admin only)
- learning_reset: Clearing of triage learning signal (admin only)
"""

from support_lifecycle.services.retention.enforcer import (
    RetentionResult,
    delete_conversation_cascade,
    enforce_retention_policy,
    retention_cutoff,
)
from support_lifecycle.services.retention.hard_reset import (
    HARD_RESET_TARGETS,
    HardResetResult,
    hard_reset_support_data,
)
from support_lifecycle.services.retention.learning_reset import (
    LearningResetResult,
    reset_support_learning,
)
from support_lifecycle.services.retention.purger import PurgeStats, purge_paginated

__all__ = [
    # Purge
    "purge_paginated",
    "PurgeStats",
    # Retention
    "enforce_retention_policy",
    "retention_cutoff",
    "delete_conversation_cascade",
    "RetentionResult",
    # Hard reset
    "hard_reset_support_data",
    "HARD_RESET_TARGETS",
    "HardResetResult",
    # Learning
    "reset_support_learning",
    "LearningResetResult",
]
