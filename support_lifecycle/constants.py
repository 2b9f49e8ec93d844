# support_lifecycle/constants.py
"""
Centralized magic constants organized by domain.

Page sizes here are part of the observable behaviour of the lifecycle jobs
(short-page termination, round accounting), so change them deliberately.
"""


class PurgeDefaults:
    """Hard reset purge loop."""

    BATCH_SIZE = 200                    # Rows fetched and deleted per round
    PROBE_SIZE = 1                      # Rows fetched by the post-reset existence check


class RetentionPageSizes:
    """Page sizes for scheduled retention and learning reset loops."""

    ARCHIVE = 200                       # Conversations archived per page
    DELETE_ARCHIVED = 100               # Archived conversations deleted per page
    AUDIT_LOG = 250                     # Expired action log rows deleted per page
    LEARNING_CONVERSATIONS = 200        # Conversations cleared per page
    LEARNING_AI_COMMENTS = 250          # Triage AI comments deleted per page


class BackupIntervals:
    """Backup cadence in hours, keyed by schedule name."""

    HOURS = {
        "hourly": 1,
        "daily": 24,
        "weekly": 24 * 7,
        "monthly": 24 * 30,
    }
    DEFAULT_SCHEDULE = "daily"


class ExportLimits:
    """Audit log export bounds."""

    DEFAULT_ROWS = 1000
    MIN_ROWS = 1
    MAX_ROWS = 5000


class PasswordRules:
    """Password policy thresholds."""

    MIN_LENGTH = 8


LEARNING_AI_COMMENT_SOURCE = "triage_ai"
SYSTEM_ACTOR = "system"
REDACTED_EMAIL = "[redacted-email]"
