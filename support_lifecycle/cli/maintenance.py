# support_lifecycle/cli/maintenance.py
"""
CLI commands for support data maintenance.

Usage:
    python -m support_lifecycle.cli.maintenance status
    python -m support_lifecycle.cli.maintenance init-config
    python -m support_lifecycle.cli.maintenance enforce-retention
    python -m support_lifecycle.cli.maintenance backup --force --as-user <user-id>
    python -m support_lifecycle.cli.maintenance hard-reset --as-user <user-id> --confirm
    python -m support_lifecycle.cli.maintenance export-audit --as-user <user-id> --format json
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()


def get_db_session():
    """Get a database session."""
    from support_lifecycle.database import SessionLocal

    return SessionLocal()


def _session_for(args) -> dict:
    return {"user": args.as_user} if getattr(args, "as_user", None) else {}


def _fail(message: str):
    print(f"Error: {message}")
    sys.exit(1)


def _write_export(export, output: str | None) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(export.content)
        print(f"Wrote {export.filename} ({export.count} rows) to {output}")
    else:
        print(export.content)


def cmd_status(args):
    """Show resolved settings and lifecycle bookkeeping."""
    from support_lifecycle.services.settings_resolver import get_app_configuration, load_support_settings

    db = get_db_session()
    try:
        config = get_app_configuration(db)
        settings = load_support_settings(config)

        print("\n=== Support Lifecycle Status ===\n")

        if config is None:
            print("App configuration: MISSING (run init-config)")
        else:
            print(f"Last backup: {config.last_backup_at or 'never'}")
            print(f"Last sync: {config.last_sync_at or 'never'}")

        print("\nRetention:")
        print(f"  Retention days: {settings.retention_days}")
        print(f"  Audit log retention days: {settings.audit_log_retention_days}")
        print(f"  Auto archive: {settings.auto_archive_enabled}")
        print(f"  Delete archived data: {settings.delete_archived_data}")

        print("\nBackup:")
        print(f"  Schedule: {settings.backup_schedule}")
        print(f"  Retention days: {settings.backup_retention_days}")

        print("\nAudit categories:")
        print(f"  auth: {settings.audit_log_auth}")
        print(f"  email_access: {settings.audit_log_email_access}")
        print(f"  config_change: {settings.audit_log_config_changes}")
        print(f"  export: {settings.audit_log_exports}")

        print()
    finally:
        db.close()


def cmd_init_config(args):
    """Create the configuration singleton if missing."""
    from support_lifecycle.database import init_db
    from support_lifecycle.services.settings_resolver import ensure_app_configuration

    if args.create_tables:
        init_db()
        print("Created missing tables")

    db = get_db_session()
    try:
        config = ensure_app_configuration(db)
        print(f"App configuration ready: {config.id}")
    finally:
        db.close()


def cmd_enforce_retention(args):
    """Run retention enforcement once, as the scheduler would."""
    from support_lifecycle.services.jobs import run_scheduled_retention

    db = get_db_session()
    try:
        print("\nEnforcing retention policy...\n")
        result = run_scheduled_retention(db)

        if not result["ok"]:
            if result.get("partial"):
                print(f"Partial counts: {result['partial']}")
            _fail(result["error"])

        print(f"Archived: {result['archived_count']}")
        print(f"Deleted: {result['deleted_count']}")
        print(f"Audit logs pruned: {result['audit_deleted']}")
    finally:
        db.close()


def cmd_backup(args):
    """Run a backup tick (forced runs need an admin user)."""
    from support_lifecycle.errors import SupportLifecycleError
    from support_lifecycle.models import PerformedVia
    from support_lifecycle.services.backup import run_backup
    from support_lifecycle.services.settings_resolver import get_app_configuration

    if args.force and not args.as_user:
        _fail("--force requires --as-user")

    db = get_db_session()
    try:
        config = get_app_configuration(db)
        if config is None:
            _fail("App configuration not found (run init-config)")

        try:
            result = run_backup(
                db,
                config,
                force=args.force,
                session=_session_for(args),
                performed_via=PerformedVia.CLI,
            )
        except SupportLifecycleError as e:
            _fail(str(e))

        if result.skipped:
            print("Backup not due; skipped")
        else:
            print(f"Backup ran at {result.ran_at.isoformat()} (forced: {result.forced})")
    finally:
        db.close()


def cmd_hard_reset(args):
    """Irreversibly delete all support data."""
    from support_lifecycle.errors import SupportLifecycleError
    from support_lifecycle.services.retention import hard_reset_support_data
    from support_lifecycle.services.settings_resolver import get_app_configuration

    if not args.confirm:
        print("Error: hard-reset requires --confirm")
        print("This deletes every conversation, message, classification and action log")
        sys.exit(1)

    db = get_db_session()
    try:
        print("\nHard resetting support data...\n")
        try:
            result = hard_reset_support_data(db, _session_for(args), config=get_app_configuration(db))
        except SupportLifecycleError as e:
            _fail(str(e))

        for key, stats in result.deleted.items():
            remaining = " (rows remain)" if result.remaining_any.get(key) else ""
            print(f"  {key}: deleted {stats.deleted}, failed {stats.failed}, rounds {stats.rounds}{remaining}")
        print(f"\nSync cursor cleared: {result.sync_cursor_cleared}")

        if any(result.remaining_any.values()):
            sys.exit(1)
    finally:
        db.close()


def cmd_reset_learning(args):
    """Clear playbook selection data and triage AI comments."""
    from support_lifecycle.errors import SupportLifecycleError
    from support_lifecycle.models import PerformedVia
    from support_lifecycle.services.retention import reset_support_learning
    from support_lifecycle.services.settings_resolver import get_app_configuration

    db = get_db_session()
    try:
        try:
            result = reset_support_learning(
                db, _session_for(args), get_app_configuration(db), performed_via=PerformedVia.CLI
            )
        except SupportLifecycleError as e:
            _fail(str(e))

        print(f"Conversations cleared: {result.cleared_conversations}")
        print(f"AI comments deleted: {result.deleted_ai_comments}")
    finally:
        db.close()


def cmd_export_audit(args):
    """Export the audit trail as CSV or JSON."""
    from support_lifecycle.errors import SupportLifecycleError
    from support_lifecycle.models import PerformedVia
    from support_lifecycle.services.exports import export_support_audit_logs
    from support_lifecycle.services.settings_resolver import get_app_configuration

    db = get_db_session()
    try:
        try:
            export = export_support_audit_logs(
                db,
                _session_for(args),
                get_app_configuration(db),
                limit=args.limit,
                export_format=args.format,
                performed_via=PerformedVia.CLI,
            )
        except (SupportLifecycleError, ValueError) as e:
            _fail(str(e))

        _write_export(export, args.output)
    finally:
        db.close()


def cmd_snapshot(args):
    """Export the backup policy and row counts."""
    from support_lifecycle.errors import SupportLifecycleError
    from support_lifecycle.models import PerformedVia
    from support_lifecycle.services.exports import export_support_backup_snapshot
    from support_lifecycle.services.settings_resolver import get_app_configuration

    db = get_db_session()
    try:
        try:
            export = export_support_backup_snapshot(
                db, _session_for(args), get_app_configuration(db), performed_via=PerformedVia.CLI
            )
        except SupportLifecycleError as e:
            _fail(str(e))

        _write_export(export, args.output)
    finally:
        db.close()


def main(argv=None):
    from support_lifecycle.config import get_settings
    from support_lifecycle.logging_config import configure_logging

    parser = argparse.ArgumentParser(
        description="Support Data Lifecycle CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check current status
  python -m support_lifecycle.cli.maintenance status

  # Run the daily retention job by hand
  python -m support_lifecycle.cli.maintenance enforce-retention

  # Force a backup as an admin
  python -m support_lifecycle.cli.maintenance backup --force --as-user <user-id>

  # Wipe all support data (irreversible)
  python -m support_lifecycle.cli.maintenance hard-reset --as-user <user-id> --confirm
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # status command
    status_parser = subparsers.add_parser("status", help="Show settings and bookkeeping")
    status_parser.set_defaults(func=cmd_status)

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Create the app configuration if missing")
    init_parser.add_argument(
        "--create-tables", action="store_true", help="Create missing tables first (local SQLite only)"
    )
    init_parser.set_defaults(func=cmd_init_config)

    # enforce-retention command
    retention_parser = subparsers.add_parser("enforce-retention", help="Archive, delete and prune by policy")
    retention_parser.set_defaults(func=cmd_enforce_retention)

    # backup command
    backup_parser = subparsers.add_parser("backup", help="Run a backup tick")
    backup_parser.add_argument("--force", action="store_true", help="Run regardless of schedule (admin only)")
    backup_parser.add_argument("--as-user", help="Admin user id for forced runs")
    backup_parser.set_defaults(func=cmd_backup)

    # hard-reset command
    reset_parser = subparsers.add_parser("hard-reset", help="Delete all support data")
    reset_parser.add_argument("--as-user", required=True, help="Admin user id")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm the irreversible reset")
    reset_parser.set_defaults(func=cmd_hard_reset)

    # reset-learning command
    learning_parser = subparsers.add_parser("reset-learning", help="Clear learned playbook selection data")
    learning_parser.add_argument("--as-user", required=True, help="Admin user id")
    learning_parser.set_defaults(func=cmd_reset_learning)

    # export-audit command
    export_parser = subparsers.add_parser("export-audit", help="Export the audit trail")
    export_parser.add_argument("--as-user", required=True, help="Admin user id")
    export_parser.add_argument("--format", choices=["csv", "json"], default="csv", help="Output format (default: csv)")
    export_parser.add_argument("--limit", type=int, default=1000, help="Rows to export, 1-5000 (default: 1000)")
    export_parser.add_argument("--output", help="Write to file instead of stdout")
    export_parser.set_defaults(func=cmd_export_audit)

    # snapshot command
    snapshot_parser = subparsers.add_parser("snapshot", help="Export backup policy and row counts")
    snapshot_parser.add_argument("--as-user", required=True, help="Admin user id")
    snapshot_parser.add_argument("--output", help="Write to file instead of stdout")
    snapshot_parser.set_defaults(func=cmd_snapshot)

    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)

    args.func(args)


if __name__ == "__main__":
    main()
