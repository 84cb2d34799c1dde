#!/usr/bin/env python3
"""
CorruptionWatch Management CLI

Commands for operating the report store:
- seed-demo: Fill an empty store with reproducible demo reports
- heatmap: Print the region and category aggregation
- defaulters: Print the defaulter directory
- stats: Print the public statistics and the admin counters
- set-status: Bulk status change (operator rights)
- delete: Bulk deletion (operator rights)
- health-check: Check the store connection

Usage:
    python -m tools.manage <command> [options]

Examples:
    python -m tools.manage seed-demo --count 200
    python -m tools.manage defaulters --min-reports 1
    python -m tools.manage set-status verified 3f2a... 9c1b...
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def _print_json(model):
    print(json.dumps(model.model_dump(mode="json"), indent=2))


def cmd_seed_demo(args):
    """Seed demo reports into an empty store."""
    from corruptionwatch.web.shared_store import get_report_store, seed_demo_reports

    store = get_report_store()
    created = seed_demo_reports(store, count=args.count, seed=args.seed)
    if created == 0:
        print("Store already has reports. Nothing seeded.")
    else:
        print(f"[OK] Seeded {created} demo reports")


def cmd_heatmap(args):
    """Print the heat map aggregation."""
    from corruptionwatch.core import AnalyticsService
    from corruptionwatch.web.shared_store import get_report_store

    view = AnalyticsService(get_report_store()).heat_map()
    if args.json:
        _print_json(view)
        return 1 if view.error else 0
    if view.error:
        print(f"[FAIL] {view.error}")
        return 1

    print("Regions:")
    for stat in view.regions:
        where = f"{stat.latitude:.4f},{stat.longitude:.4f}" if stat.mappable else "unmapped"
        print(f"  {stat.region:<24} {stat.count:>5}  {stat.severity.value:<8}  {where}")
    print("\nCategories:")
    for stat in view.categories:
        print(f"  {stat.name:<24} {stat.value:>5}  {stat.color}")
    return 0


def cmd_defaulters(args):
    """Print the defaulter directory."""
    from corruptionwatch.core import AnalyticsService
    from corruptionwatch.web.shared_store import get_report_store

    view = AnalyticsService(get_report_store()).directory(
        args.min_reports, search=args.search, category=args.category
    )
    if args.json:
        _print_json(view)
        return 1 if view.error else 0
    if view.error:
        print(f"[FAIL] {view.error}")
        return 1

    print(f"Defaulters with at least {view.min_reports} report(s): {len(view.defaulters)}")
    for profile in view.defaulters:
        print(
            f"  {profile.corrupt_person_name:<24} {profile.report_count:>5}  "
            f"{profile.status.value:<8}  {profile.designation}, {profile.area_region}"
        )
    return 0


def cmd_stats(args):
    """Print public statistics and admin counters."""
    from corruptionwatch.core import AnalyticsService, FetchFailure, StatisticsAggregator, StaticAuthorizer
    from corruptionwatch.web.shared_store import get_report_store

    store = get_report_store()
    summary = AnalyticsService(store).statistics_summary()
    print("=== Public statistics ===")
    print(f"  Total:    {summary.total_reports}")
    print(f"  Resolved: {summary.resolved_reports}")
    print(f"  Pending:  {summary.pending_reports}")
    print(f"  Verified: {summary.verified_reports}")
    for warning in summary.warnings:
        print(f"  [WARN] {warning}")

    print("\n=== Admin counters ===")
    try:
        admin = StatisticsAggregator(store, StaticAuthorizer(True)).compute_admin_stats()
    except FetchFailure as e:
        print(f"  [FAIL] {e}")
        return 1
    for field, value in admin.model_dump().items():
        print(f"  {field}: {value}")
    return 0


def _run_bulk(operation, ids):
    from corruptionwatch.core import BulkOperationCoordinator, StaticAuthorizer
    from corruptionwatch.web.shared_store import get_report_store

    result = BulkOperationCoordinator(get_report_store(), StaticAuthorizer(True)).apply(operation, ids)
    print(f"Success: {result.success}  Failed: {result.failed}")
    for error in result.errors:
        print(f"  [FAIL] {error}")
    return 1 if result.failed else 0


def cmd_set_status(args):
    """Set the status of the given reports."""
    from corruptionwatch.core import SetStatus
    return _run_bulk(SetStatus(args.status), args.ids)


def cmd_delete(args):
    """Delete the given reports."""
    from corruptionwatch.core import Delete
    return _run_bulk(Delete(), args.ids)


def cmd_health_check(args):
    """Check the store."""
    from corruptionwatch.observability import check_health
    from corruptionwatch.web.shared_store import get_report_store

    status = check_health(report_store=get_report_store())
    print("=== CorruptionWatch Health Check ===\n")
    for name, check in status.checks.items():
        print(f"  {name}: {check}")
    print("\n[OK] Healthy" if status.healthy else "\n[FAIL] Unhealthy")
    return 0 if status.healthy else 1


def main():
    parser = argparse.ArgumentParser(
        description="CorruptionWatch Management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # seed-demo
    p_seed = subparsers.add_parser("seed-demo", help="Seed demo reports into an empty store")
    p_seed.add_argument("--count", type=int, default=120, help="Number of reports (default: 120)")
    p_seed.add_argument("--seed", type=int, default=7, help="Random seed (default: 7)")

    # heatmap
    p_heat = subparsers.add_parser("heatmap", help="Print the heat map aggregation")
    p_heat.add_argument("--json", action="store_true", help="Print raw JSON")

    # defaulters
    p_def = subparsers.add_parser("defaulters", help="Print the defaulter directory")
    p_def.add_argument("--min-reports", type=int, default=2, help="Minimum reports per person (default: 2)")
    p_def.add_argument("--search", help="Name, designation or region contains")
    p_def.add_argument("--category", help="Only people reported under this category key")
    p_def.add_argument("--json", action="store_true", help="Print raw JSON")

    # stats
    subparsers.add_parser("stats", help="Print statistics")

    # set-status
    p_status = subparsers.add_parser("set-status", help="Set the status of reports")
    p_status.add_argument("status", help="pending, verified, disputed or resolved")
    p_status.add_argument("ids", nargs="+", help="Report ids")

    # delete
    p_delete = subparsers.add_parser("delete", help="Delete reports")
    p_delete.add_argument("ids", nargs="+", help="Report ids")

    # health-check
    subparsers.add_parser("health-check", help="Check the store connection")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if getattr(args, "min_reports", 1) < 1:
        parser.error("--min-reports must be at least 1")

    commands = {
        "seed-demo": cmd_seed_demo,
        "heatmap": cmd_heatmap,
        "defaulters": cmd_defaulters,
        "stats": cmd_stats,
        "set-status": cmd_set_status,
        "delete": cmd_delete,
        "health-check": cmd_health_check,
    }

    return commands[args.command](args) or 0


if __name__ == "__main__":
    sys.exit(main())
