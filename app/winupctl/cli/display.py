"""Shared Rich display functions for CLI commands.

Provides table builders for package changes, update outcomes, history
entries, rollback plans, cache statistics, priority tiers and validation
results.
"""

from collections.abc import Sequence

from rich.table import Table

from winupctl.core.rollback import RollbackTarget
from winupctl.models.cache import CacheStatistics, ChangeType, PackageChange
from winupctl.models.history import HistoryEntry
from winupctl.models.operation import UpdateOutcome
from winupctl.models.package import PackageSource
from winupctl.models.priority import LISTED_TIERS, PrioritizedPackage, PriorityConfig
from winupctl.models.validation import SecurityValidationResult, UpdateValidationResult
from winupctl.utils.formatting import create_table, format_success, format_tier
from winupctl.utils.timestamps import format_timestamp


def create_changes_table(changes: Sequence[PackageChange], title: str) -> Table:
    """Create a table of differential changes (New/Updated)."""
    table = create_table(title, "Change", "Source", "Package", "Cached", "Version")
    for change in changes:
        label = (
            "[added]New[/]" if change.change_type == ChangeType.NEW else "[changed]Updated[/]"
        )
        table.add_row(
            label,
            change.source.value,
            change.package.label,
            f"[muted]{change.previous_version}[/]",
            change.version,
        )
    return table


def create_plan_table(packages: Sequence[PrioritizedPackage], dry_run: bool = False) -> Table:
    """Create a table of packages in update order.

    Args:
        packages: Ordered packages.
        dry_run: Whether this is a dry-run (changes table title).
    """
    title = "Planned Updates (Dry Run)" if dry_run else "Planned Updates"
    table = create_table(title, "#", "Tier", "Package", "Installed", "Available")
    for index, item in enumerate(packages, start=1):
        table.add_row(
            str(index),
            format_tier(item.tier),
            item.package.label,
            f"[muted]{item.package.version}[/]",
            item.package.available_version or "-",
        )
    return table


def create_outcomes_table(outcomes: Sequence[UpdateOutcome]) -> Table:
    """Create a table of update results.

    Successful upgrades whose validation failed are marked with the failing
    check even when they still count as successful.
    """
    table = create_table("Results", "Status", "Tier", "Package", "Version", "Message")
    for outcome in outcomes:
        if outcome.operation.failed:
            message = f"[error]{outcome.operation.error or 'Upgrade failed'}[/]"
        elif outcome.validation_failed:
            failed = [
                result.message
                for result in (outcome.validation, outcome.security)
                if result is not None and not result.success
            ]
            message = f"[warning]{'; '.join(failed)}[/]"
        else:
            message = f"[muted]{outcome.operation.message or ''}[/]"

        version = outcome.package.target_version
        if outcome.validation is not None and outcome.validation.current_version:
            version = outcome.validation.current_version

        table.add_row(
            format_success(outcome.success),
            format_tier(outcome.tier),
            outcome.package.label,
            f"{outcome.package.version} -> {version}",
            message,
        )
    return table


def create_history_table(entries: Sequence[HistoryEntry]) -> Table:
    """Create a table of history entries."""
    table = create_table(
        "Update History", "Time", "Operation", "Source", "Package", "Version", "Status"
    )
    for entry in entries:
        if entry.previous_version and entry.previous_version != entry.version:
            version = f"{entry.previous_version} -> {entry.version}"
        else:
            version = entry.version
        status = format_success(entry.success)
        if entry.error_message:
            status = f"{status} [muted]{entry.error_message}[/]"
        table.add_row(
            format_timestamp(entry.timestamp),
            entry.operation.value,
            entry.source.value,
            entry.package_name,
            version,
            status,
        )
    return table


def create_rollback_table(targets: Sequence[RollbackTarget]) -> Table:
    """Create a table of upgrades that can be rolled back."""
    table = create_table("Rollback Plan", "Upgraded", "Source", "Package", "Version")
    for target in targets:
        table.add_row(
            format_timestamp(target.timestamp),
            target.source.value,
            target.package_name,
            f"{target.version} -> {target.previous_version}",
        )
    return table


def create_cache_table(stats: CacheStatistics) -> Table:
    """Create a table summarizing the version cache."""
    table = create_table("Version Cache", "Source", "Packages")
    for source in PackageSource:
        table.add_row(source.value, str(stats.per_source.get(source, 0)))
    table.add_row("[bold]Total[/]", f"[bold]{stats.total}[/]")
    return table


def create_priority_table(config: PriorityConfig) -> Table:
    """Create a table of every listed package by tier and source."""
    table = create_table("Priority Tiers", "Tier", "Source", "Packages")
    for tier in LISTED_TIERS:
        for source in PackageSource:
            packages = config.packages_for(tier, source)
            if packages:
                table.add_row(format_tier(tier), source.value, ", ".join(packages))
    return table


def create_validation_table(results: Sequence[UpdateValidationResult]) -> Table:
    """Create a table of post-update validation results."""
    table = create_table("Update Validation", "Status", "Package", "Check", "Version", "Message")
    for result in results:
        table.add_row(
            format_success(result.success),
            result.package_name,
            result.method.value,
            result.current_version or "-",
            result.message,
        )
    return table


def create_security_table(result: SecurityValidationResult) -> Table:
    """Create a key/value table for a security validation result."""
    table = create_table(f"Security Validation: {result.package_name}", "Check", "Result")

    def flag(value: bool | None) -> str:
        if value is None:
            return "[muted]not run[/]"
        return format_success(value)

    table.add_row("Verdict", format_success(result.success))
    table.add_row("Decided by", result.method.value)
    table.add_row("Message", result.message)
    table.add_row("File", result.file_path or "-")
    if result.hash:
        algorithm = result.algorithm.value if result.algorithm else ""
        table.add_row(f"Hash ({algorithm})", f"[muted]{result.hash}[/]")
    table.add_row("Hash match", flag(result.hash_match))
    table.add_row("Signature valid", flag(result.signature_valid))
    if result.signature_status is not None:
        table.add_row("Signature status", result.signature_status.value)
    table.add_row("Publisher", result.publisher or "-")
    table.add_row("Trusted publisher", flag(result.trusted_publisher))
    return table
