"""
Bulk Operation Coordinator

Applies one moderation action (status change or deletion) to a set of
reports.

Order of checks:
1. Authorization. A non-admin caller gets AuthorizationFailure and the
   store is never contacted.
2. Duplicate ids collapse to their first occurrence.
3. Status validation for SetStatus. An invalid status is reported even
   for an empty id list.
4. Empty id list. Returns an all-zero result, again without the store.
5. One set-based store call for the whole batch.

The store's bulk primitives are all-or-nothing, so the result is either
"all succeeded" or "all failed" with the store's single message in
`errors`. Stores that report per-row failures (supports_partial_failure)
are driven one id at a time instead, giving one error per failed id.

Nothing is cached: after a successful call the caller re-runs whichever
aggregation it is displaying.
"""

import time
from dataclasses import dataclass
from typing import Union

from ..db.store import ReportStore, StoreError
from ..observability import get_logger, get_metrics
from ..schemas import BulkOperationResult, ItemOutcome, ReportStatus
from .authorization import Authorizer
from .errors import AuthorizationFailure

logger = get_logger(__name__)


@dataclass(frozen=True)
class SetStatus:
    """Move every report to `status`."""
    status: str

    def describe(self) -> str:
        return f"set status to {self.status}"


@dataclass(frozen=True)
class Delete:
    """Delete every report."""

    def describe(self) -> str:
        return "delete"


BulkOperation = Union[SetStatus, Delete]

VALID_STATUSES = frozenset(s.value for s in ReportStatus)


def _unique(ids: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for report_id in ids:
        seen.setdefault(str(report_id), None)
    return list(seen)


class BulkOperationCoordinator:
    """
    Authorization-gated bulk mutations with success/failure accounting.

    Usage:
        coordinator = BulkOperationCoordinator(store, authorizer)
        result = coordinator.apply(SetStatus("verified"), ["id-1", "id-2"])
    """

    def __init__(self, store: ReportStore, authorizer: Authorizer):
        self._store = store
        self._authorizer = authorizer

    def apply(self, operation: BulkOperation, ids: list[str]) -> BulkOperationResult:
        """
        Apply `operation` to `ids`.

        Raises:
            AuthorizationFailure: caller is not an administrator
            TypeError: `operation` is not SetStatus or Delete

        Store rejections are reported in the result, not raised.
        """
        if not isinstance(operation, (SetStatus, Delete)):
            raise TypeError(f"Unsupported bulk operation: {operation!r}")

        if not self._authorizer.is_current_user_admin():
            logger.warning("Bulk operation refused: not an administrator", operation=operation.describe())
            raise AuthorizationFailure()

        ids = _unique(ids)

        if isinstance(operation, SetStatus) and operation.status not in VALID_STATUSES:
            return self._reject_all(ids, f"Invalid status: {operation.status}")

        if not ids:
            return BulkOperationResult()

        start = time.perf_counter()
        if self._store.supports_partial_failure:
            result = self._apply_each(operation, ids)
        else:
            result = self._apply_batch(operation, ids)
        duration_ms = (time.perf_counter() - start) * 1000

        get_metrics().record_bulk(result.success, result.failed)
        log = logger.info if result.failed == 0 else logger.warning
        log(
            f"Bulk {operation.describe()} applied",
            requested=len(ids),
            success=result.success,
            failed=result.failed,
            duration_ms=round(duration_ms, 2),
        )
        return result

    def _mutate(self, operation: BulkOperation, ids: list[str]) -> None:
        if isinstance(operation, SetStatus):
            self._store.update_status(ids, operation.status)
        else:
            self._store.delete_reports(ids)

    def _apply_batch(self, operation: BulkOperation, ids: list[str]) -> BulkOperationResult:
        try:
            self._mutate(operation, ids)
        except StoreError as e:
            return self._reject_all(ids, str(e) or "Unknown error")
        return BulkOperationResult(
            success=len(ids),
            failed=0,
            outcomes=[ItemOutcome(id=report_id, ok=True) for report_id in ids],
        )

    def _apply_each(self, operation: BulkOperation, ids: list[str]) -> BulkOperationResult:
        result = BulkOperationResult()
        for report_id in ids:
            try:
                self._mutate(operation, [report_id])
            except StoreError as e:
                message = str(e) or "Unknown error"
                result.failed += 1
                result.errors.append(f"{report_id}: {message}")
                result.outcomes.append(ItemOutcome(id=report_id, ok=False, error=message))
            else:
                result.success += 1
                result.outcomes.append(ItemOutcome(id=report_id, ok=True))
        return result

    @staticmethod
    def _reject_all(ids: list[str], message: str) -> BulkOperationResult:
        return BulkOperationResult(
            success=0,
            failed=len(ids),
            errors=[message],
            outcomes=[ItemOutcome(id=report_id, ok=False, error=message) for report_id in ids],
        )
