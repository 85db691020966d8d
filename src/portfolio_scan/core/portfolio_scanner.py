"""Batched iteration over the full component inventory"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .config import ScanConfig
from .exceptions import RepositoryException, ScanAbortedException
from .models import Component
from .repository import InventoryRepository

logger = logging.getLogger(__name__)


BatchCallback = Callable[[List[Component]], None]


@dataclass
class BatchFailure:
    """Record of a batch whose analysis raised"""

    batch_number: int
    first_component_id: int
    last_component_id: int
    size: int
    error: str


@dataclass
class ScanSummary:
    """Coverage of a single full scan"""

    total: int = 0
    visited: int = 0
    batches_completed: int = 0
    batches_failed: int = 0
    cancelled: bool = False
    failures: List[BatchFailure] = field(default_factory=list)
    fetch_failures: List[str] = field(default_factory=list)

    @property
    def successful(self) -> bool:
        return self.batches_failed == 0 and not self.cancelled

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'visited': self.visited,
            'batches_completed': self.batches_completed,
            'batches_failed': self.batches_failed,
            'cancelled': self.cancelled,
            'failures': [vars(f) for f in self.failures],
            'fetch_failures': list(self.fetch_failures),
        }


class PortfolioBatchScanner:
    """
    Visits every component in the inventory once per run, one page at a time

    Pages are requested by ascending component id, each starting after the last
    id of the previous page, so a component is never revisited even when the
    inventory changes during the run.
    """

    def __init__(self, inventory: InventoryRepository, config: Optional[ScanConfig] = None,
                 scan_logger: Optional[logging.Logger] = None):
        self.inventory = inventory
        self.config = config or ScanConfig()
        self.logger = scan_logger or logger

    def run_full_scan(self, analyze_batch: BatchCallback,
                      cancel_event: Optional[threading.Event] = None) -> ScanSummary:
        """
        Scan the whole inventory

        Args:
            analyze_batch: Called synchronously with each page of components
            cancel_event: Optional event checked between pages to stop early

        Returns:
            ScanSummary with completed and failed batch counts

        Raises:
            ScanAbortedException: If a page fetch fails fatally or runs out of
                retries, or a batch fails and the failure is fatal or
                fail_fast is configured
        """
        self.logger.info("Analyzing portfolio")

        summary = ScanSummary(total=self.inventory.count())
        last_id = None
        batch_number = 0

        while summary.visited < summary.total:
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                self.logger.warning(
                    f"Portfolio analysis cancelled after {summary.visited}/{summary.total} component(s)"
                )
                return summary

            page = self._fetch_page(last_id, summary)

            if not page:
                # Inventory shrank since the initial count
                self.logger.debug(
                    f"Inventory exhausted at {summary.visited} of {summary.total} counted component(s)"
                )
                break

            batch_number += 1
            try:
                analyze_batch(page)
            except Exception as e:
                summary.batches_failed += 1
                summary.failures.append(BatchFailure(
                    batch_number=batch_number,
                    first_component_id=page[0].id,
                    last_component_id=page[-1].id,
                    size=len(page),
                    error=str(e),
                ))
                self.logger.error(f"Batch {batch_number} ({len(page)} component(s)) failed: {e}")

                fatal = isinstance(e, RepositoryException) and e.fatal
                if fatal or self.config.fail_fast:
                    raise ScanAbortedException(f"batch {batch_number} failed: {e}", summary) from e
            else:
                summary.batches_completed += 1
                self.logger.debug(f"Batch {batch_number}: analyzed {len(page)} component(s)")

            summary.visited += len(page)
            last_id = page[-1].id

        self.logger.info(
            f"Portfolio analysis complete: {summary.visited} component(s), "
            f"{summary.batches_completed} batch(es) completed, {summary.batches_failed} failed"
        )
        return summary

    def _fetch_page(self, last_id: Optional[int], summary: ScanSummary) -> List[Component]:
        """
        Fetch the page after ``last_id``, retrying transient repository errors

        Fatal repository errors, unexpected errors and exhausted retries abort the scan.
        """
        retries = self.config.fetch_retries
        attempt = 0

        while True:
            try:
                return self.inventory.fetch_page(0, self.config.batch_size, after_id=last_id)
            except RepositoryException as e:
                attempt += 1
                summary.fetch_failures.append(str(e))
                if e.fatal or attempt > retries:
                    self.logger.error(f"Failed to fetch page after component id {last_id}: {e}")
                    raise ScanAbortedException(f"page fetch failed: {e}", summary) from e
                self.logger.warning(
                    f"Page fetch after component id {last_id} failed ({attempt}/{retries}), retrying: {e}"
                )
            except Exception as e:
                summary.fetch_failures.append(str(e))
                self.logger.error(f"Failed to fetch page after component id {last_id}: {e}")
                raise ScanAbortedException(f"page fetch failed: {e}", summary) from e
