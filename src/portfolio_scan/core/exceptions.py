"""
Exception hierarchy for portfolio scanning.

All exceptions inherit from PortfolioScanException.
"""


class PortfolioScanException(Exception):
    """Base exception for all portfolio scan errors."""
    pass


class ConfigurationException(PortfolioScanException):
    """Analyzer configuration is invalid (e.g. overlapping ecosystem claims)."""
    pass


class RepositoryException(PortfolioScanException):
    """A repository operation failed."""

    def __init__(self, operation: str, reason: str, fatal: bool = False):
        """
        Initialize repository exception.

        Args:
            operation: Repository operation that failed (e.g. 'fetch_page')
            reason: Reason for failure
            fatal: True if the repository is unusable for the rest of the run
        """
        self.operation = operation
        self.reason = reason
        self.fatal = fatal
        super().__init__(f"Repository {operation} failed: {reason}")


class ScanAbortedException(PortfolioScanException):
    """A full scan stopped before the inventory was exhausted."""

    def __init__(self, reason: str, summary):
        """
        Initialize scan aborted exception.

        Args:
            reason: Reason the scan stopped
            summary: ScanSummary describing the partial coverage
        """
        self.reason = reason
        self.summary = summary
        super().__init__(
            f"Scan aborted after {summary.batches_completed} completed and "
            f"{summary.batches_failed} failed batch(es): {reason}"
        )


class InventoryFormatException(PortfolioScanException):
    """Inventory or advisory input could not be parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid inventory data in {source}: {reason}")


__all__ = [
    "PortfolioScanException",
    "ConfigurationException",
    "RepositoryException",
    "ScanAbortedException",
    "InventoryFormatException",
]
