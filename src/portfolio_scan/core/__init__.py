"""Core components for portfolio vulnerability analysis"""

from .associations import ALREADY_KNOWN, AssociationTracker
from .config import ScanConfig
from .eligibility import AnalyzerRegistry, EligibilityRule
from .exceptions import (
    ConfigurationException,
    PortfolioScanException,
    RepositoryException,
    ScanAbortedException,
)
from .models import (
    Component,
    Dependency,
    NotificationEvent,
    PackageIdentifier,
    Project,
    Vulnerability,
)
from .notifications import CollectingNotificationBus, NotificationBus, NotificationEmitter
from .portfolio_scanner import PortfolioBatchScanner, ScanSummary
from .repository import InMemoryRepository, load_inventory

__all__ = [
    'ALREADY_KNOWN',
    'AnalyzerRegistry',
    'AssociationTracker',
    'CollectingNotificationBus',
    'Component',
    'ConfigurationException',
    'Dependency',
    'EligibilityRule',
    'InMemoryRepository',
    'NotificationBus',
    'NotificationEmitter',
    'NotificationEvent',
    'PackageIdentifier',
    'PortfolioBatchScanner',
    'PortfolioScanException',
    'Project',
    'RepositoryException',
    'ScanAbortedException',
    'ScanConfig',
    'ScanSummary',
    'Vulnerability',
    'load_inventory',
]
