"""Vulnerability analyzers and their routing configuration"""

from portfolio_scan.core import AnalyzerRegistry, EligibilityRule

from .base import ComponentAnalyzer
from .dependency_check import DependencyCheckAnalyzer
from .npm_audit import NpmAuditAnalyzer

__all__ = [
    'ComponentAnalyzer',
    'DependencyCheckAnalyzer',
    'NpmAuditAnalyzer',
]

# Registry of available analyzers
ANALYZER_REGISTRY = {
    'dependency-check': DependencyCheckAnalyzer,
    'npm-audit': NpmAuditAnalyzer,
}

# Which analyzer owns which components
ANALYZER_RULES = {
    'dependency-check': EligibilityRule.general(),
    'npm-audit': EligibilityRule.specialized('npm'),
}


def get_analyzer_class(name: str):
    """
    Get analyzer class by name

    Args:
        name: Analyzer name (dependency-check, npm-audit)

    Returns:
        Analyzer class or None if not found
    """
    return ANALYZER_REGISTRY.get(name.lower())


def get_available_analyzers():
    """
    Get list of analyzer names

    Returns:
        List of analyzer names
    """
    return list(ANALYZER_REGISTRY.keys())


def build_registry(rules=None) -> AnalyzerRegistry:
    """Build the validated routing table (raises ConfigurationException on overlaps)"""
    return AnalyzerRegistry(ANALYZER_RULES if rules is None else rules)
