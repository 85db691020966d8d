"""
Portfolio Vulnerability Scanner

Routes inventory components to ecosystem analyzers, scans the inventory in
batches and notifies once per newly identified vulnerability
"""

try:
    from importlib.metadata import version
    __version__ = version("portfolio-scan")
except Exception:
    # Fallback for development installs
    __version__ = "0.0.0-dev"

from . import core
from . import analyzers

__all__ = ['core', 'analyzers', '__version__']
