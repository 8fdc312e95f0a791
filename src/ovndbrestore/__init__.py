"""
ovndbrestore - Restore gathered OVN databases into inspectable containers
"""

__version__ = "0.3.0"

from .core import FleetOrchestrator, SingleDatabaseRunner, RestoreError

__all__ = ["FleetOrchestrator", "SingleDatabaseRunner", "RestoreError"]
