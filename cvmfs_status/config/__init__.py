"""
Configuration — Environment settings and the host alias table.
"""

from .hosts import HostTable, load_host_table
from .settings import AuditSettings

__all__ = [
    "AuditSettings",
    "HostTable",
    "load_host_table",
]
