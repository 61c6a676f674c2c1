"""
cvmfs-status — Replication health auditor for CernVM-FS style repositories.
"""

__version__ = "0.4.0"
