"""
Fetch Package

Pooled FTP retrieval of BOM river height bulletins.
"""

from .catalog import RemoteResource, load_catalog
from .ftp_pool import FtpSessionPool
from .orchestrate import FetchOrchestrator, FetchSummary, run_fetch_cycle

__all__ = [
    'FetchOrchestrator',
    'FetchSummary',
    'FtpSessionPool',
    'RemoteResource',
    'load_catalog',
    'run_fetch_cycle',
]
