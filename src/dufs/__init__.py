"""dufs: a minimal HTTP file server for ad-hoc sharing of one directory."""

from dufs.config import Settings
from dufs.server import create_app, run_server

__all__ = ["Settings", "create_app", "run_server"]
