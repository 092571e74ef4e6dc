"""Resumable streaming import of large SQL dumps into containerized MariaDB/MySQL."""

__version__ = "0.1.0"
