"""Résumé-to-job fit scoring with a polling mailbox between processes."""

__version__ = "0.1.0"
