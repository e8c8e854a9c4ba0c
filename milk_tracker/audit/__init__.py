"""Audit logging package."""

from milk_tracker.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
