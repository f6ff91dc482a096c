"""
Svc-Core Service.

Application handler, lifecycle runner and process entry point.
"""

__all__ = ["app", "main", "runner"]
