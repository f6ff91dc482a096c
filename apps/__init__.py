"""
Svc-Core Applications Package.

Contains:
- service: configuration-bound service process (runner + application)
"""

__version__ = "0.1.0"
