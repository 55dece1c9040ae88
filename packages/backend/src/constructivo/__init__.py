"""Constructivo — marketing site and content backend for a construction company.

Public REST reads for projects, testimonials and theme settings, an admin
API behind Google login, and a WebSocket channel that keeps admin
dashboards' query caches fresh.
"""

__version__ = "0.1.0"
