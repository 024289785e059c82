"""Garrison: audit trail, notifications, and resilience core for the training platform."""

__version__ = "0.1.0"
