"""HTTP API for Garrison.

Serves notifications and the audit trail over JSON, authenticated with
JWT bearer tokens.
"""

from garrison.api.app import create_app

__all__ = ["create_app"]
