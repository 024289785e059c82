"""API middleware: request context and authentication."""
