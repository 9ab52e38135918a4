"""Core infrastructure: database access and authentication."""
