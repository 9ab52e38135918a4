"""Clients for external vendors."""
