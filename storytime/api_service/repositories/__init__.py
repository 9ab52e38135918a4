"""Repositories for Supabase tables."""
