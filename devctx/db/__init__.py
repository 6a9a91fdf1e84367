"""Supabase-backed data access."""
