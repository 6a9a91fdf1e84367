"""Caller-facing operations."""
