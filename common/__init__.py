"""Shared value types and logging setup."""
