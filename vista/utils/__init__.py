"""Shared input helpers."""
