"""Unified audit trail for the cylinder test certificate application."""
