"""Correlation ids link events that belong to one causal chain."""

import uuid


def new_correlation_id() -> str:
    """Return a fresh, globally unique correlation id."""
    return str(uuid.uuid4())
