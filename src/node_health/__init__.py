"""Readiness checks for an Ethereum execution + consensus node pair."""
