"""Pytest configuration and shared fixtures."""

from hypothesis import settings

# Evaluation passes run an event loop per example; wall-clock deadlines only add flakiness.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
