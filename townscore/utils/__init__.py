"""Logging, audit, merge and fetch helpers around the scoring engine."""
