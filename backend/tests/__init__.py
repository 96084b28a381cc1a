"""Pytest suite for the marketplace backend: models, services and HTTP routes."""
