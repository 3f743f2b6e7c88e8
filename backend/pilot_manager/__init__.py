"""Pilot program scoring backend."""
