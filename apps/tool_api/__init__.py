"""Relay Tool API (FastAPI)."""
