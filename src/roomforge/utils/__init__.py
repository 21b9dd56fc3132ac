"""Helpers: SQL safety gate, serialization, payload builders and routes."""
