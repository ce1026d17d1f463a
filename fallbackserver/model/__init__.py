"""Routing, responders and data types for the fallback server."""
