"""Compute API bindings."""
