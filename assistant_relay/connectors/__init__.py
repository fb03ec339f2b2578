"""Outbound connector helpers."""
