"""Realtime chat relay service."""
