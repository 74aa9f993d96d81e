"""Shared helpers for the Mercado backend."""
