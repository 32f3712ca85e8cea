"""Shared helpers for logging and console output across tools."""
