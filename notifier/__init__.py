"""Notification delivery engine service."""
