"""Shared helpers: logging, settings, threading and the event bus."""
