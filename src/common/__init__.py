"""Helpers shared across registry, restore and CLI modules."""
