"""Concrete adapters for the interfaces in ``festifind.interfaces``."""
