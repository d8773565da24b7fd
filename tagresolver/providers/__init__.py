"""Concrete adapters for every interface in ``tagresolver.interfaces``."""
