"""tagresolver: find and apply catalog metadata for local library tracks."""

__version__ = "0.1.0"
