"""Domain services: scoring, aggregation, and applying selections."""
