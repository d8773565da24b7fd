"""Batch pipeline: decision policy, progress tracking, orchestration."""
