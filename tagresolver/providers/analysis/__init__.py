"""Audio-analysis scheduler implementations."""

from tagresolver.providers.analysis.queue_scheduler import QueueAnalysisScheduler

__all__ = ["QueueAnalysisScheduler"]
