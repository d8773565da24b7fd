"""Utility modules for tagresolver.

Available utility modules (all re-exported here for convenience):

- **confidence** -- Weighted scoring math and human-readable level mapping
  used by the scorer and the CLI summary.
- **errors** -- Exception hierarchy rooted at TaggerError; provider,
  detail-fetch, persistence and configuration failures each get their own
  subclass.
- **concurrency** -- Settle-all fan-out helpers for concurrent catalog
  searches.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- Accent folding and tokenization of titles, artists
  and album names.
"""

# -- Confidence scoring utilities ------------------------------------------
from tagresolver.utils.confidence import (
    ConfidenceLevel,
    calculate_confidence,
    clamp,
    confidence_to_level,
)

# -- Domain exception hierarchy --------------------------------------------
from tagresolver.utils.errors import (
    ConfigurationError,
    DetailFetchError,
    PersistenceError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    SelectionError,
    TaggerError,
    TrackNotFoundError,
)

# -- Async concurrency helpers ---------------------------------------------
from tagresolver.utils.concurrency import gather_settled

# -- Structured logging setup ----------------------------------------------
from tagresolver.utils.logging import configure_logging, get_logger

# -- Tokenization ----------------------------------------------------------
from tagresolver.utils.text_normalizer import fold_accents, normalize

__all__ = [
    "ConfidenceLevel",
    "ConfigurationError",
    "DetailFetchError",
    "PersistenceError",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SelectionError",
    "TaggerError",
    "TrackNotFoundError",
    "calculate_confidence",
    "clamp",
    "confidence_to_level",
    "configure_logging",
    "fold_accents",
    "gather_settled",
    "get_logger",
    "normalize",
]
