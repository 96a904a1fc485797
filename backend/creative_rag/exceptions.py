"""
Error taxonomy for ingestion and retrieval.
InvalidInput and InvalidConfiguration are never retried; UpstreamUnavailable and
PersistenceFailure are retried at the call site.
"""


class CampaignRAGError(Exception):
    """Base class for engine errors."""


class InvalidInput(CampaignRAGError):
    """Malformed document metadata, empty query text or empty embedding input."""


class UpstreamUnavailable(CampaignRAGError):
    """Embedding or completion service failed, timed out or rate-limited."""


class PersistenceFailure(CampaignRAGError):
    """A document transaction was rolled back."""


class InvalidConfiguration(CampaignRAGError):
    """Settings or rule tables that cannot work (e.g. chunk overlap >= chunk size)."""


class ProcessingCancelled(CampaignRAGError):
    """The processing run was cancelled before this document committed."""
