"""OpenAI embeddings for chunk and query vectors."""

import logging
from typing import List, Optional

import httpx
import openai
from openai import OpenAI

from creative_rag.config import Settings, get_settings
from creative_rag.exceptions import InvalidConfiguration, InvalidInput, UpstreamUnavailable

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)

AUTH_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
)


class EmbeddingService:
    """Thin adapter over the OpenAI embeddings endpoint returning fixed-length vectors."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimension: Optional[int] = None,
        max_chars: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.embedding_model
        self.dimension = dimension or settings.embedding_dim
        self.max_chars = max_chars or settings.embedding_max_chars
        self.timeout = timeout or settings.request_timeout_seconds
        self._client = client

        if self._client is None and not self.api_key:
            raise InvalidConfiguration("OPENAI_API_KEY is not configured in settings")

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[OpenAI] = None) -> "EmbeddingService":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimension=settings.embedding_dim,
            max_chars=settings.embedding_max_chars,
            timeout=settings.request_timeout_seconds,
            client=client,
        )

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                http_client=httpx.Client(timeout=self.timeout),
            )
        return self._client

    def embed(self, text: str) -> List[float]:
        """
        Embed one text.

        Raises:
            InvalidInput: If the text is empty after trimming, or the API rejects it
            UpstreamUnavailable: On transport errors, timeouts, rate limits, 5xx or a wrong vector size
            InvalidConfiguration: If the API rejects the key (401) or its permissions (403)
        """
        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidInput("Cannot embed empty text")
        cleaned = cleaned[:self.max_chars]

        try:
            response = self.client.embeddings.create(model=self.model, input=cleaned)
        except TRANSIENT_ERRORS as e:
            raise UpstreamUnavailable(f"Embedding request failed: {e}") from e
        except openai.BadRequestError as e:
            raise InvalidInput(f"Embedding request rejected: {e}") from e
        except AUTH_ERRORS as e:
            raise InvalidConfiguration(f"Embedding service refused the credentials: {e}") from e
        except openai.APIError as e:
            raise UpstreamUnavailable(f"Embedding service error: {e}") from e

        if not response.data:
            raise UpstreamUnavailable("Embedding service returned no vectors")
        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimension:
            raise UpstreamUnavailable(
                f"Embedding dimension mismatch: expected {self.dimension}, got {len(embedding)}"
            )

        logger.debug("Embedded %s chars with %s", len(cleaned), self.model)
        return embedding
