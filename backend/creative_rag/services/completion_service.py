"""OpenAI chat completions with a token-budgeted context."""

import logging
from typing import Callable, Optional

import httpx
import openai
import tiktoken
from openai import OpenAI

from creative_rag.config import Settings, get_settings
from creative_rag.exceptions import InvalidConfiguration, InvalidInput, UpstreamUnavailable

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]

TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)

AUTH_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
)


class CompletionService:
    """
    Chat completion over retrieved context.

    The context is cut from its tail until system prompt, context, question and the
    reserved response tokens fit in max_context_tokens. The system prompt is never cut.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_context_tokens: Optional[int] = None,
        response_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
        token_counter: Optional[TokenCounter] = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.completion_model
        self.max_context_tokens = max_context_tokens or settings.completion_max_context_tokens
        self.response_tokens = response_tokens or settings.completion_response_tokens
        self.temperature = settings.completion_temperature if temperature is None else temperature
        self.timeout = timeout or settings.request_timeout_seconds
        self._client = client
        self._token_counter = token_counter
        self._encoder = None

        if self._client is None and not self.api_key:
            raise InvalidConfiguration("OPENAI_API_KEY is not configured in settings")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[OpenAI] = None,
        token_counter: Optional[TokenCounter] = None,
    ) -> "CompletionService":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.completion_model,
            max_context_tokens=settings.completion_max_context_tokens,
            response_tokens=settings.completion_response_tokens,
            temperature=settings.completion_temperature,
            timeout=settings.request_timeout_seconds,
            client=client,
            token_counter=token_counter,
        )

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                http_client=httpx.Client(timeout=self.timeout),
            )
        return self._client

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        if self._token_counter is not None:
            return self._token_counter(text)
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding("cl100k_base")
        return len(self._encoder.encode(text))

    def context_budget(self, system_prompt: str, user_query: str) -> int:
        """Tokens left for the context once prompt, question and response are reserved."""
        used = self.count_tokens(system_prompt) + self.count_tokens(user_query) + self.response_tokens
        return max(0, self.max_context_tokens - used)

    def truncate_context(self, context_text: str, budget: int) -> str:
        """Longest prefix of context_text that fits in budget tokens."""
        if self.count_tokens(context_text) <= budget:
            return context_text
        low, high = 0, len(context_text)
        while low < high:
            mid = (low + high + 1) // 2
            if self.count_tokens(context_text[:mid]) <= budget:
                low = mid
            else:
                high = mid - 1
        return context_text[:low]

    def complete(self, system_prompt: str, context_text: str, user_query: str) -> str:
        """
        Answer user_query from context_text.

        Raises:
            InvalidInput: If the question is empty
            UpstreamUnavailable: On transport errors, timeouts, rate limits or 5xx
            InvalidConfiguration: If the API rejects the key (401) or its permissions (403)
        """
        if not (user_query or "").strip():
            raise InvalidInput("Question must not be empty")

        budget = self.context_budget(system_prompt, user_query)
        context = self.truncate_context(context_text or "", budget)
        if len(context) < len(context_text or ""):
            logger.info(
                "Context truncated from %s to %s chars to fit %s tokens",
                len(context_text), len(context), budget,
            )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": f"Context:\n{context}\n\nQuestion: {user_query}"},
                ],
                temperature=self.temperature,
                max_tokens=self.response_tokens,
            )
        except TRANSIENT_ERRORS as e:
            raise UpstreamUnavailable(f"Completion request failed: {e}") from e
        except openai.BadRequestError as e:
            raise InvalidInput(f"Completion request rejected: {e}") from e
        except AUTH_ERRORS as e:
            raise InvalidConfiguration(f"Completion service refused the credentials: {e}") from e
        except openai.APIError as e:
            raise UpstreamUnavailable(f"Completion service error: {e}") from e

        if not response.choices:
            raise UpstreamUnavailable("Completion service returned no choices")
        return (response.choices[0].message.content or "").strip()
