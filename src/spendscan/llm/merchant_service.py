"""Merchant name normalization and categorization using Google Gemini."""
from typing import Optional, Protocol, Type, TypeVar

from google import genai
from google.genai import errors, types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spendscan.analytics.models import Category
from spendscan.config.settings import AppSettings
from spendscan.utils.exceptions import ConfigError, LLMError, RetryableLLMError
from spendscan.utils.logger import get_logger
from spendscan.utils.retry import retry_with_backoff
from .merchant_cache import MerchantCache

logger = get_logger()

NORMALIZE_SYSTEM_PROMPT = (
    "You normalize merchant names from bank transactions. "
    "Remove locations, country codes, transaction IDs, asterisks, numbers, .com, and POS markers. "
    "Return the canonical brand name only. "
    'If the merchant refers to Netflix, always return "Netflix". '
    'Output ONLY JSON: {"normalizedMerchant":"..."}'
)

CATEGORIZE_SYSTEM_PROMPT = (
    "You categorize merchants into ONE allowed category. "
    'Output ONLY JSON like {"category":"..."} and the value must be exactly one allowed category.'
)


class NormalizedMerchantResponse(BaseModel):
    """Pydantic schema for the normalization response."""
    model_config = ConfigDict(populate_by_name=True)

    normalized_merchant: Optional[str] = Field(default=None, alias="normalizedMerchant")


class CategoryResponse(BaseModel):
    """Pydantic schema for the categorization response."""
    category: Optional[str] = None


ResponseT = TypeVar("ResponseT", bound=BaseModel)


class MerchantService(Protocol):
    """Cleans merchant names and assigns categories. Both calls are idempotent."""

    def normalize(self, raw_merchant: str) -> str:
        ...

    def categorize(self, merchant: str) -> Category:
        ...


class PassthroughMerchantService:
    """Offline service: names are kept as-is, categories come from the cache or Other."""

    def __init__(self, cache: Optional[MerchantCache] = None):
        self.cache = cache or MerchantCache()

    def normalize(self, raw_merchant: str) -> str:
        return self.cache.get_normalized(raw_merchant.strip()) or raw_merchant

    def categorize(self, merchant: str) -> Category:
        return self.cache.get_category(merchant.strip()) or Category.OTHER


class GeminiMerchantService:
    """Normalizes and categorizes merchants with Gemini, backed by a MerchantCache."""

    def __init__(
        self,
        settings: AppSettings,
        cache: Optional[MerchantCache] = None,
        client: Optional[genai.Client] = None
    ):
        """
        Initialize merchant service.

        Args:
            settings: Application settings (model, retry policy)
            cache: Merchant cache; a request-scoped in-memory cache when omitted
            client: Pre-built Gemini client; built from GEMINI_API_KEY when omitted
        """
        if client is None:
            api_key = settings.gemini_api_key
            if not api_key:
                raise ConfigError("GEMINI_API_KEY is not set")
            client = genai.Client(api_key=api_key)

        self.client = client
        self.model_name = settings.llm_model_name
        self.temperature = settings.llm_temperature
        self.cache = cache or MerchantCache(fuzzy_threshold=settings.merchant_cache_fuzzy_threshold)

        self._request = retry_with_backoff(
            max_retries=settings.retry_max_retries,
            initial_delay=settings.retry_initial_delay_seconds,
            backoff_factor=settings.retry_backoff_factor,
            retryable_exceptions=(RetryableLLMError,)
        )(self._request_once)

        logger.info(f"Merchant service initialized with {self.model_name}")

    def normalize(self, raw_merchant: str) -> str:
        """
        Return the canonical brand name for a raw statement merchant.

        Args:
            raw_merchant: Merchant text as parsed from the statement

        Returns:
            Normalized name, or the trimmed input when the model returns nothing
        """
        merchant = raw_merchant.strip()
        if not merchant:
            return raw_merchant

        cached = self.cache.get_normalized(merchant)
        if cached:
            return cached

        prompt = (
            "Normalize this to a clean brand name.\n"
            "Remove codes/IDs like *1234, locations, .com, CA, POS.\n"
            "Keep only the brand. If unsure, return the original cleaned.\n\n"
            f"merchant: {merchant}"
        )
        parsed = self._request(NORMALIZE_SYSTEM_PROMPT, prompt, NormalizedMerchantResponse)

        normalized = (parsed.normalized_merchant or "").strip() or merchant
        self.cache.set_normalized(merchant, normalized)
        logger.debug(f"Normalized merchant: {merchant} -> {normalized}")
        return normalized

    def categorize(self, merchant: str) -> Category:
        """Assign one of the fixed categories; anything unrecognized is Other."""
        cleaned = merchant.strip()
        if not cleaned:
            return Category.OTHER

        cached = self.cache.get_category(cleaned)
        if cached:
            return cached

        allowed = "\n- ".join(Category.labels())
        prompt = (
            f"Allowed categories:\n- {allowed}\n\n"
            f"Merchant: {cleaned}\n\n"
            "Return ONLY JSON."
        )
        parsed = self._request(CATEGORIZE_SYSTEM_PROMPT, prompt, CategoryResponse)

        label = (parsed.category or "").strip()
        category = Category.from_label(label)
        if category is Category.OTHER and label != Category.OTHER.value:
            logger.warning(f"Invalid category '{label}' for '{cleaned}', using 'Other'")

        self.cache.set_category(cleaned, category)
        return category

    def _request_once(self, system_prompt: str, prompt: str, schema: Type[ResponseT]) -> ResponseT:
        """One model call plus schema validation; failures are retryable."""
        text = self._generate(system_prompt, prompt)
        return self._parse(text, schema)

    def _generate(self, system_prompt: str, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self.temperature,
                    response_mime_type="application/json"
                )
            )
        except errors.ClientError as e:
            # Don't retry 4xx errors (except 429)
            if e.code != 429:
                raise LLMError(f"Gemini rejected the request: {e}")
            raise RetryableLLMError(f"Gemini rate limit: {e}")
        except Exception as e:
            raise RetryableLLMError(f"Gemini request failed: {e}")

        text = response.text or ""
        logger.debug(f"Gemini raw result: {text[:200]}")
        return text

    @staticmethod
    def _parse(text: str, schema):
        # An empty body is treated like an empty object
        if not text.strip():
            return schema()
        try:
            return schema.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Response validation failed: {e}")
            raise RetryableLLMError(f"Gemini response does not match expected schema: {e}")
