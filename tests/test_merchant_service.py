"""Tests for merchant normalization/categorization service."""
import os
import unittest
from unittest import mock

from google.genai import errors

from spendscan.analytics.models import Category
from spendscan.config.settings import AppSettings
from spendscan.llm.merchant_cache import MerchantCache
from spendscan.llm.merchant_service import GeminiMerchantService, PassthroughMerchantService
from spendscan.utils.exceptions import ConfigError, LLMError, RetryableLLMError


def _response(text):
    response = mock.MagicMock()
    response.text = text
    return response


class TestGeminiMerchantService(unittest.TestCase):
    """Test GeminiMerchantService with a fake Gemini client."""

    def setUp(self):
        """Set up test fixtures."""
        self.settings = AppSettings(retry_initial_delay_seconds=0, retry_max_retries=3)
        self.client = mock.MagicMock()
        self.cache = MerchantCache()
        self.service = GeminiMerchantService(self.settings, cache=self.cache, client=self.client)

    def tearDown(self):
        """Clean up test fixtures."""
        self.cache.close()

    def test_normalize_calls_model_once_then_uses_cache(self):
        self.client.models.generate_content.return_value = _response('{"normalizedMerchant": "Netflix"}')

        self.assertEqual(self.service.normalize(" NETFLIX.COM *1234 CA "), "Netflix")
        self.assertEqual(self.service.normalize("NETFLIX.COM *1234 CA"), "Netflix")

        self.assertEqual(self.client.models.generate_content.call_count, 1)
        self.assertEqual(self.cache.get_normalized("NETFLIX.COM *1234 CA"), "Netflix")

    def test_normalize_prompt_and_model(self):
        self.client.models.generate_content.return_value = _response('{"normalizedMerchant": "Uber"}')

        self.service.normalize("UBER *TRIP")

        kwargs = self.client.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], self.settings.llm_model_name)
        self.assertIn("merchant: UBER *TRIP", kwargs["contents"])
        self.assertEqual(kwargs["config"].response_mime_type, "application/json")

    def test_normalize_empty_result_keeps_input(self):
        self.client.models.generate_content.return_value = _response('{"normalizedMerchant": "  "}')
        self.assertEqual(self.service.normalize(" Corner Cafe "), "Corner Cafe")

    def test_normalize_blank_input_skips_model(self):
        self.assertEqual(self.service.normalize("   "), "   ")
        self.client.models.generate_content.assert_not_called()

    def test_categorize(self):
        self.client.models.generate_content.return_value = _response('{"category": "Entertainment"}')

        self.assertEqual(self.service.categorize("Netflix"), Category.ENTERTAINMENT)
        self.assertEqual(self.service.categorize("Netflix"), Category.ENTERTAINMENT)
        self.assertEqual(self.client.models.generate_content.call_count, 1)

        prompt = self.client.models.generate_content.call_args.kwargs["contents"]
        self.assertIn("- Food & Drink", prompt)

    def test_categorize_unknown_label_falls_back_to_other(self):
        self.client.models.generate_content.return_value = _response('{"category": "Streaming"}')
        self.assertEqual(self.service.categorize("Netflix"), Category.OTHER)
        self.assertEqual(self.cache.get_category("Netflix"), Category.OTHER)

    def test_categorize_blank_is_other(self):
        self.assertEqual(self.service.categorize(""), Category.OTHER)
        self.client.models.generate_content.assert_not_called()

    def test_transient_failure_is_retried(self):
        self.client.models.generate_content.side_effect = [
            ConnectionError("reset"),
            _response('{"normalizedMerchant": "Spotify"}'),
        ]

        self.assertEqual(self.service.normalize("SPOTIFY P1234"), "Spotify")
        self.assertEqual(self.client.models.generate_content.call_count, 2)

    def test_invalid_json_is_retried_then_raises(self):
        self.client.models.generate_content.return_value = _response("not json")

        with self.assertRaises(RetryableLLMError):
            self.service.normalize("SPOTIFY P1234")
        self.assertEqual(self.client.models.generate_content.call_count, 3)

    def test_null_normalized_merchant_keeps_input(self):
        self.client.models.generate_content.return_value = _response('{"normalizedMerchant": null}')

        self.assertEqual(self.service.normalize(" Corner Cafe "), "Corner Cafe")
        self.assertEqual(self.client.models.generate_content.call_count, 1)

    def test_null_category_is_other(self):
        self.client.models.generate_content.return_value = _response('{"category": null}')

        self.assertEqual(self.service.categorize("Netflix"), Category.OTHER)
        self.assertEqual(self.client.models.generate_content.call_count, 1)

    def test_client_error_is_not_retried(self):
        self.client.models.generate_content.side_effect = errors.ClientError(
            403, {"error": {"code": 403, "message": "API key not valid", "status": "PERMISSION_DENIED"}}
        )

        with self.assertRaises(LLMError) as ctx:
            self.service.normalize("SPOTIFY P1234")
        self.assertNotIsInstance(ctx.exception, RetryableLLMError)
        self.assertEqual(self.client.models.generate_content.call_count, 1)

    def test_rate_limit_is_retried(self):
        self.client.models.generate_content.side_effect = [
            errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}),
            _response('{"normalizedMerchant": "Spotify"}'),
        ]

        self.assertEqual(self.service.normalize("SPOTIFY P1234"), "Spotify")
        self.assertEqual(self.client.models.generate_content.call_count, 2)

    def test_missing_api_key(self):
        with mock.patch.dict(os.environ):
            os.environ.pop("GEMINI_API_KEY", None)
            with self.assertRaises(ConfigError):
                GeminiMerchantService(self.settings)


class TestPassthroughMerchantService(unittest.TestCase):
    """Test offline merchant service."""

    def test_identity_and_other(self):
        service = PassthroughMerchantService()
        self.assertEqual(service.normalize("Corner Cafe"), "Corner Cafe")
        self.assertEqual(service.categorize("Corner Cafe"), Category.OTHER)

    def test_uses_cache(self):
        cache = MerchantCache()
        cache.set_normalized("NETFLIX.COM", "Netflix")
        cache.set_category("Netflix", Category.ENTERTAINMENT)

        service = PassthroughMerchantService(cache)
        self.assertEqual(service.normalize("NETFLIX.COM"), "Netflix")
        self.assertEqual(service.categorize("Netflix"), Category.ENTERTAINMENT)
        cache.close()


if __name__ == "__main__":
    unittest.main()
