"""Merchant normalization and categorization module."""
from .merchant_cache import MerchantCache
from .merchant_service import MerchantService, GeminiMerchantService, PassthroughMerchantService

__all__ = ["MerchantCache", "MerchantService", "GeminiMerchantService", "PassthroughMerchantService"]
