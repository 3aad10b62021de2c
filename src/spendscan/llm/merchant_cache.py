"""Merchant normalization and category cache."""
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional, Union

import Levenshtein

from spendscan.analytics.models import Category
from spendscan.utils.logger import get_logger

logger = get_logger()

MEMORY = ":memory:"


class MerchantCache:
    """
    SQLite store of raw->normalized merchant names and merchant->category.

    The cache lives as long as the object: pass a file path for a cache shared
    across runs, or ":memory:" for one scoped to a single analysis.
    """

    def __init__(self, db_path: Union[str, Path] = MEMORY, fuzzy_threshold: int = 0):
        """
        Initialize merchant cache.

        Args:
            db_path: SQLite file path, or ":memory:"
            fuzzy_threshold: Maximum Levenshtein distance for category fuzzy match (0 disables)
        """
        self.fuzzy_threshold = fuzzy_threshold
        if str(db_path) != MEMORY:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_db()

    def _init_db(self):
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS merchant_norm_cache (
                    raw_merchant TEXT PRIMARY KEY,
                    normalized_merchant TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS merchant_category_cache (
                    merchant TEXT PRIMARY KEY,
                    category TEXT NOT NULL
                )
            """)
            self._conn.commit()

    def get_normalized(self, raw_merchant: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute(
                "SELECT normalized_merchant FROM merchant_norm_cache WHERE raw_merchant = ?",
                (raw_merchant,)
            ).fetchone()
        return row[0] if row and row[0] else None

    def set_normalized(self, raw_merchant: str, normalized: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO merchant_norm_cache (raw_merchant, normalized_merchant) VALUES (?, ?)",
                (raw_merchant, normalized)
            )
            self._conn.commit()
        logger.debug(f"Cached normalization: {raw_merchant} -> {normalized}")

    def get_category(self, merchant: str) -> Optional[Category]:
        """
        Look up category for merchant.

        Exact match first, then the closest cached merchant within the fuzzy
        threshold. Stored values outside the category set are ignored.

        Returns:
            Category or None if not found
        """
        mappings = self._category_mappings()

        label = mappings.get(merchant)
        if label in Category.labels():
            logger.debug(f"Exact category match: {merchant} -> {label}")
            return Category(label)

        if self.fuzzy_threshold <= 0:
            return None

        key = merchant.strip().lower()
        best = None
        for cached_merchant, cached_label in mappings.items():
            if cached_label not in Category.labels():
                continue
            distance = Levenshtein.distance(key, cached_merchant.strip().lower())
            if distance <= self.fuzzy_threshold and (best is None or distance < best[0]):
                best = (distance, cached_merchant, cached_label)

        if best is None:
            logger.debug(f"No category match found for: {merchant}")
            return None

        logger.debug(
            f"Fuzzy category match: {merchant} -> {best[1]} (distance: {best[0]}) -> {best[2]}"
        )
        return Category(best[2])

    def set_category(self, merchant: str, category: Category) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO merchant_category_cache (merchant, category) VALUES (?, ?)",
                (merchant, Category.from_label(category).value)
            )
            self._conn.commit()
        logger.debug(f"Cached category: {merchant} -> {category}")

    def _category_mappings(self) -> Dict[str, str]:
        with self._lock:
            rows = self._conn.execute("SELECT merchant, category FROM merchant_category_cache").fetchall()
        return {merchant: category for merchant, category in rows}

    def clear(self) -> int:
        """Delete every cached entry and return the number of rows removed."""
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("DELETE FROM merchant_norm_cache")
            deleted = cursor.rowcount
            cursor.execute("DELETE FROM merchant_category_cache")
            deleted += cursor.rowcount
            self._conn.commit()
        return deleted

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "MerchantCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
