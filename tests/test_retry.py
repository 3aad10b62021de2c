"""Tests for retry decorator."""
import unittest
from unittest import mock

from spendscan.utils.exceptions import RetryableError, ValidationError
from spendscan.utils.retry import retry_with_backoff


class TestRetryWithBackoff(unittest.TestCase):
    """Test retry_with_backoff behavior."""

    @mock.patch("spendscan.utils.retry.time.sleep")
    def test_retries_with_increasing_delay(self, sleep):
        calls = mock.Mock(side_effect=[RetryableError("a"), RetryableError("b"), "ok"])

        @retry_with_backoff(max_retries=3, initial_delay=1.0, backoff_factor=2.0)
        def flaky():
            return calls()

        self.assertEqual(flaky(), "ok")
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [1.0, 2.0])

    @mock.patch("spendscan.utils.retry.time.sleep")
    def test_gives_up_after_ceiling(self, sleep):
        calls = mock.Mock(side_effect=RetryableError("down"))

        @retry_with_backoff(max_retries=3)
        def always_fails():
            return calls()

        with self.assertRaises(RetryableError):
            always_fails()
        self.assertEqual(calls.call_count, 3)

    @mock.patch("spendscan.utils.retry.time.sleep")
    def test_non_retryable_propagates_immediately(self, sleep):
        calls = mock.Mock(side_effect=ValidationError("bad"))

        @retry_with_backoff(max_retries=3)
        def invalid():
            return calls()

        with self.assertRaises(ValidationError):
            invalid()
        self.assertEqual(calls.call_count, 1)
        sleep.assert_not_called()


if __name__ == "__main__":
    unittest.main()
