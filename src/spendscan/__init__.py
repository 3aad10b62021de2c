"""SpendScan: bank statement text parsing, categorization and subscription detection."""

__version__ = "0.1.0"
