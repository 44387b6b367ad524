"""Nova product scraper - multi-platform product extraction and normalization."""

__version__ = "1.0.0"
