"""
Error handling module for the listing search engine.

Provides the error taxonomy, retry logic and fetch failure diagnostics.
"""

from .error_handler import DataUnavailable, ErrorHandler, RetryConfig, SearchError

__all__ = ['DataUnavailable', 'ErrorHandler', 'RetryConfig', 'SearchError']
