"""
HTTP access for the extraction methods.

A single aiohttp session per container with exponential backoff and jitter on
429/5xx responses. Callers that need to see a 429 themselves (keyed caption
APIs) pass ``max_retries=0``.
"""

from .http_client import CrawlerResponse, HttpClient

__all__ = ["CrawlerResponse", "HttpClient"]
