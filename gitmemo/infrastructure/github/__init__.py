"""
Infrastructure Clients for the GitHub contents API
"""

from .contents_client import GitHubContentsClient, HttpResponse, parse_retry_after

__all__ = ["GitHubContentsClient", "HttpResponse", "parse_retry_after"]
