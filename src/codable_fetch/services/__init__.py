"""
Consumers of fetch capabilities.
"""

from .posts import LocalFetcher, PostsViewModel, RemoteFetcher, posts_fetcher

__all__ = ["LocalFetcher", "PostsViewModel", "RemoteFetcher", "posts_fetcher"]
