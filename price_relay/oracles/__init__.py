"""Price oracle implementations."""
from .llama import LlamaPriceFetcher

__all__ = ["LlamaPriceFetcher"]
