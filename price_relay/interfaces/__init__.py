"""Protocol interfaces for the price relay."""
from .address_resolver import AddressResolver
from .price_fetcher import PriceFetcher

__all__ = ["AddressResolver", "PriceFetcher"]
