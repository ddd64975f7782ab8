"""Scaleway compute API binding."""

from .client import ScalewayClient
from .config import Scaleway

__all__ = [
    "Scaleway",
    "ScalewayClient",
]
