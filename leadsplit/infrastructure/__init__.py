"""Infrastructure layer exports."""

from .distributions import DistributionRepository, InMemoryDistributionRepository

__all__ = [
    "DistributionRepository",
    "InMemoryDistributionRepository",
]
