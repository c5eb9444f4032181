from .embed_strategy import EmbedStrategyPort
from .hoster_resolver import HosterResolverPort
from .scraping import ScrapingPort

__all__ = [
    "EmbedStrategyPort",
    "HosterResolverPort",
    "ScrapingPort",
]
