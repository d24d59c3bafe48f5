"""
Portfolio catalog stored as ``{"items": [...]}`` at
``/portfolio/portfolio.json``.
"""

from __future__ import annotations

from familyhub.collection import CollectionService
from familyhub.paths import PORTFOLIO_DOCUMENT
from familyhub.records import PortfolioItem


class PortfolioService(CollectionService):
    path_template = PORTFOLIO_DOCUMENT
    wrapper_key = "items"
    record_type = PortfolioItem
    record_name = "Portfolio item"

    def catalog(self, token: str) -> dict:
        """The catalog document in its stored shape."""
        return {self.wrapper_key: self.list(token)}
