"""Process-wide holder for the graph client and the view controller."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from eunify.core.config import settings
from eunify.knowledge.graph.client import GraphServiceClient
from eunify.knowledge.graph.styles import TypeStyleMap
from eunify.visualization.render import RenderAdapter
from eunify.visualization.state import GraphViewController

logger = logging.getLogger(__name__)


class ViewManager:
    """Lazily creates the REST client and the page controller."""

    def __init__(self) -> None:
        self.client: Optional[GraphServiceClient] = None
        self.controller: Optional[GraphViewController] = None

    async def initialize(
        self,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        style_map: Optional[TypeStyleMap] = None,
    ) -> None:
        logger.info("Initializing graph view manager against %s", settings.graph_service_url)
        self.client = GraphServiceClient(config=settings, client=http_client)
        adapter = RenderAdapter(style_map) if style_map is not None else RenderAdapter()
        self.controller = GraphViewController(self.client, adapter)

    async def close(self) -> None:
        logger.info("Closing graph view manager")
        if self.controller is not None:
            self.controller.close()
            self.controller = None
        if self.client is not None:
            await self.client.close()
            self.client = None


# Singleton instance used by the API
view_manager = ViewManager()
