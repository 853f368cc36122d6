from __future__ import annotations

from fastapi import HTTPException, status

from eunify.visualization.manager import view_manager
from eunify.visualization.state import GraphViewController


async def get_controller() -> GraphViewController:
    if view_manager.controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Graph view is not initialized",
        )
    return view_manager.controller
