"""Health check router."""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from dependencies.providers import BrainAdapterDep

router = APIRouter(prefix="/health", tags=["health"])


class BrainHealth(BaseModel):
    state: str = Field(..., description="Redis connection state")
    transport: str = Field(..., description="network or unix_socket")
    key_prefix: str
    data_format: str
    auto_save: bool
    authenticated: bool
    socket_path: Optional[str] = None


@router.get("", summary="Health check")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/brain", summary="Brain persistence status", response_model=BrainHealth)
async def brain_health(adapter: BrainAdapterDep) -> BrainHealth:
    return BrainHealth(
        state=adapter.state.value,
        transport=adapter.config.transport.value,
        key_prefix=adapter.prefix,
        data_format=adapter.data_format,
        auto_save=adapter.brain.auto_save,
        authenticated=adapter.authenticated,
        socket_path=adapter.config.socket_path,
    )
