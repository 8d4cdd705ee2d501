"""
Container API Router

Sandbox container lifecycle routes.
Routes only; all logic lives in the service layer.
"""

from fastapi import APIRouter, Path, Body
from pydantic import BaseModel

from workbench.service.container_service import ContainerService

container_router = APIRouter(prefix="/containers", tags=["containers"])

container_service = ContainerService()


# ===================
# Request Models
# ===================

class BuildImageRequest(BaseModel):
    session_id: str


class CreateContainerRequest(BaseModel):
    image: str
    session_id: str


# ===================
# Routes
# ===================

@container_router.post("/images", summary="Build image", operation_id="build_image")
async def build_image(data: BuildImageRequest = Body(...)):
    """Build the session image from the project Containerfile"""
    return await container_service.build_image(session_id=data.session_id)


@container_router.post("", summary="Create container", operation_id="create_container")
async def create_container(data: CreateContainerRequest = Body(...)):
    """Create and start a container on a freshly allocated host port"""
    return await container_service.create_container(image=data.image, session_id=data.session_id)


@container_router.get("", summary="List containers", operation_id="list_containers")
async def list_containers():
    """List all project containers"""
    return await container_service.list_containers()


@container_router.get("/{container_id}", summary="Inspect container", operation_id="inspect_container")
async def inspect_container(container_id: str = Path(..., description="Container ID")):
    return await container_service.inspect_container(container_id=container_id)


@container_router.post("/{container_id}/start", summary="Start container", operation_id="start_container")
async def start_container(container_id: str = Path(..., description="Container ID")):
    """Start a container on its recorded port"""
    return await container_service.start_container(container_id=container_id)


@container_router.post("/{container_id}/stop", summary="Stop container", operation_id="stop_container")
async def stop_container(container_id: str = Path(..., description="Container ID")):
    return await container_service.stop_container(container_id=container_id)


@container_router.delete("/{container_id}", summary="Delete container", operation_id="delete_container")
async def delete_container(container_id: str = Path(..., description="Container ID")):
    """Delete a container and its session image"""
    return await container_service.delete_container(container_id=container_id)
