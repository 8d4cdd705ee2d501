"""
File API Router

Routes for browsing and editing files inside a sandbox container.
Routes only; all logic lives in the service layer.
"""

from typing import Optional

from fastapi import APIRouter, Query, Path, Body
from pydantic import BaseModel

from workbench.service.file_service import FileService

file_router = APIRouter(prefix="/containers/{container_id}/files", tags=["files"])

file_service = FileService()


# ===================
# Request Models
# ===================

class WriteFileRequest(BaseModel):
    path: str
    content: str


class RenameFileRequest(BaseModel):
    old_path: str
    new_path: str


# ===================
# Routes
# ===================

@file_router.get("/tree", summary="File tree", operation_id="get_file_tree")
async def get_file_tree(
    container_id: str = Path(..., description="Container ID"),
    path: Optional[str] = Query(None, description="Directory to walk"),
):
    return await file_service.get_file_tree(container_id=container_id, path=path)


@file_router.get("/content-tree", summary="File tree with contents", operation_id="get_file_content_tree")
async def get_file_content_tree(
    container_id: str = Path(..., description="Container ID"),
    path: Optional[str] = Query(None, description="Directory to walk"),
):
    return await file_service.get_file_content_tree(container_id=container_id, path=path)


@file_router.get("/list", summary="List directory", operation_id="list_directory")
async def list_directory(
    container_id: str = Path(..., description="Container ID"),
    path: Optional[str] = Query(None, description="Directory to list"),
):
    return await file_service.list_directory(container_id=container_id, path=path)


@file_router.get("/content", summary="Read file", operation_id="read_file")
async def read_file(
    container_id: str = Path(..., description="Container ID"),
    path: str = Query(..., description="File path"),
):
    return await file_service.read_file(container_id=container_id, path=path)


@file_router.put("/content", summary="Write file", operation_id="write_file")
async def write_file(
    container_id: str = Path(..., description="Container ID"),
    data: WriteFileRequest = Body(...),
):
    return await file_service.write_file(container_id=container_id, path=data.path, content=data.content)


@file_router.post("/rename", summary="Rename file", operation_id="rename_file")
async def rename_file(
    container_id: str = Path(..., description="Container ID"),
    data: RenameFileRequest = Body(...),
):
    return await file_service.rename_file(
        container_id=container_id,
        old_path=data.old_path,
        new_path=data.new_path,
    )


@file_router.delete("", summary="Remove file", operation_id="remove_file")
async def remove_file(
    container_id: str = Path(..., description="Container ID"),
    path: str = Query(..., description="File or directory path"),
):
    return await file_service.remove_file(container_id=container_id, path=path)
