"""
Editor API for GitHub hosted projects

Every endpoint is a POST carrying the GitHub code/state pair in its JSON
body; the pair is resolved into an access token before the handler runs.
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from editor_api.connectors.base import Connector, connector_for_storage
from editor_api.core.config import settings
from editor_api.core.errors import ApiError, UnsupportedOperationError
from editor_api.security.auth import require_github_credential
from editor_api.security.rate_limiter import rate_limit
from editor_api.services.commit_history import to_history_entry
from editor_api.services.editor_config import merge_project, read_editor_config
from editor_api.services.github_service import GitHubService
from editor_api.services.oauth_service import GitHubAccessToken
from editor_api.services.storage_service import BranchStorage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/gh/{organization}/{project}/{branch}",
    dependencies=[Depends(rate_limit())],
)


class FileRef(BaseModel):
    path: str


class EditorFileData(BaseModel):
    file: FileRef
    content: Optional[str] = None
    data: Optional[Any] = None
    dataRaw: Optional[str] = None


class EmptyRequest(BaseModel):
    pass


class CopyFileRequest(BaseModel):
    originalPath: str
    path: str


class CreateFileRequest(BaseModel):
    path: str
    content: Optional[str] = None


class FileRequest(BaseModel):
    """Body of file.get and file.delete"""
    file: FileRef


class SaveFileRequest(BaseModel):
    file: EditorFileData
    isRawEdit: bool = False


class UploadFileRequest(BaseModel):
    """Upload of a binary file, content is base64 encoded."""
    path: str
    content: str


class GitHubContext:
    """Per-request access to the branch named in the URL."""

    def __init__(
        self,
        request: Request,
        organization: str,
        project: str,
        branch: str,
        access: GitHubAccessToken = Depends(require_github_credential),
    ):
        self.app_state = request.app.state
        self.organization = organization
        self.project = project
        self.branch = branch
        self.access = access
        self._storage: Optional[BranchStorage] = None

    async def storage(self) -> BranchStorage:
        if self._storage is None:
            self._storage = await self.app_state.storage_manager.storage_for_branch(
                self.organization,
                self.project,
                self.branch,
                self.access.access_token,
            )
        return self._storage

    async def connector(self) -> Connector:
        return await connector_for_storage(await self.storage())

    def github(self) -> GitHubService:
        return GitHubService(
            self.access.access_token,
            client_factory=self.app_state.github_client_factory,
        )


@router.post("/devices.get")
async def get_devices(request: EmptyRequest, ctx: GitHubContext = Depends()) -> List[Dict]:
    editor_config = await read_editor_config(await ctx.storage())
    return editor_config.get("devices") or []


@router.post("/file.copy")
async def copy_file(request: CopyFileRequest, ctx: GitHubContext = Depends()) -> Dict:
    storage = await ctx.storage()
    await storage.write_file(request.path, await storage.read_file(request.originalPath))
    return {"path": request.path}


@router.post("/file.create")
async def create_file(request: CreateFileRequest, ctx: GitHubContext = Depends()) -> Dict:
    storage = await ctx.storage()
    await storage.write_file(request.path, request.content or "")
    return {"path": request.path}


@router.post("/file.delete")
async def delete_file(request: FileRequest, ctx: GitHubContext = Depends()) -> None:
    storage = await ctx.storage()
    await storage.delete_file(request.file.path)


@router.post("/file.get")
async def get_file(request: FileRequest, ctx: GitHubContext = Depends()) -> Dict:
    """
    File contents from the connector, enriched with the file's commit history.
    """
    storage = await ctx.storage()
    connector = await ctx.connector()
    connector_result = await connector.get_file(request.file.path)

    history = await ctx.app_state.history_resolver.resolve(
        storage.root, request.file.path, settings.HISTORY_DEPTH
    )
    return {
        **connector_result,
        "history": [to_history_entry(commit) for commit in history],
    }


@router.post("/file.save")
async def save_file(request: SaveFileRequest, ctx: GitHubContext = Depends()) -> Dict:
    connector = await ctx.connector()
    return await connector.save_file(
        request.file.model_dump(exclude_none=True),
        is_raw_edit=request.isRawEdit,
    )


@router.post("/file.upload")
async def upload_file(request: UploadFileRequest, ctx: GitHubContext = Depends()) -> Dict:
    try:
        content = base64.b64decode(request.content, validate=True)
    except binascii.Error:
        raise ApiError("Invalid upload.", description="File content is not valid base64.", status_code=400)
    connector = await ctx.connector()
    return await connector.upload_file(request.path, content)


@router.post("/files.get")
async def get_files(request: EmptyRequest, ctx: GitHubContext = Depends()) -> List[Dict]:
    storage = await ctx.storage()
    connector = await ctx.connector()
    return [
        {"path": path}
        for path in await storage.list_files()
        if connector.file_filter(path)
    ]


@router.post("/project.get")
async def get_project(request: EmptyRequest, ctx: GitHubContext = Depends()) -> Dict:
    connector = await ctx.connector()
    connector_result = await connector.get_project()
    editor_config = await read_editor_config(await ctx.storage())
    return merge_project(connector_result, editor_config)


@router.post("/publish.start")
async def publish(request: EmptyRequest, ctx: GitHubContext = Depends()) -> Dict:
    raise UnsupportedOperationError("Publish workflow not available for GitHub.")


@router.post("/workspace.create")
async def create_workspace(request: EmptyRequest, ctx: GitHubContext = Depends()) -> Dict:
    raise UnsupportedOperationError("Unable to create new workspace.")


@router.post("/workspace.get")
async def get_workspace(request: EmptyRequest, ctx: GitHubContext = Depends()) -> Dict:
    return await ctx.github().get_workspace(ctx.organization, ctx.project, ctx.branch)


@router.post("/workspaces.get")
async def get_workspaces(request: EmptyRequest, ctx: GitHubContext = Depends()) -> List[Dict]:
    return await ctx.github().list_workspaces(ctx.organization, ctx.project)
