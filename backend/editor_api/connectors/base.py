"""
Connectors map repository files to structured editor content.
"""

from typing import Dict, List, Optional, Type

from editor_api.core.errors import ConnectorNotFoundError
from editor_api.services.storage_service import BranchStorage


class Connector:
    """Base class; subclasses describe one kind of site generator."""

    name = "base"

    def __init__(self, storage: BranchStorage):
        self.storage = storage

    @classmethod
    async def can_apply(cls, storage: BranchStorage) -> bool:
        raise NotImplementedError("Subclasses must implement Connector.can_apply")

    def file_filter(self, path: str) -> bool:
        """Whether a file is shown in the editor's file list."""
        return True

    async def get_file(self, path: str) -> Dict:
        raise NotImplementedError("Subclasses must implement Connector.get_file")

    async def save_file(self, file_data: Dict, is_raw_edit: bool = False) -> Dict:
        raise NotImplementedError("Subclasses must implement Connector.save_file")

    async def upload_file(self, path: str, content: bytes) -> Dict:
        await self.storage.write_file(path, content)
        return {"path": path}

    async def get_project(self) -> Dict:
        return {}


def _registered_connectors() -> List[Type[Connector]]:
    from editor_api.connectors.grow import GrowConnector

    return [GrowConnector]


async def connector_for_storage(
    storage: BranchStorage,
    connectors: Optional[List[Type[Connector]]] = None,
) -> Connector:
    """First connector whose marker files are present in the working copy."""
    for connector_class in connectors or _registered_connectors():
        if await connector_class.can_apply(storage):
            return connector_class(storage)
    raise ConnectorNotFoundError()
