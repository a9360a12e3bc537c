"""
Connector for Grow (grow.dev) sites
"""

import re
import yaml
from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

from editor_api.connectors.base import Connector
from editor_api.services.storage_service import BranchStorage

PODSPEC_FILE = "podspec.yaml"
CONTENT_EXTENSIONS = {".yaml", ".yml", ".md", ".html"}
DATA_EXTENSIONS = {".yaml", ".yml"}

FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*$\n?(.*)\Z", re.DOTALL | re.MULTILINE)


def split_front_matter(raw: str) -> Tuple[Optional[str], str]:
    match = FRONT_MATTER_RE.match(raw)
    if not match:
        return None, raw
    return match.group(1), match.group(2)


def _dump(data) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


class GrowConnector(Connector):
    name = "grow"

    @classmethod
    async def can_apply(cls, storage: BranchStorage) -> bool:
        return await storage.exists(PODSPEC_FILE)

    def file_filter(self, path: str) -> bool:
        suffix = PurePosixPath(path).suffix
        return path.startswith("/content/") and suffix in CONTENT_EXTENSIONS

    async def get_file(self, path: str) -> Dict:
        raw = await self.storage.read_file(path)
        suffix = PurePosixPath(path).suffix
        result: Dict = {"file": {"path": path}}

        if suffix in DATA_EXTENSIONS:
            result["data"] = yaml.safe_load(raw) or {}
            result["dataRaw"] = raw
            return result

        front_matter, body = split_front_matter(raw)
        if front_matter is not None:
            result["data"] = yaml.safe_load(front_matter) or {}
            result["dataRaw"] = front_matter
        result["content"] = body
        return result

    async def save_file(self, file_data: Dict, is_raw_edit: bool = False) -> Dict:
        """
        Write editor data back in the file's own format.

        Raw edits keep the user's YAML text as typed; otherwise `data` is
        serialized again.
        """
        path = file_data["file"]["path"]
        suffix = PurePosixPath(path).suffix
        data = file_data.get("data")
        data_raw = file_data.get("dataRaw")
        content = file_data.get("content") or ""

        if suffix in DATA_EXTENSIONS:
            if is_raw_edit or data is None:
                raw = data_raw if data_raw is not None else content
            else:
                raw = _dump(data)
        else:
            front_matter = data_raw if is_raw_edit else (_dump(data) if data else None)
            if front_matter:
                if not front_matter.endswith("\n"):
                    front_matter += "\n"
                raw = f"---\n{front_matter}---\n{content}"
            else:
                raw = content

        await self.storage.write_file(path, raw)
        return await self.get_file(path)

    async def get_project(self) -> Dict:
        podspec = yaml.safe_load(await self.storage.read_file(PODSPEC_FILE)) or {}
        project: Dict = {}
        if podspec.get("title"):
            project["title"] = podspec["title"]
        return project
