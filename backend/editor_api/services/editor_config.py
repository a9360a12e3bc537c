"""
Editor configuration (`editor.yaml`) and project data merging
"""

import yaml
from typing import Dict

from editor_api.services.storage_service import BranchStorage

EDITOR_CONFIG_FILE = "editor.yaml"

# The connector cannot create workspaces.
FEATURE_WORKSPACE_CREATE = "workspace.create"


async def read_editor_config(storage: BranchStorage) -> Dict:
    """Parsed editor.yaml, or {} when the file is missing or empty."""
    try:
        raw_file = await storage.read_file(EDITOR_CONFIG_FILE)
    except FileNotFoundError:
        raw_file = ""
    return yaml.safe_load(raw_file) or {}


def merge_project(connector_project: Dict, editor_config: Dict) -> Dict:
    """
    Combine connector project data with the editor configuration.

    Experiments and features from editor.yaml act as defaults; values from the
    connector take precedence, as do its site and title.
    """
    project = dict(connector_project)
    project["experiments"] = {
        **(editor_config.get("experiments") or {}),
        **(project.get("experiments") or {}),
    }
    project["features"] = {
        **(editor_config.get("features") or {}),
        **(project.get("features") or {}),
    }
    project["features"][FEATURE_WORKSPACE_CREATE] = False

    return {
        "site": editor_config.get("site"),
        "title": editor_config.get("title"),
        **project,
    }
