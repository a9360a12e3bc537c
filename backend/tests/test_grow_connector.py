"""Tests for the Grow connector and editor configuration merging."""

import pytest

from editor_api.connectors.base import connector_for_storage
from editor_api.connectors.grow import GrowConnector, split_front_matter
from editor_api.core.errors import ConnectorNotFoundError
from editor_api.services.editor_config import merge_project, read_editor_config
from editor_api.services.storage_service import BranchStorage


@pytest.fixture
def storage(tmp_path):
    (tmp_path / "podspec.yaml").write_text("title: Example Site\n", encoding="utf-8")
    (tmp_path / "content" / "pages").mkdir(parents=True)
    (tmp_path / "content" / "pages" / "index.yaml").write_text(
        "title: Home\npartials:\n- hero\n", encoding="utf-8"
    )
    (tmp_path / "content" / "pages" / "about.md").write_text(
        "---\ntitle: About\n---\n# About us\n", encoding="utf-8"
    )
    return BranchStorage(tmp_path)


def test_split_front_matter():
    assert split_front_matter("---\na: 1\n---\nbody\n") == ("a: 1\n", "body\n")
    assert split_front_matter("---\n---\nbody") == ("", "body")
    assert split_front_matter("no front matter") == (None, "no front matter")


@pytest.mark.asyncio
async def test_connector_selection(storage, tmp_path):
    connector = await connector_for_storage(storage)
    assert isinstance(connector, GrowConnector)

    (tmp_path / "podspec.yaml").unlink()
    with pytest.raises(ConnectorNotFoundError):
        await connector_for_storage(storage)


@pytest.mark.asyncio
async def test_get_yaml_file(storage):
    result = await GrowConnector(storage).get_file("/content/pages/index.yaml")

    assert result["file"] == {"path": "/content/pages/index.yaml"}
    assert result["data"] == {"title": "Home", "partials": ["hero"]}
    assert result["dataRaw"].startswith("title: Home")


@pytest.mark.asyncio
async def test_get_markdown_file(storage):
    result = await GrowConnector(storage).get_file("/content/pages/about.md")

    assert result["data"] == {"title": "About"}
    assert result["content"] == "# About us\n"


@pytest.mark.asyncio
async def test_save_markdown_file_rebuilds_front_matter(storage, tmp_path):
    connector = GrowConnector(storage)
    await connector.save_file(
        {
            "file": {"path": "/content/pages/about.md"},
            "data": {"title": "About Us"},
            "content": "# Who we are\n",
        }
    )

    raw = (tmp_path / "content" / "pages" / "about.md").read_text(encoding="utf-8")
    assert raw == "---\ntitle: About Us\n---\n# Who we are\n"


@pytest.mark.asyncio
async def test_save_yaml_file_raw_edit_keeps_text(storage, tmp_path):
    connector = GrowConnector(storage)
    result = await connector.save_file(
        {
            "file": {"path": "/content/pages/index.yaml"},
            "dataRaw": "# comment kept\ntitle: Raw\n",
        },
        is_raw_edit=True,
    )

    raw = (tmp_path / "content" / "pages" / "index.yaml").read_text(encoding="utf-8")
    assert raw == "# comment kept\ntitle: Raw\n"
    assert result["data"] == {"title": "Raw"}


def test_file_filter(storage):
    connector = GrowConnector(storage)
    assert connector.file_filter("/content/pages/index.yaml")
    assert not connector.file_filter("/podspec.yaml")
    assert not connector.file_filter("/content/images/logo.png")


@pytest.mark.asyncio
async def test_project_title_from_podspec(storage):
    assert await GrowConnector(storage).get_project() == {"title": "Example Site"}


@pytest.mark.asyncio
async def test_missing_editor_config_is_empty(storage):
    assert await read_editor_config(storage) == {}


@pytest.mark.asyncio
async def test_editor_config_is_parsed(storage, tmp_path):
    (tmp_path / "editor.yaml").write_text(
        "site: example\ndevices:\n- label: Mobile\n  width: 411\n", encoding="utf-8"
    )
    config = await read_editor_config(storage)
    assert config["devices"] == [{"label": "Mobile", "width": 411}]


def test_merge_project_precedence():
    editor_config = {
        "site": "example",
        "title": "Editor Title",
        "experiments": {"a": True, "b": True},
        "features": {"x": True, "workspace.create": True},
    }
    connector_project = {"title": "Connector Title", "experiments": {"b": False}}

    project = merge_project(connector_project, editor_config)

    assert project["site"] == "example"
    assert project["title"] == "Connector Title"
    assert project["experiments"] == {"a": True, "b": False}
    assert project["features"] == {"x": True, "workspace.create": False}
