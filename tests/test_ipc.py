"""Tests for the channel handlers exposed to the UI."""

import base64

import pytest

import constants as C
from ipc import WorkbenchHandlers, create_handlers
from model_catalog import STATIC_MODELS


@pytest.fixture
def sent():
    return []


@pytest.fixture
def handlers(catalog, binding, credentials, sent):
    return WorkbenchHandlers(
        catalog=catalog,
        binding=binding,
        credentials=credentials,
        send_event=lambda channel, payload: sent.append((channel, payload)),
    )


def test_every_channel_is_registered(handlers):
    assert set(handlers.channels) == {
        "models:list",
        "models:getDefault",
        "models:setDefault",
        "models:setApiKey",
        "models:getApiKey",
        "models:deleteApiKey",
        "models:listProviders",
        "models:refreshOllama",
        "models:refreshOllamaLocal",
        "models:testOllamaLocal",
        "models:getOllamaLocalEndpoint",
        "models:setOllamaLocalEndpoint",
        "workspace:get",
        "workspace:set",
        "workspace:select",
        "workspace:loadFromDisk",
        "workspace:readFile",
        "workspace:readBinaryFile",
    }


@pytest.mark.asyncio
async def test_unknown_channel(handlers):
    result = await handlers.invoke("models:explode")

    assert result == {"success": False, "error": "Unknown channel: models:explode"}


@pytest.mark.asyncio
async def test_handler_errors_are_returned(handlers):
    result = await handlers.invoke("models:setApiKey", {"provider": C.PROVIDER_OLLAMA_LOCAL, "apiKey": "x"})

    assert result["success"] is False
    assert "does not use an API key" in result["error"]


@pytest.mark.asyncio
async def test_list_models_returns_dicts(handlers):
    models = await handlers.invoke("models:list")

    assert [m["id"] for m in models] == [m.id for m in STATIC_MODELS]
    assert all(m["available"] is False for m in models)


@pytest.mark.asyncio
async def test_api_key_channels(handlers):
    await handlers.invoke("models:setApiKey", {"provider": "anthropic", "apiKey": "sk-ant"})

    assert await handlers.invoke("models:getApiKey", "anthropic") == "sk-ant"
    providers = {p["id"]: p["hasApiKey"] for p in await handlers.invoke("models:listProviders")}
    assert providers["anthropic"] is True

    await handlers.invoke("models:deleteApiKey", "anthropic")
    assert await handlers.invoke("models:getApiKey", "anthropic") is None


@pytest.mark.asyncio
async def test_default_model_channels(handlers):
    assert await handlers.invoke("models:getDefault") == C.DEFAULT_MODEL_ID

    await handlers.invoke("models:setDefault", "gpt-4o")

    assert await handlers.invoke("models:getDefault") == "gpt-4o"


@pytest.mark.asyncio
async def test_local_ollama_channels(handlers, local_client):
    local_client.models = [{"name": "llama3.2:3b"}]
    local_client.reachable = True

    await handlers.invoke("models:setOllamaLocalEndpoint", "http://gpu-box:11434")

    assert await handlers.invoke("models:getOllamaLocalEndpoint") == "http://gpu-box:11434"
    assert await handlers.invoke("models:testOllamaLocal") is True
    assert await handlers.invoke("models:refreshOllamaLocal") == 1
    assert await handlers.invoke("models:refreshOllama") == 0
    assert local_client.calls == ["http://gpu-box:11434"]


@pytest.mark.asyncio
async def test_workspace_channels(handlers, workspace_dir, picker):
    path = str(workspace_dir)

    assert await handlers.invoke("workspace:set", {"threadId": "t1", "path": path}) == path
    assert await handlers.invoke("workspace:get", "t1") == path

    snap = await handlers.invoke("workspace:loadFromDisk", {"threadId": "t1"})
    assert snap["success"] is True
    assert snap["workspacePath"] == path
    assert snap["files"][0]["path"] == "/file.txt"

    text = await handlers.invoke("workspace:readFile", {"threadId": "t1", "filePath": "/file.txt"})
    assert text["content"] == "hi"

    blob = await handlers.invoke("workspace:readBinaryFile", {"threadId": "t1", "filePath": "/file.txt"})
    assert blob["encoding"] == "base64"
    assert base64.b64decode(blob["content"]) == b"hi"

    denied = await handlers.invoke("workspace:readFile", {"threadId": "t1", "filePath": "/../secret"})
    assert denied == {
        "success": False,
        "error": "Access denied: path outside workspace",
        "error_code": "AccessDenied",
    }

    picker.canceled = True
    assert await handlers.invoke("workspace:select", "t1") is None


@pytest.mark.asyncio
async def test_global_workspace_channel(handlers, workspace_dir):
    await handlers.invoke("workspace:set", {"threadId": None, "path": str(workspace_dir)})

    assert await handlers.invoke("workspace:get") == str(workspace_dir)


def test_files_changed_is_forwarded(handlers, binding, sent):
    binding.watcher.on_change("t1", [("added", "/new.txt")])

    assert sent == [
        (C.EVENT_FILES_CHANGED, {"threadId": "t1", "changes": [{"type": "added", "path": "/new.txt"}]}),
    ]


def test_create_handlers_wires_stores(settings, credentials, threads, picker):
    handlers = create_handlers(picker=picker, settings=settings, credentials=credentials, threads=threads)

    assert handlers.catalog.settings is settings
    assert handlers.binding.picker is picker
    assert handlers.binding.watcher.on_change == handlers.binding._on_watch_change
