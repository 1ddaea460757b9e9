"""Shared test fixtures for AgentWorkbench."""

import pytest

from api import OllamaConnectionError
from model_catalog import ModelCatalog
from storage import CredentialStore, SettingsStore, ThreadStore
from workspace import WorkspaceBinding, WorkspaceWatcher


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCloudClient:
    """Stands in for OllamaCloudClient; records each call."""

    def __init__(self, models=None, error=None):
        self.models = models or []
        self.error = error
        self.calls: list[str] = []

    async def list_models(self, api_key):
        self.calls.append(api_key)
        if self.error is not None:
            raise self.error
        return list(self.models)


class FakeLocalClient:
    """Stands in for OllamaLocalClient; unreachable unless given models."""

    def __init__(self, models=None, error=None, reachable=False):
        self.models = models
        self.error = error
        self.reachable = reachable
        self.calls: list[str] = []
        self.probes: list[str] = []

    async def list_models(self, endpoint):
        self.calls.append(endpoint)
        if self.error is not None:
            raise self.error
        if self.models is None:
            raise OllamaConnectionError(f"Cannot reach local Ollama at {endpoint}")
        return list(self.models)

    async def check_connection(self, endpoint):
        self.probes.append(endpoint)
        return self.reachable


class FakePicker:
    def __init__(self, paths=None, canceled=False):
        self.paths = paths or []
        self.canceled = canceled
        self.shown = 0

    async def show(self):
        self.shown += 1
        return {"canceled": self.canceled, "paths": list(self.paths)}


class RecordingWatcher(WorkspaceWatcher):
    """Watcher that records start/stop instead of touching the filesystem."""

    def __init__(self):
        super().__init__()
        self.events: list[tuple] = []
        self.active: dict[str, str] = {}

    def start(self, thread_id, root):
        self.events.append(("start", thread_id, root))
        self.active[thread_id] = root

    def stop(self, thread_id):
        self.events.append(("stop", thread_id))
        self.active.pop(thread_id, None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(path=str(tmp_path / "settings.json"))


@pytest.fixture
def credentials(tmp_path):
    return CredentialStore(path=str(tmp_path / ".env"), environ={})


@pytest.fixture
def threads(tmp_path):
    store = ThreadStore(path=str(tmp_path / "threads.json"))
    store.create_thread("t1", "First")
    store.create_thread("t2", "Second")
    return store


@pytest.fixture
def workspace_dir(tmp_path):
    """A project folder with one visible file plus hidden and noise entries."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "file.txt").write_text("hi", encoding="utf-8")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (root / ".env").write_text("SECRET=1\n", encoding="utf-8")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "pkg.js").write_text("module.exports = 1\n", encoding="utf-8")
    return root


@pytest.fixture
def nested_workspace(workspace_dir):
    src = workspace_dir / "src"
    src.mkdir()
    (src / "main.py").write_text("print('hello')\n", encoding="utf-8")
    (src / "pkg").mkdir()
    (src / "pkg" / "__init__.py").write_text("", encoding="utf-8")
    (src / ".cache").mkdir()
    (src / ".cache" / "junk").write_text("x", encoding="utf-8")
    return workspace_dir


@pytest.fixture
def recording_watcher():
    return RecordingWatcher()


@pytest.fixture
def picker():
    return FakePicker()


@pytest.fixture
def binding(threads, settings, recording_watcher, picker):
    return WorkspaceBinding(threads=threads, settings=settings, watcher=recording_watcher, picker=picker)


@pytest.fixture
def cloud_client():
    return FakeCloudClient()


@pytest.fixture
def local_client():
    return FakeLocalClient()


@pytest.fixture
def catalog(credentials, settings, cloud_client, local_client, clock):
    return ModelCatalog(
        credentials=credentials,
        settings=settings,
        cloud_client=cloud_client,
        local_client=local_client,
        clock=clock,
    )
