"""
Operation surface exposed to the UI layer.

Each channel maps to one handler. invoke() never raises: failures come back
as {"success": False, "error": ...}.
"""
import logging
from typing import Any, Awaitable, Callable, Optional

import constants as C
from model_catalog import ModelCatalog
from models import FilesChangedEvent
from storage import CredentialStore, SettingsStore, ThreadStore
from workspace import WorkspaceBinding, WorkspaceWatcher

logger = logging.getLogger(__name__)

EventSender = Callable[[str, dict], None]


class WorkbenchHandlers:
    """Handlers for the models:* and workspace:* channels."""

    def __init__(
        self,
        catalog: ModelCatalog,
        binding: WorkspaceBinding,
        credentials: CredentialStore,
        send_event: Optional[EventSender] = None,
    ):
        self.catalog = catalog
        self.binding = binding
        self.credentials = credentials
        self.send_event = send_event
        self.binding.add_listener(self._forward_files_changed)
        self._channels: dict[str, Callable[..., Awaitable[Any]]] = {
            "models:list": self.list_models,
            "models:getDefault": self.get_default_model,
            "models:setDefault": self.set_default_model,
            "models:setApiKey": self.set_api_key,
            "models:getApiKey": self.get_api_key,
            "models:deleteApiKey": self.delete_api_key,
            "models:listProviders": self.list_providers,
            "models:refreshOllama": self.refresh_cloud_models,
            "models:refreshOllamaLocal": self.refresh_local_models,
            "models:testOllamaLocal": self.test_local_connection,
            "models:getOllamaLocalEndpoint": self.get_local_endpoint,
            "models:setOllamaLocalEndpoint": self.set_local_endpoint,
            "workspace:get": self.get_workspace,
            "workspace:set": self.set_workspace,
            "workspace:select": self.select_workspace,
            "workspace:loadFromDisk": self.load_from_disk,
            "workspace:readFile": self.read_file,
            "workspace:readBinaryFile": self.read_binary_file,
        }

    @property
    def channels(self) -> list[str]:
        return list(self._channels)

    async def invoke(self, channel: str, *args: Any) -> Any:
        handler = self._channels.get(channel)
        if handler is None:
            return {"success": False, "error": f"Unknown channel: {channel}"}
        try:
            return await handler(*args)
        except Exception as e:
            logger.exception("Handler for %s failed", channel)
            return {"success": False, "error": str(e)}

    def _forward_files_changed(self, event: FilesChangedEvent) -> None:
        if self.send_event is not None:
            self.send_event(C.EVENT_FILES_CHANGED, event.to_dict())

    # models:*

    async def list_models(self) -> list[dict]:
        return [m.to_dict() for m in await self.catalog.list_models()]

    async def get_default_model(self) -> str:
        return self.catalog.get_default_model()

    async def set_default_model(self, model_id: str) -> None:
        self.catalog.set_default_model(model_id)

    async def set_api_key(self, payload: dict) -> None:
        self.credentials.set_api_key(payload["provider"], payload["apiKey"])

    async def get_api_key(self, provider: str) -> Optional[str]:
        return self.credentials.get_api_key(provider)

    async def delete_api_key(self, provider: str) -> None:
        self.credentials.delete_api_key(provider)

    async def list_providers(self) -> list[dict]:
        return self.catalog.list_providers()

    async def refresh_cloud_models(self) -> int:
        return await self.catalog.refresh_cloud()

    async def refresh_local_models(self) -> int:
        return await self.catalog.refresh_local()

    async def test_local_connection(self, endpoint: Optional[str] = None) -> bool:
        return await self.catalog.test_local_connection(endpoint)

    async def get_local_endpoint(self) -> str:
        return self.catalog.get_local_endpoint()

    async def set_local_endpoint(self, endpoint: str) -> None:
        self.catalog.set_local_endpoint(endpoint)

    # workspace:*

    async def get_workspace(self, thread_id: Optional[str] = None) -> Optional[str]:
        return self.binding.get(thread_id)

    async def set_workspace(self, payload: dict) -> Optional[str]:
        return await self.binding.set(payload.get("threadId"), payload.get("path"))

    async def select_workspace(self, thread_id: Optional[str] = None) -> Optional[str]:
        return await self.binding.select_via_dialog(thread_id)

    async def load_from_disk(self, payload: dict) -> dict:
        result = await self.binding.load_snapshot(payload.get("threadId"))
        return result.to_dict()

    async def read_file(self, payload: dict) -> dict:
        result = await self.binding.read_text(payload.get("threadId"), payload.get("filePath"))
        return result.to_dict()

    async def read_binary_file(self, payload: dict) -> dict:
        result = await self.binding.read_binary(payload.get("threadId"), payload.get("filePath"))
        return result.to_dict()


def create_handlers(
    picker=None,
    send_event: Optional[EventSender] = None,
    settings: Optional[SettingsStore] = None,
    credentials: Optional[CredentialStore] = None,
    threads: Optional[ThreadStore] = None,
) -> WorkbenchHandlers:
    """Build the process-wide catalog and binding and wire them into handlers."""
    settings = settings or SettingsStore()
    credentials = credentials or CredentialStore()
    threads = threads or ThreadStore()
    if picker is None:
        # GTK is only needed when the real folder dialog is used
        from ui.directory_picker import GtkDirectoryPicker
        picker = GtkDirectoryPicker()

    catalog = ModelCatalog(credentials=credentials, settings=settings)
    binding = WorkspaceBinding(threads=threads, settings=settings, watcher=WorkspaceWatcher(), picker=picker)
    return WorkbenchHandlers(catalog=catalog, binding=binding, credentials=credentials, send_event=send_event)
