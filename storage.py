"""
Persistence layer for settings, API keys and thread metadata.

Everything lives as plain files under the config directory:
settings.json, threads.json and a .env file for credentials.
"""
import json
import logging
import os
from datetime import datetime
from typing import Any, Optional

import constants as C

logger = logging.getLogger(__name__)


def get_config_dir() -> str:
    """Get config directory path, creating it if needed."""
    override = os.environ.get(C.APP_HOME_ENV, "").strip()
    if override:
        config_dir = os.path.abspath(os.path.expanduser(override))
    else:
        config_dir = os.path.join(os.path.expanduser("~"), ".config", C.APP_NAME)
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def _load_json_object(path: str) -> dict:
    """Load a JSON object from disk, or an empty dict if missing or invalid."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError, ValueError) as e:
        logger.warning("Could not load %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return data


def _save_json_object(path: str, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


class SettingsStore:
    """Key-value store for non-sensitive settings."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or os.path.join(get_config_dir(), C.SETTINGS_FILE)
        self._data = _load_json_object(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        _save_json_object(self.path, self._data)

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            _save_json_object(self.path, self._data)

    def get_ollama_local_endpoint(self) -> str:
        endpoint = self.get(C.SETTING_OLLAMA_LOCAL_ENDPOINT)
        if not isinstance(endpoint, str) or not endpoint.strip():
            return C.OLLAMA_LOCAL_ENDPOINT_DEFAULT
        return endpoint.strip().rstrip("/")

    def set_ollama_local_endpoint(self, endpoint: str) -> None:
        cleaned = (endpoint or "").strip().rstrip("/")
        if cleaned:
            self.set(C.SETTING_OLLAMA_LOCAL_ENDPOINT, cleaned)
        else:
            self.delete(C.SETTING_OLLAMA_LOCAL_ENDPOINT)


class CredentialStore:
    """API keys kept in a .env file, falling back to the process environment.

    Keys written through this store take precedence over the environment;
    deleting a key only removes it from the file.
    """

    def __init__(self, path: Optional[str] = None, environ: Optional[dict] = None):
        self.path = path or os.path.join(get_config_dir(), C.CREDENTIALS_FILE)
        self.environ = os.environ if environ is None else environ

    def _read_env_file(self) -> dict[str, str]:
        values: dict[str, str] = {}
        if not os.path.exists(self.path):
            return values
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    values[key.strip()] = value.strip().strip('"').strip("'")
        except OSError as e:
            logger.warning("Could not read credentials file %s: %s", self.path, e)
        return values

    def _write_env_file(self, values: dict[str, str]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            for key, value in values.items():
                f.write(f"{key}={value}\n")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            pass

    def get_api_key(self, provider_id: str) -> Optional[str]:
        env_name = C.PROVIDER_API_KEY_ENV.get(provider_id)
        if not env_name:
            return None
        value = self._read_env_file().get(env_name) or self.environ.get(env_name)
        return value or None

    def has_api_key(self, provider_id: str) -> bool:
        return bool(self.get_api_key(provider_id))

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        env_name = C.PROVIDER_API_KEY_ENV.get(provider_id)
        if not env_name:
            raise ValueError(f"Provider '{provider_id}' does not use an API key")
        cleaned = (api_key or "").strip()
        if "\n" in cleaned or "\r" in cleaned:
            raise ValueError("API key must be a single line")
        values = self._read_env_file()
        values[env_name] = cleaned
        self._write_env_file(values)

    def delete_api_key(self, provider_id: str) -> None:
        env_name = C.PROVIDER_API_KEY_ENV.get(provider_id)
        if not env_name:
            return
        values = self._read_env_file()
        if env_name in values:
            del values[env_name]
            self._write_env_file(values)


class ThreadStore:
    """Thread records with an opaque JSON metadata string.

    Layout of threads.json:
        {"threads": {"<id>": {"id": ..., "title": ..., "metadata": "<json>"|null,
                              "created_at": ..., "updated_at": ...}},
         "version": 1}
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or os.path.join(get_config_dir(), C.THREADS_FILE)
        data = _load_json_object(self.path)
        threads = data.get("threads")
        self._threads: dict[str, dict] = threads if isinstance(threads, dict) else {}

    def _save(self) -> None:
        _save_json_object(self.path, {"threads": self._threads, "version": 1})

    def create_thread(self, thread_id: str, title: str = "New Thread") -> dict:
        now = datetime.now().isoformat()
        record = {
            "id": thread_id,
            "title": title,
            "metadata": None,
            "created_at": now,
            "updated_at": now,
        }
        self._threads[thread_id] = record
        self._save()
        return dict(record)

    def get_thread(self, thread_id: str) -> Optional[dict]:
        record = self._threads.get(thread_id)
        return dict(record) if isinstance(record, dict) else None

    def update_thread(self, thread_id: str, updates: dict) -> Optional[dict]:
        record = self._threads.get(thread_id)
        if not isinstance(record, dict):
            return None
        record.update(updates)
        record["updated_at"] = datetime.now().isoformat()
        self._save()
        return dict(record)
