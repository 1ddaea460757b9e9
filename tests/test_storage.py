"""Tests for settings, credential and thread persistence."""

import json
import os

import pytest

import constants as C
from storage import CredentialStore, SettingsStore, ThreadStore, get_config_dir


def test_config_dir_honors_override(tmp_path, monkeypatch):
    target = tmp_path / "home"
    monkeypatch.setenv(C.APP_HOME_ENV, str(target))

    assert get_config_dir() == str(target)
    assert target.is_dir()


def test_settings_persist_across_instances(tmp_path):
    path = str(tmp_path / "settings.json")
    SettingsStore(path=path).set(C.SETTING_DEFAULT_MODEL, "gpt-4o")

    reloaded = SettingsStore(path=path)

    assert reloaded.get(C.SETTING_DEFAULT_MODEL) == "gpt-4o"
    reloaded.delete(C.SETTING_DEFAULT_MODEL)
    assert SettingsStore(path=path).get(C.SETTING_DEFAULT_MODEL) is None


@pytest.mark.parametrize("content", ["{broken", "[1, 2, 3]"])
def test_malformed_settings_file_starts_empty(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")

    assert SettingsStore(path=str(path)).get(C.SETTING_WORKSPACE_PATH, "fallback") == "fallback"


def test_local_endpoint_defaults_and_normalizes(settings):
    assert settings.get_ollama_local_endpoint() == C.OLLAMA_LOCAL_ENDPOINT_DEFAULT

    settings.set_ollama_local_endpoint("  http://gpu-box:11434/ ")
    assert settings.get_ollama_local_endpoint() == "http://gpu-box:11434"

    settings.set_ollama_local_endpoint("")
    assert settings.get(C.SETTING_OLLAMA_LOCAL_ENDPOINT) is None
    assert settings.get_ollama_local_endpoint() == C.OLLAMA_LOCAL_ENDPOINT_DEFAULT


def test_api_key_file_wins_over_environment(tmp_path):
    store = CredentialStore(path=str(tmp_path / ".env"), environ={"OPENAI_API_KEY": "from-env"})

    assert store.get_api_key("openai") == "from-env"

    store.set_api_key("openai", " from-file ")
    assert store.get_api_key("openai") == "from-file"

    store.delete_api_key("openai")
    assert store.get_api_key("openai") == "from-env"


def test_api_key_file_format(credentials):
    credentials.set_api_key("anthropic", "sk-ant")
    credentials.set_api_key("ollama-cloud", "oll")

    with open(credentials.path, encoding="utf-8") as f:
        lines = f.read().splitlines()

    assert lines == ["ANTHROPIC_API_KEY=sk-ant", "OLLAMA_API_KEY=oll"]
    assert os.stat(credentials.path).st_mode & 0o777 == 0o600


def test_env_file_comments_and_quotes(tmp_path):
    path = tmp_path / ".env"
    path.write_text('# keys\n\nGOOGLE_API_KEY="quoted"\nnot a pair\n', encoding="utf-8")
    store = CredentialStore(path=str(path), environ={})

    assert store.get_api_key("google") == "quoted"
    assert store.has_api_key("google") is True
    assert store.has_api_key("openai") is False


@pytest.mark.parametrize("value", ["sk-1\nANTHROPIC_API_KEY=injected", "sk-1\rx"])
def test_multiline_api_key_is_rejected(credentials, value):
    credentials.set_api_key("anthropic", "sk-ant")

    with pytest.raises(ValueError):
        credentials.set_api_key("openai", value)

    assert credentials.get_api_key("anthropic") == "sk-ant"
    assert credentials.get_api_key("openai") is None


def test_local_provider_has_no_api_key(credentials):
    with pytest.raises(ValueError):
        credentials.set_api_key(C.PROVIDER_OLLAMA_LOCAL, "anything")

    assert credentials.get_api_key(C.PROVIDER_OLLAMA_LOCAL) is None
    credentials.delete_api_key(C.PROVIDER_OLLAMA_LOCAL)


def test_thread_store_round_trip(tmp_path):
    path = str(tmp_path / "threads.json")
    store = ThreadStore(path=path)
    created = store.create_thread("abc", "Refactor")

    assert created["metadata"] is None
    store.update_thread("abc", {"metadata": json.dumps({"workspacePath": "/tmp/x"})})

    reloaded = ThreadStore(path=path).get_thread("abc")
    assert reloaded["title"] == "Refactor"
    assert json.loads(reloaded["metadata"]) == {"workspacePath": "/tmp/x"}
    with open(path, encoding="utf-8") as f:
        assert json.load(f)["version"] == 1


def test_thread_store_unknown_thread(threads):
    assert threads.get_thread("missing") is None
    assert threads.update_thread("missing", {"title": "x"}) is None


def test_thread_records_are_copies(threads):
    record = threads.get_thread("t1")
    record["title"] = "changed"

    assert threads.get_thread("t1")["title"] == "First"
