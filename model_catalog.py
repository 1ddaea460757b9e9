"""Model catalog assembly: static tables plus cached Ollama discovery."""
from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Callable, Optional

import constants as C
from api import OllamaCloudClient, OllamaLocalClient
from models import DiscoveryCache, ModelDescriptor, Provider, SourceMode
from storage import CredentialStore, SettingsStore

logger = logging.getLogger(__name__)


PROVIDERS: tuple[Provider, ...] = (
    Provider("anthropic", "Anthropic"),
    Provider("openai", "OpenAI"),
    Provider("google", "Google"),
    Provider(C.PROVIDER_OLLAMA_LOCAL, "Ollama Local"),
    Provider(C.PROVIDER_OLLAMA_CLOUD, "Ollama Cloud"),
)


def _static(model_id: str, name: str, provider: str, description: str,
            source_mode: Optional[SourceMode] = None) -> ModelDescriptor:
    return ModelDescriptor(
        id=model_id,
        display_name=name,
        provider_id=provider,
        model_identifier=model_id,
        description=description,
        available=True,
        source_mode=source_mode,
    )


STATIC_MODELS: tuple[ModelDescriptor, ...] = (
    # Anthropic
    _static("claude-opus-4-5-20251101", "Claude Opus 4.5", "anthropic",
            "Premium model with maximum intelligence"),
    _static("claude-sonnet-4-5-20250929", "Claude Sonnet 4.5", "anthropic",
            "Best balance of intelligence, speed, and cost for agents"),
    _static("claude-haiku-4-5-20251001", "Claude Haiku 4.5", "anthropic",
            "Fastest model with near-frontier intelligence"),
    _static("claude-opus-4-1-20250805", "Claude Opus 4.1", "anthropic",
            "Previous generation premium model with extended thinking"),
    _static("claude-sonnet-4-20250514", "Claude Sonnet 4", "anthropic",
            "Fast and capable previous generation model"),
    # OpenAI
    _static("gpt-5.2", "GPT-5.2", "openai",
            "Latest flagship with enhanced coding and agentic capabilities"),
    _static("gpt-5.1", "GPT-5.1", "openai", "Advanced reasoning and robust performance"),
    _static("o3", "o3", "openai", "Advanced reasoning for complex problem-solving"),
    _static("o3-mini", "o3 Mini", "openai", "Cost-effective reasoning with faster response times"),
    _static("o4-mini", "o4 Mini", "openai", "Fast, efficient reasoning model succeeding o3"),
    _static("o1", "o1", "openai", "Premium reasoning for research, coding, math and science"),
    _static("gpt-4.1", "GPT-4.1", "openai", "Strong instruction-following with 1M context window"),
    _static("gpt-4.1-mini", "GPT-4.1 Mini", "openai",
            "Faster, smaller version balancing performance and efficiency"),
    _static("gpt-4.1-nano", "GPT-4.1 Nano", "openai", "Most cost-efficient for lighter tasks"),
    _static("gpt-4o", "GPT-4o", "openai", "Versatile model for text generation and comprehension"),
    _static("gpt-4o-mini", "GPT-4o Mini", "openai", "Cost-efficient variant with faster response times"),
    # Google
    _static("gemini-3-pro-preview", "Gemini 3 Pro Preview", "google",
            "State-of-the-art reasoning and multimodal understanding"),
    _static("gemini-2.5-pro", "Gemini 2.5 Pro", "google",
            "High-capability model for complex reasoning and coding"),
    _static("gemini-2.5-flash", "Gemini 2.5 Flash", "google",
            "Lightning-fast with balance of intelligence and latency"),
    _static("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite", "google",
            "Fast, low-cost, high-performance model"),
    # Ollama Cloud placeholders, superseded once discovery returns anything
    _static("gpt-oss:120b-cloud", "GPT-OSS 120B Cloud", C.PROVIDER_OLLAMA_CLOUD,
            "Open-source GPT model with 120B parameters on cloud", SourceMode.CLOUD),
    _static("gpt-oss:20b-cloud", "GPT-OSS 20B Cloud", C.PROVIDER_OLLAMA_CLOUD,
            "Open-source GPT model with 20B parameters on cloud", SourceMode.CLOUD),
    _static("qwen3-coder:480b-cloud", "Qwen3 Coder 480B Cloud", C.PROVIDER_OLLAMA_CLOUD,
            "Specialized coding model with 480B parameters on cloud", SourceMode.CLOUD),
    _static("deepseek-v3.1:671b-cloud", "DeepSeek v3.1 671B Cloud", C.PROVIDER_OLLAMA_CLOUD,
            "Advanced model with 671B parameters on cloud", SourceMode.CLOUD),
    _static("qwen3-vl:235b-cloud", "Qwen3 VL 235B Cloud", C.PROVIDER_OLLAMA_CLOUD,
            "Vision-language model with 235B parameters on cloud", SourceMode.CLOUD),
)

_OLLAMA_PROVIDERS = frozenset({C.PROVIDER_OLLAMA_LOCAL, C.PROVIDER_OLLAMA_CLOUD})

# Families with tool-calling support (ollama.com/search?c=tools)
_TOOL_FAMILY_PREFIXES = (
    "llama3.1", "llama3.2", "llama3.3",
    "qwen3", "qwen2.5", "qwen2", "qwq",
    "mistral-small", "mistral-nemo", "ministral-3",
    "deepseek-r1",
    "gpt-oss",
    "devstral-small-2", "devstral-2",
    "smollm2",
)
_TOOL_FAMILY_EXACT = frozenset({"mistral", "functiongemma"})

# Name prefixes served by Ollama Cloud, used before the cloud cache is populated
_CLOUD_MODEL_PREFIXES = (
    "qwen", "deepseek", "gpt-oss", "glm", "kimi", "cogito", "minimax",
    "ministral", "mistral-large", "devstral", "nemotron", "rnj", "gemma",
)


def _title_words(text: str, separators: str) -> str:
    # Upper-case the first letter only; the rest of each word is kept as-is
    words = re.split(f"[{re.escape(separators)}]", text)
    return " ".join(w[:1].upper() + w[1:] for w in words)


def format_cloud_model_name(name: str) -> str:
    """`gpt-oss:120b-cloud` -> `Gpt Oss 120b Cloud`; a trailing `:cloud` is dropped."""
    return _title_words(re.sub(r":cloud$", "", name), "-_:")


def format_local_model_name(name: str) -> str:
    """`llama3.2:3b` -> `Llama3 2 (3B)`, `codellama:latest` -> `Codellama (LATEST)`."""
    parts = name.split(":")
    base = parts[0] or name
    tag = parts[1] if len(parts) > 1 else ""
    formatted = _title_words(base, "-_.")
    if tag:
        return f"{formatted} ({tag.upper()})"
    return formatted


def supports_tool_calling(model_name: str) -> bool:
    """Check whether a local Ollama model belongs to a tool-calling family."""
    base = model_name.split(":")[0].lower()
    return base in _TOOL_FAMILY_EXACT or base.startswith(_TOOL_FAMILY_PREFIXES)


def _dedupe_by_id(models: list[ModelDescriptor]) -> list[ModelDescriptor]:
    seen: set[str] = set()
    unique = []
    for model in models:
        if model.id in seen:
            logger.debug("Dropping duplicate model id %s (%s)", model.id, model.provider_id)
            continue
        seen.add(model.id)
        unique.append(model)
    return unique


class ModelCatalog:
    """Unified model list from the static table and two discovery sources.

    One instance per process; it owns both discovery caches.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        settings: SettingsStore,
        cloud_client: Optional[OllamaCloudClient] = None,
        local_client: Optional[OllamaLocalClient] = None,
        clock: Callable[[], float] = time.time,
        cache_ttl: float = C.MODEL_CACHE_TTL,
    ):
        self.credentials = credentials
        self.settings = settings
        self.cloud_client = cloud_client or OllamaCloudClient()
        self.local_client = local_client or OllamaLocalClient()
        self.clock = clock
        self.cache_ttl = cache_ttl
        self.cloud_cache = DiscoveryCache()
        self.local_cache = DiscoveryCache()

    async def list_models(self) -> list[ModelDescriptor]:
        """Merge static and discovered models and recompute availability."""
        cloud_result, local_result = await asyncio.gather(
            self.fetch_cloud_models(),
            self.fetch_local_models(),
            return_exceptions=True,
        )
        cloud_models = self._settled(cloud_result, "cloud")
        local_models = self._settled(local_result, "local")

        if cloud_models or local_models:
            static_models = [m for m in STATIC_MODELS if m.provider_id not in _OLLAMA_PROVIDERS]
        else:
            static_models = list(STATIC_MODELS)

        merged = _dedupe_by_id([*static_models, *cloud_models, *local_models])
        return [m.with_availability(self._is_available(m)) for m in merged]

    def _settled(self, result: object, source: str) -> list[ModelDescriptor]:
        if isinstance(result, BaseException):
            logger.warning("Ollama %s discovery failed: %s", source, result)
            return []
        return list(result)

    def _is_available(self, model: ModelDescriptor) -> bool:
        if model.is_local:
            return True
        return self.credentials.has_api_key(model.provider_id)

    async def fetch_cloud_models(self) -> list[ModelDescriptor]:
        """Cloud models from cache or Ollama Cloud; [] on any failure."""
        api_key = self.credentials.get_api_key(C.PROVIDER_OLLAMA_CLOUD)
        if not api_key:
            logger.info("No Ollama Cloud API key configured, skipping cloud model discovery")
            return []

        now = self.clock()
        if self.cloud_cache.is_fresh(now, self.cache_ttl):
            logger.info("Using cached Ollama Cloud models")
            return list(self.cloud_cache.entries)

        logger.info("Fetching Ollama Cloud models from API...")
        try:
            raw_models = await self.cloud_client.list_models(api_key)
        except Exception as e:
            logger.warning("Error fetching Ollama Cloud models: %s", e)
            return []

        models = [m for m in (self._cloud_descriptor(raw) for raw in raw_models) if m is not None]
        self.cloud_cache.store(models, now)
        logger.info("Successfully fetched %d Ollama Cloud models", len(models))
        return models

    def _cloud_descriptor(self, raw: dict) -> Optional[ModelDescriptor]:
        model_id = raw.get("id") or raw.get("name") or raw.get("model")
        if not isinstance(model_id, str) or not model_id:
            return None
        model_name = raw.get("name") or raw.get("id") or model_id
        return ModelDescriptor(
            id=model_id,
            display_name=format_cloud_model_name(str(model_name)),
            provider_id=C.PROVIDER_OLLAMA_CLOUD,
            model_identifier=model_id,
            description=raw.get("description") or f"Ollama Cloud model: {model_name}",
            available=True,
            source_mode=SourceMode.CLOUD,
        )

    async def fetch_local_models(self) -> list[ModelDescriptor]:
        """Tool-capable local models from cache or the local server; [] on any failure."""
        now = self.clock()
        if self.local_cache.is_fresh(now, self.cache_ttl):
            logger.info("Using cached local Ollama models")
            return list(self.local_cache.entries)

        endpoint = self.settings.get_ollama_local_endpoint()
        logger.info("Fetching local Ollama models from %s...", endpoint)
        try:
            raw_models = await self.local_client.list_models(endpoint)
        except Exception as e:
            logger.info("Could not fetch local Ollama models (Ollama may not be running): %s", e)
            return []

        all_models = []
        for raw in raw_models:
            name = raw.get("name")
            # :cloud models are listed by the cloud source
            if not isinstance(name, str) or not name or name.endswith(":cloud"):
                continue
            display = format_local_model_name(name)
            all_models.append(
                ModelDescriptor(
                    id=name,
                    display_name=display,
                    provider_id=C.PROVIDER_OLLAMA_LOCAL,
                    model_identifier=name,
                    description=f"Local Ollama model: {display}",
                    available=True,
                    source_mode=SourceMode.LOCAL,
                )
            )

        local_models = [m for m in all_models if supports_tool_calling(m.id)]
        filtered = [m.id for m in all_models if not supports_tool_calling(m.id)]
        if filtered:
            logger.info(
                "Filtered out %d local models that don't support tool calling: %s",
                len(filtered),
                ", ".join(filtered),
            )
            logger.info("Compatible models: %s", ", ".join(m.id for m in local_models))

        self.local_cache.store(local_models, now)
        logger.info("Successfully fetched %d tool-compatible local Ollama models", len(local_models))
        return local_models

    async def refresh_cloud(self) -> int:
        logger.info("Force refreshing Ollama Cloud models...")
        self.cloud_cache.invalidate()
        return len(await self.fetch_cloud_models())

    async def refresh_local(self) -> int:
        logger.info("Force refreshing local Ollama models...")
        self.local_cache.invalidate()
        return len(await self.fetch_local_models())

    async def test_local_connection(self, endpoint: Optional[str] = None) -> bool:
        """Probe the local server without touching the cache."""
        target = (endpoint or "").strip() or self.settings.get_ollama_local_endpoint()
        return await self.local_client.check_connection(target)

    def get_local_endpoint(self) -> str:
        return self.settings.get_ollama_local_endpoint()

    def set_local_endpoint(self, endpoint: str) -> None:
        self.settings.set_ollama_local_endpoint(endpoint)

    def list_providers(self) -> list[dict]:
        return [p.to_dict(self.credentials.has_api_key(p.id)) for p in PROVIDERS]

    def get_default_model(self) -> str:
        return self.settings.get(C.SETTING_DEFAULT_MODEL, C.DEFAULT_MODEL_ID)

    def set_default_model(self, model_id: str) -> None:
        self.settings.set(C.SETTING_DEFAULT_MODEL, model_id)

    def is_cloud_model(self, model_id: str) -> bool:
        """Whether a model id is served by Ollama Cloud.

        Uses the discovered list when there is one, otherwise name patterns.
        """
        if self.cloud_cache.entries:
            return self.cloud_cache.contains(model_id)
        return (
            ":cloud" in model_id
            or model_id.startswith(_CLOUD_MODEL_PREFIXES)
            # Ollama-hosted Gemini previews, not Google's native gemini-2.5-*
            or (model_id.startswith("gemini-3") and "preview" in model_id)
        )

    def is_local_model(self, model_id: str) -> bool:
        return self.local_cache.contains(model_id)

    def is_ollama_model(self, model_id: str) -> bool:
        return self.is_cloud_model(model_id) or self.is_local_model(model_id)
