"""
Configuration constants for AgentWorkbench.
"""

# Application identity
APP_NAME = "AgentWorkbench"
APP_HOME_ENV = "AGENT_WORKBENCH_HOME"  # Overrides ~/.config/AgentWorkbench

# Persisted files (inside the config dir)
SETTINGS_FILE = "settings.json"
THREADS_FILE = "threads.json"
CREDENTIALS_FILE = ".env"

# Settings keys
SETTING_WORKSPACE_PATH = "workspacePath"      # Global fallback workspace
SETTING_DEFAULT_MODEL = "defaultModel"
SETTING_OLLAMA_LOCAL_ENDPOINT = "ollamaLocalEndpoint"

# Thread metadata key owned by the workspace binding
THREAD_META_WORKSPACE_PATH = "workspacePath"

# Default settings
DEFAULT_MODEL_ID = "claude-sonnet-4-5-20250929"

# Ollama Cloud
OLLAMA_CLOUD_BASE_URL = "https://ollama.com"
OLLAMA_CLOUD_MODELS = "/v1/models"   # OpenAI-compatible listing
OLLAMA_CLOUD_TAGS = "/api/tags"      # Native listing, used as fallback
OLLAMA_CLOUD_TIMEOUT = 15

# Ollama Local
OLLAMA_LOCAL_ENDPOINT_DEFAULT = "http://localhost:11434"
OLLAMA_LOCAL_TAGS = "/api/tags"
OLLAMA_LOCAL_TIMEOUT = 5  # Exceeding this aborts the request

# Model discovery cache
MODEL_CACHE_TTL = 5 * 60  # seconds (300,000 ms)

# Provider ids
PROVIDER_OLLAMA_LOCAL = "ollama-local"
PROVIDER_OLLAMA_CLOUD = "ollama-cloud"

# Credential environment variables per provider
PROVIDER_API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
    "ollama-cloud": "OLLAMA_API_KEY",
}

# Workspace snapshot / watch
WORKSPACE_NOISE_DIRS = frozenset({"node_modules"})  # Skipped alongside dot-entries
WATCH_DEBOUNCE_MS = 400
WATCH_STEP_MS = 50
WATCH_POLL_DELAY_MS = 300

# Event channels
EVENT_FILES_CHANGED = "workspace:files-changed"
