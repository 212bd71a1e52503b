"""
Configuration for remotecoder.

Values come from, highest priority first: command-line flags (applied by the
caller), environment variables, ``.remotecoder.yaml``, then the defaults below.
"""

import os

import yaml


_DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "anthropic_api_key": "",
    "anthropic_base_url": "https://api.anthropic.com/v1",
    "github_token": "",
    "github_api_url": "https://api.github.com",
    "repo": "",
    "branch": "main",
    "max_import_depth": 2,
    "max_seed_files": 5,
    "max_keywords": 3,
    "fetch_workers": 8,
    "remote_timeout": 15.0,
    "max_context_chars": 200_000,
    "deterministic_context": True,
    "llm_max_retries": 3,
    "llm_retry_delay": 2.0,
    "max_tokens": 8192,
    "log_dir": ".remotecoder/logs",
    "pricing": {},
}

_CONFIG_FILENAMES = (".remotecoder.yaml", ".remotecoder.yml")


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Locate the YAML file.

    An explicit path is used as-is (None if it does not exist); otherwise the
    working directory and then the home directory are searched.
    """
    if explicit_path:
        return explicit_path if os.path.isfile(explicit_path) else None

    candidates = [
        os.path.join(base, name)
        for base in (os.getcwd(), os.path.expanduser("~"))
        for name in _CONFIG_FILENAMES
    ]
    return next((c for c in candidates if os.path.isfile(c)), None)


def _load_yaml(path: str) -> dict:
    """Parse *path*; an unreadable or non-mapping file counts as empty."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        return {}
    return loaded if isinstance(loaded, dict) else {}


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class Config:
    """Resolved settings for one remotecoder run.

    Attribute names are upper-case; each one is looked up in the environment,
    then in the YAML mapping, then in ``_DEFAULTS``.  Credentials for the
    model and GitHub live under the ``anthropic:`` and ``github:`` sections.
    """

    def __init__(self, yaml_data: dict | None = None):
        data = yaml_data or {}

        def setting(env_key: str, yaml_key: str, cast=str):
            raw = os.getenv(env_key)
            if raw is None:
                raw = data.get(yaml_key)
            return _DEFAULTS[yaml_key] if raw is None else cast(raw)

        def flag(env_key: str, yaml_key: str) -> bool:
            raw = os.getenv(env_key)
            if raw is not None:
                return raw.strip().lower() == "true"
            if data.get(yaml_key) is not None:
                return bool(data[yaml_key])
            return _DEFAULTS[yaml_key]

        anthropic = _section(data, "anthropic")
        github = _section(data, "github")

        # Model
        self.DEFAULT_MODEL = setting("DEFAULT_MODEL", "model")
        self.ANTHROPIC_API_KEY = (os.getenv("ANTHROPIC_API_KEY")
                                  or anthropic.get("api_key")
                                  or _DEFAULTS["anthropic_api_key"])
        self.ANTHROPIC_BASE_URL = (os.getenv("ANTHROPIC_BASE_URL")
                                   or anthropic.get("base_url")
                                   or _DEFAULTS["anthropic_base_url"])
        self.LLM_MAX_RETRIES = setting("LLM_MAX_RETRIES", "llm_max_retries", int)
        self.LLM_RETRY_DELAY = setting("LLM_RETRY_DELAY", "llm_retry_delay", float)
        self.MAX_TOKENS = setting("MAX_TOKENS", "max_tokens", int)

        # Repository
        self.GITHUB_TOKEN = (os.getenv("GITHUB_TOKEN")
                             or github.get("token")
                             or _DEFAULTS["github_token"])
        self.GITHUB_API_URL = (os.getenv("GITHUB_API_URL")
                               or github.get("api_url")
                               or _DEFAULTS["github_api_url"])
        self.REPO = setting("REPO", "repo")
        self.BRANCH = setting("REPO_BRANCH", "branch")
        self.REMOTE_TIMEOUT = setting("REMOTE_TIMEOUT", "remote_timeout", float)

        # Context assembly
        self.MAX_IMPORT_DEPTH = setting("MAX_IMPORT_DEPTH", "max_import_depth", int)
        self.MAX_SEED_FILES = setting("MAX_SEED_FILES", "max_seed_files", int)
        self.MAX_KEYWORDS = setting("MAX_KEYWORDS", "max_keywords", int)
        self.FETCH_WORKERS = setting("FETCH_WORKERS", "fetch_workers", int)
        self.MAX_CONTEXT_CHARS = setting("MAX_CONTEXT_CHARS", "max_context_chars", int)
        self.DETERMINISTIC_CONTEXT = flag("DETERMINISTIC_CONTEXT", "deterministic_context")

        self.LOG_DIR = setting("LOG_DIR", "log_dir")

        # {model: {input, output, cache_write, cache_read}} per million tokens
        self.PRICING: dict[str, dict] = {
            str(name): dict(rates)
            for name, rates in _section(data, "pricing").items()
            if isinstance(rates, dict)
        }

    @property
    def repo_owner_and_name(self) -> tuple[str, str] | None:
        """Split ``owner/name``; None when unset or malformed."""
        parts = self.REPO.strip().strip("/").split("/")
        if len(parts) != 2 or not all(parts):
            return None
        return parts[0], parts[1]

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Build a Config from the YAML file (when one is found) and the environment."""
        path = _find_config_file(config_path)
        return cls(_load_yaml(path) if path else {})
