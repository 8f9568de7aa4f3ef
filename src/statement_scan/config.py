import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .logging import get_logger
from .providers.base import (
    KIND_CLOUDFLARE,
    KIND_GEMINI,
    KIND_OLLAMA,
    KIND_OPENAI,
    ProviderConfig,
)

log = get_logger("config")

DEFAULT_PROVIDER_ORDER: Tuple[str, ...] = ("gemini", "openrouter", "groq", "cloudflare", "ollama")
DEFAULT_TIMEOUT_SECONDS = 120

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
CLOUDFLARE_BASE_URL = "https://api.cloudflare.com/client/v4"

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_OPENROUTER_MODELS = "meta-llama/llama-4-maverick:free,qwen/qwen2.5-vl-72b-instruct:free"
DEFAULT_GROQ_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"
DEFAULT_CLOUDFLARE_MODEL = "@cf/meta/llama-3.2-11b-vision-instruct"
DEFAULT_OLLAMA_MODEL = "qwen2.5vl:7b"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Running the server or CLI from a subdirectory still finds the
    repository-level `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest `.env` without mutating ``os.environ``."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


class _Lookup:
    """Environment first, then `.env`. Blank values count as missing."""

    def __init__(self, environ: Mapping[str, str], dotenv: Mapping[str, str]) -> None:
        self.environ = environ
        self.dotenv = dotenv

    def get(self, *keys: str, default: Optional[str] = None) -> Optional[str]:
        for source in (self.environ, self.dotenv):
            for key in keys:
                v = source.get(key)
                if v is not None and str(v).strip():
                    return str(v).strip()
        return default

    def get_int(self, key: str, default: int) -> int:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            log.warning(f"{key}={raw!r} is not an integer; using {default}")
            return default


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def load_gemini(env: _Lookup, timeout: int) -> List[ProviderConfig]:
    api_key = env.get("GEMINI_API_KEY")
    if not api_key:
        log.debug("GEMINI_API_KEY not found in env or .env")
        return []
    return [
        ProviderConfig(
            name="gemini",
            kind=KIND_GEMINI,
            model=env.get("GEMINI_MODEL", default=DEFAULT_GEMINI_MODEL),
            api_key=api_key,
            base_url=env.get("GEMINI_BASE_URL", default=GEMINI_BASE_URL),
            timeout_seconds=timeout,
        )
    ]


def load_openrouter(env: _Lookup, timeout: int) -> List[ProviderConfig]:
    """One provider per configured model; free models are tried in order."""
    api_key = env.get("OPENROUTER_API_KEY", "OPEN_ROUTER_API_KEY", "open_router_api_key")
    if not api_key:
        log.debug("OPENROUTER_API_KEY not found in env or .env")
        return []
    models = _split_csv(env.get("OPENROUTER_MODELS", "OPENROUTER_MODEL", default=DEFAULT_OPENROUTER_MODELS))
    return [
        ProviderConfig(
            name="openrouter",
            kind=KIND_OPENAI,
            model=model,
            api_key=api_key,
            base_url=env.get("OPENROUTER_BASE_URL", default=OPENROUTER_BASE_URL),
            timeout_seconds=timeout,
        )
        for model in models
    ]


def load_groq(env: _Lookup, timeout: int) -> List[ProviderConfig]:
    api_key = env.get("GROQ_API_KEY")
    if not api_key:
        log.debug("GROQ_API_KEY not found in env or .env")
        return []
    return [
        ProviderConfig(
            name="groq",
            kind=KIND_OPENAI,
            model=env.get("GROQ_MODEL", default=DEFAULT_GROQ_MODEL),
            api_key=api_key,
            base_url=env.get("GROQ_BASE_URL", default=GROQ_BASE_URL),
            timeout_seconds=timeout,
        )
    ]


def load_cloudflare(env: _Lookup, timeout: int) -> List[ProviderConfig]:
    account_id = env.get("CLOUDFLARE_ACCOUNT_ID")
    token = env.get("CLOUDFLARE_API_TOKEN")
    if not (account_id and token):
        log.debug("CLOUDFLARE_ACCOUNT_ID/CLOUDFLARE_API_TOKEN not found in env or .env")
        return []
    return [
        ProviderConfig(
            name="cloudflare",
            kind=KIND_CLOUDFLARE,
            model=env.get("CLOUDFLARE_MODEL", default=DEFAULT_CLOUDFLARE_MODEL),
            api_key=token,
            account_id=account_id,
            base_url=env.get("CLOUDFLARE_BASE_URL", default=CLOUDFLARE_BASE_URL),
            timeout_seconds=timeout,
        )
    ]


def load_ollama(env: _Lookup, timeout: int) -> List[ProviderConfig]:
    """Local Ollama is opt-in: only used when OLLAMA_URL is set."""
    url = env.get("OLLAMA_URL")
    if not url:
        return []
    return [
        ProviderConfig(
            name="ollama",
            kind=KIND_OLLAMA,
            model=env.get("OLLAMA_MODEL", default=DEFAULT_OLLAMA_MODEL),
            base_url=url,
            timeout_seconds=timeout,
        )
    ]


_LOADERS = {
    "gemini": load_gemini,
    "openrouter": load_openrouter,
    "groq": load_groq,
    "cloudflare": load_cloudflare,
    "ollama": load_ollama,
}


def load_provider_chain(
    dotenv_dir: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[ProviderConfig, ...]:
    """Return the ordered provider chain, skipping providers without credentials."""
    return _build_chain(_lookup(dotenv_dir, environ))


def _lookup(dotenv_dir: Optional[str], environ: Optional[Mapping[str, str]]) -> _Lookup:
    return _Lookup(os.environ if environ is None else environ, _read_dotenv(dotenv_dir or os.getcwd()))


def _build_chain(env: _Lookup) -> Tuple[ProviderConfig, ...]:
    timeout = env.get_int("PROVIDER_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)
    order = _split_csv(env.get("PROVIDER_ORDER")) or list(DEFAULT_PROVIDER_ORDER)

    chain: List[ProviderConfig] = []
    for name in order:
        loader = _LOADERS.get(name.lower())
        if loader is None:
            log.warning(f"Unknown provider {name!r} in PROVIDER_ORDER; ignoring")
            continue
        chain.extend(loader(env, timeout))

    if chain:
        log.info("Provider chain: %s", ", ".join(p.source for p in chain))
    else:
        log.warning("No provider credentials found; extraction requests will fail")
    return tuple(chain)


@dataclass(frozen=True)
class Settings:
    providers: Tuple[ProviderConfig, ...] = ()
    allow_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def has_provider(self) -> bool:
        return bool(self.providers)


def load_settings(
    dotenv_dir: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    env = _lookup(dotenv_dir, environ)
    origins = _split_csv(env.get("CORS_ALLOW_ORIGINS")) or ["*"]
    return Settings(
        providers=_build_chain(env),
        allow_origins=origins,
    )
