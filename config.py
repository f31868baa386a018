"""Application configuration — environment variables and derived constants.

Loads ``BOT_TOKEN``, ``API_HOST``, ``BOT_PROXY``, ``POLL_TIMEOUT``,
``POLL_LIMIT``, ``ALLOWED_UPDATES`` and ``DOWNLOAD_DIR`` from the environment
via ``python-dotenv``.  Raw values are resolved at import time; validation
happens when :func:`load_client_config` / :func:`load_poll_options` build
the typed settings objects.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── project ──────────────────────────────────────────────────────────────────
from bot.longpoll import DEFAULT_LIMIT, DEFAULT_POLL_TIMEOUT, LongPollOptions
from core.logger import TelepollLogger
from sdk.config import DEFAULT_HOST, ClientConfig
from sdk.exceptions import ConfigError
from sdk.models import AllowedUpdate

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

# ── Logger (used for startup diagnostics at the bottom of this module) ───────
logger = TelepollLogger.get_logger()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_int(name: str, default: int) -> int:
    """Read an integer variable, falling back to *default* when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric environment value", extra={"variable": name, "value": raw})
        return default


def _parse_allowed_updates(raw: str | None) -> list[str]:
    """Split a comma-separated list such as ``"message,callback_query"``.

    Unknown names are kept here and rejected by :func:`load_poll_options`.
    """
    if not raw:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_HOST: str = os.environ.get("API_HOST") or DEFAULT_HOST
BOT_PROXY: str | None = os.environ.get("BOT_PROXY") or None
POLL_TIMEOUT: int = _parse_int("POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT)
POLL_LIMIT: int = _parse_int("POLL_LIMIT", DEFAULT_LIMIT)
ALLOWED_UPDATES: list[str] = _parse_allowed_updates(os.environ.get("ALLOWED_UPDATES"))
DOWNLOAD_DIR: str = os.environ.get("DOWNLOAD_DIR", "downloads")


# ── Settings factories ───────────────────────────────────────────────────────


def load_client_config() -> ClientConfig:
    """Build the :class:`ClientConfig` from the environment.

    Raises:
        ConfigError: If ``BOT_TOKEN`` is missing or any value is invalid.
    """
    if not BOT_TOKEN:
        raise ConfigError("BOT_TOKEN environment variable is not set or is empty.")
    return ClientConfig(BOT_TOKEN, host=API_HOST, proxy=BOT_PROXY)


def load_poll_options() -> LongPollOptions:
    """Build the :class:`LongPollOptions` from the environment.

    Raises:
        ConfigError: If a limit, timeout or update type is out of range.
    """
    try:
        allowed = {AllowedUpdate(name) for name in ALLOWED_UPDATES}
        return LongPollOptions(
            limit=POLL_LIMIT,
            poll_timeout=POLL_TIMEOUT,
            allowed_updates=frozenset(allowed),
        )
    except ValueError as exc:
        raise ConfigError(f"invalid polling options: {exc}") from exc


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded — BOT_TOKEN is set", extra={"api_host": API_HOST})
else:
    logger.warning("Config loaded — BOT_TOKEN is NOT set")

if BOT_PROXY:
    logger.info("Outgoing requests use a proxy")

logger.info(
    "Polling settings resolved",
    extra={"poll_timeout": POLL_TIMEOUT, "poll_limit": POLL_LIMIT, "allowed_updates": ALLOWED_UPDATES},
)
