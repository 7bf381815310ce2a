"""
Configuration module for zkattest.

Centralizes configuration with environment variable support. Expected
recipients are resolved here and handed to the validator explicitly, so
tests and deployments can attest against any recipient set.
"""

import json
import os
import threading
import time
from typing import Any, Dict, Optional, Tuple

from .records import AttestationKind
from .validation import RecipientConfig

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("ZKATTEST_ENV", "dev")  # dev|stage|prod

# Expected recipients per transaction kind
BTC_RECIPIENT = os.getenv("ZKATTEST_BTC_RECIPIENT", "")
DOGE_RECIPIENT = os.getenv("ZKATTEST_DOGE_RECIPIENT", "DHGrS3MYGyKzRVdMNxziTPF7QXvaYoEndA")
XRP_RECIPIENT = os.getenv("ZKATTEST_XRP_RECIPIENT", "rLAc6d8QtzMMhp1ziGvBGzLk81gDfM25du")

# Optional JSON file {"doge_transaction": "...", ...} overriding the above
RECIPIENTS_PATH = os.getenv("ZKATTEST_RECIPIENTS_PATH", "")

# Price feed
PRICE_FEED_URL = os.getenv(
    "PRICE_FEED_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd"
)
PRICE_FEED_TIMEOUT = float(os.getenv("PRICE_FEED_TIMEOUT", "10"))

# Proving
PROVER_WORKERS = int(os.getenv("PROVER_WORKERS", "2"))
# Finished proof jobs kept in memory for polling
PROOF_JOB_RETENTION = int(os.getenv("PROOF_JOB_RETENTION", "1000"))
PROGRAM_ID = os.getenv("ZKATTEST_PROGRAM_ID", "zkattest-program-v1")

# Logging
LOG_LEVEL = os.getenv("ZKATTEST_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("ZKATTEST_LOG_JSON", "true").lower() in ("1", "true", "yes")

# Seconds a loaded recipients file stays cached
CONFIG_CACHE_TTL = int(os.getenv("CONFIG_CACHE_TTL", "60"))


# ============================================================
# Recipients file cache
# ============================================================

class CachedConfig:
    """
    JSON files cached per path for ttl_seconds.

    Safe to share between request threads; a file is re-read only after its
    entry expires, is invalidated, or a reload is forced.
    """

    def __init__(self, ttl_seconds: int = 60):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get_json(self, path: str, force_reload: bool = False) -> Dict[str, Any]:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(path)
            if entry and not force_reload and now - entry[0] <= self.ttl_seconds:
                return entry[1]

            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._entries[path] = (now, data)
        return data

    def invalidate(self, path: Optional[str] = None) -> None:
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(path, None)


_recipients_cache = CachedConfig(ttl_seconds=CONFIG_CACHE_TTL)


def load_json_cached(path: str) -> Dict[str, Any]:
    return _recipients_cache.get_json(path)


def invalidate_config_cache() -> None:
    _recipients_cache.invalidate()


def load_recipient_config(path: Optional[str] = None) -> RecipientConfig:
    """
    Build the recipient configuration handed to validators.

    Environment defaults are applied first; entries from the recipients
    file (if any) override them.
    """
    recipients = {
        AttestationKind.BTC_TRANSACTION.value: BTC_RECIPIENT,
        AttestationKind.DOGE_TRANSACTION.value: DOGE_RECIPIENT,
        AttestationKind.XRP_TRANSACTION.value: XRP_RECIPIENT,
    }

    path = path if path is not None else RECIPIENTS_PATH
    if path:
        recipients.update(load_json_cached(path))

    return RecipientConfig.from_dict(recipients)


# ============================================================
# Environment checks
# ============================================================

def is_production() -> bool:
    return ENV == "prod"
