"""
Price feed client.

Fetches the BTC/USD spot price the collateral metrics are computed with.
This is a boundary adapter: the core never calls it. Callers fetch first,
then pass the price into the attestation input.
"""

import logging
from typing import Optional

import requests

from .errors import PriceFeedError
from .models import U32_MAX
from . import config

logger = logging.getLogger(__name__)


def parse_btc_price(payload: dict) -> int:
    """
    Extract {"bitcoin": {"usd": <number>}} and round to an unsigned 32-bit price.

    Raises:
        PriceFeedError: if the payload is missing the price or it is out of range
    """
    try:
        usd = payload["bitcoin"]["usd"]
    except (KeyError, TypeError) as exc:
        raise PriceFeedError("Price payload missing bitcoin.usd", field="bitcoin.usd") from exc

    if isinstance(usd, bool) or not isinstance(usd, (int, float)):
        raise PriceFeedError("Price is not a number", field="bitcoin.usd", observed=repr(usd))

    price = round(usd)
    if price < 0 or price > U32_MAX:
        raise PriceFeedError(
            "Price outside the u32 range",
            field="bitcoin.usd",
            required=f"0..{U32_MAX}",
            observed=str(usd)
        )
    return price


def fetch_btc_price(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    session: Optional[requests.Session] = None
) -> int:
    """
    Fetch the current BTC price in whole US dollars.

    Raises:
        PriceFeedError: on network errors, non-200 responses or bad payloads
    """
    url = url or config.PRICE_FEED_URL
    timeout = timeout if timeout is not None else config.PRICE_FEED_TIMEOUT
    http = session or requests

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        raise PriceFeedError("Price feed request failed", observed=str(exc)) from exc
    except ValueError as exc:
        raise PriceFeedError("Price feed returned invalid JSON") from exc

    price = parse_btc_price(payload)
    logger.info("Fetched BTC price: %d USD", price)
    return price
