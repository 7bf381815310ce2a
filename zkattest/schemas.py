from typing import Any, Dict

from pydantic import BaseModel, Field


class AttestRequest(BaseModel):
    input: Dict[str, Any]
    # Metric kinds only: fetch price_units from the price feed when absent
    fetch_price: bool = False


class DecodeRequest(BaseModel):
    committed_bytes: str = Field(..., description="0x-prefixed hex of the committed layout")


class VerifyRequest(BaseModel):
    proof: str
    public_values: str
