"""
Chain Reader
============

Read-only contract state needed by handlers that the event payloads do not
carry: the current status of a sale and the metadata of an ERC20 token.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from models import SaleStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenMetadata:
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[int] = None
    total_supply: int = 0


class ChainReader:
    """Interface for contract state lookups"""

    def sale_status(self, sale: str, block_number: int) -> Optional[SaleStatus]:
        raise NotImplementedError

    def token_metadata(self, token: str, block_number: int) -> Optional[TokenMetadata]:
        raise NotImplementedError


class StaticChainReader(ChainReader):
    """Chain reader backed by in-memory snapshots (replays and tests)"""

    def __init__(self, sale_statuses: Optional[Dict[str, SaleStatus]] = None,
                 tokens: Optional[Dict[str, TokenMetadata]] = None):
        self.sale_statuses = {k.lower(): v for k, v in (sale_statuses or {}).items()}
        self.tokens = {k.lower(): v for k, v in (tokens or {}).items()}

    def set_sale_status(self, sale: str, status: SaleStatus):
        self.sale_statuses[sale.lower()] = status

    def set_token(self, token: str, metadata: TokenMetadata):
        self.tokens[token.lower()] = metadata

    def sale_status(self, sale: str, block_number: int) -> Optional[SaleStatus]:
        return self.sale_statuses.get(sale.lower())

    def token_metadata(self, token: str, block_number: int) -> Optional[TokenMetadata]:
        return self.tokens.get(token.lower())

    @classmethod
    def from_snapshot(cls, snapshot: Dict) -> "StaticChainReader":
        """Build from {"sales": {addr: status}, "tokens": {addr: {...}}}"""
        sales = {
            address: SaleStatus(str(status).upper())
            for address, status in snapshot.get("sales", {}).items()
        }
        tokens = {
            address: TokenMetadata(
                name=meta.get("name"),
                symbol=meta.get("symbol"),
                decimals=meta.get("decimals"),
                total_supply=int(meta.get("total_supply", 0)),
            )
            for address, meta in snapshot.get("tokens", {}).items()
        }
        logger.info(f"📚 CHAIN_READER: Loaded {len(sales)} sale statuses and {len(tokens)} tokens")
        return cls(sale_statuses=sales, tokens=tokens)
