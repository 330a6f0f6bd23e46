"""
Shared fixtures for indexer tests

Provides:
1. An in-memory SQLite entity store per test
2. A static chain reader seeded per test
3. A log builder producing raw logs in strictly increasing chain order
4. A dispatcher wired to the well-known test contract addresses
"""

import itertools
from typing import Any, Dict, Optional
from unittest.mock import MagicMock, patch

import pytest

from database import build_session_factory
from models import SaleStatus
from services.data_source_registry import CLAIM_ESCROW, NOTICE_BOARD, STAKE_FACTORY, VERIFY_FACTORY
from services.event_dispatcher import EventDispatcher
from utils.chain_reader import StaticChainReader, TokenMetadata


def addr(n: int) -> str:
    """Deterministic lowercase test address"""
    return "0x" + f"{n:040x}"


def tx(n: int) -> str:
    """Deterministic test transaction hash"""
    return "0x" + f"{n:064x}"


def evidence(account: str, data: str = "0x") -> Dict[str, str]:
    return {"account": account, "data": data}


VERIFY_FACTORY_ADDRESS = addr(0xF0)
CLAIM_ESCROW_ADDRESS = addr(0xE0)
NOTICE_BOARD_ADDRESS = addr(0xB0)
STAKE_FACTORY_ADDRESS = addr(0x5F)

VERIFY_ADDRESS = addr(0xA0)
SALE_ADDRESS = addr(0xC0)
REDEEMABLE_ADDRESS = addr(0xC1)
CLAIM_TOKEN_ADDRESS = addr(0xD0)
STAKE_POOL_ADDRESS = addr(0x50)
STAKED_TOKEN_ADDRESS = addr(0x51)

ALICE = addr(1)
BOB = addr(2)
CAROL = addr(3)
DAVE = addr(4)
ADMIN = addr(9)

STATIC_SOURCES = {
    VERIFY_FACTORY_ADDRESS: VERIFY_FACTORY,
    CLAIM_ESCROW_ADDRESS: CLAIM_ESCROW,
    NOTICE_BOARD_ADDRESS: NOTICE_BOARD,
    STAKE_FACTORY_ADDRESS: STAKE_FACTORY,
}


class LogBuilder:
    """Builds raw logs; every call moves strictly forward in chain order"""

    def __init__(self, start_block: int = 100):
        self.block = start_block
        self.tx_counter = itertools.count(1)
        self.current_tx: Optional[str] = None
        self.tx_index = 0
        self.log_index = 0

    def new_tx(self) -> str:
        """Start a new transaction in a new block"""
        self.block += 1
        self.tx_index = 0
        self.log_index = 0
        self.current_tx = tx(next(self.tx_counter))
        return self.current_tx

    def log(self, contract: str, event: str, params: Dict[str, Any], same_tx: bool = False) -> Dict[str, Any]:
        if not same_tx or self.current_tx is None:
            self.new_tx()
        else:
            self.log_index += 1
        return {
            "contract_address": contract,
            "event_name": event,
            "block_number": self.block,
            "block_timestamp": 1_600_000_000 + self.block * 12,
            "transaction_hash": self.current_tx,
            "transaction_index": self.tx_index,
            "log_index": self.log_index,
            "params": params,
        }


@pytest.fixture
def session_factory():
    """Fresh in-memory entity store with the full schema"""
    return build_session_factory("sqlite://")


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def chain_reader():
    return StaticChainReader(
        sale_statuses={SALE_ADDRESS: SaleStatus.SUCCESS},
        tokens={
            CLAIM_TOKEN_ADDRESS: TokenMetadata(name="Claim Token", symbol="CLM", decimals=18, total_supply=10 ** 24),
            STAKED_TOKEN_ADDRESS: TokenMetadata(name="Staked Token", symbol="STK", decimals=18, total_supply=10 ** 24),
        },
    )


@pytest.fixture(autouse=True)
def halt_log():
    """Keep indexing halts out of the real error log file"""
    with patch("services.event_dispatcher.centralized_logger", MagicMock()) as mock_logger:
        yield mock_logger


@pytest.fixture
def dispatcher(session_factory, chain_reader):
    return EventDispatcher(session_factory, chain_reader=chain_reader, static_sources=STATIC_SOURCES)


@pytest.fixture
def logs():
    return LogBuilder()


@pytest.fixture
def deployed_verify(dispatcher, logs):
    """A Verify registry deployed through the factory"""
    dispatcher.process(logs.log(VERIFY_FACTORY_ADDRESS, "NewChild", {"sender": ADMIN, "child": VERIFY_ADDRESS}))
    return VERIFY_ADDRESS
