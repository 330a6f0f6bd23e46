"""
Tests for stake pool tracking: pool registration, underlying token
transfers into pools, share mints/burns and the derived ratios
"""

import pytest

from models import DataSourceBinding, ERC20Token, StakePool
from services.data_source_registry import ERC20, STAKE
from utils.event_envelope import ZERO_ADDRESS
from utils.indexing_errors import IndexingHaltError, LedgerInvariantError

from conftest import ALICE, ADMIN, BOB, STAKE_FACTORY_ADDRESS, STAKE_POOL_ADDRESS, STAKED_TOKEN_ADDRESS, addr

POOL = STAKE_POOL_ADDRESS
TOKEN = STAKED_TOKEN_ADDRESS


def deploy_pool(dispatcher, logs, pool=POOL, token=TOKEN, symbol="sSTK"):
    dispatcher.process(logs.log(STAKE_FACTORY_ADDRESS, "NewChild", {"sender": ADMIN, "child": pool}))
    dispatcher.process(logs.log(pool, "Initialize", {
        "sender": ADMIN, "token": token, "name": "Staked STK", "symbol": symbol,
    }))


def token_transfer(logs, sender, recipient, value, token=TOKEN):
    return logs.log(token, "Transfer", {"from": sender, "to": recipient, "value": value})


def share_transfer(logs, sender, recipient, value, pool=POOL):
    return logs.log(pool, "Transfer", {"from": sender, "to": recipient, "value": value})


class TestPoolRegistration:
    """Factory children and their Initialize logs"""

    def test_new_child_registers_pool(self, dispatcher, logs, session):
        log = logs.log(STAKE_FACTORY_ADDRESS, "NewChild", {"sender": ADMIN, "child": POOL})
        dispatcher.process(log)

        pool = session.get(StakePool, POOL)
        assert pool.factory_address == STAKE_FACTORY_ADDRESS
        assert pool.deploy_block == log["block_number"]
        assert pool.token_id is None
        assert pool.token_pool_size == 0
        assert pool.total_supply == 0
        assert pool.token_to_stake_token_ratio is None
        assert pool.stake_token_to_token_ratio is None
        assert session.get(DataSourceBinding, (POOL, STAKE)) is not None

    def test_initialize_links_token_and_watches_it(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)

        pool = session.get(StakePool, POOL)
        assert pool.token_id == TOKEN
        assert pool.name == "Staked STK"
        assert pool.symbol == "sSTK"

        token = session.get(ERC20Token, TOKEN)
        assert token.symbol == "STK"
        assert [p.id for p in token.stake_pools] == [POOL]
        assert session.get(DataSourceBinding, (TOKEN, ERC20)) is not None

    def test_initialize_without_factory_creates_pool(self, dispatcher, logs, session):
        # Only reachable when the pool address was bound some other way
        dispatcher.static_sources = dict(dispatcher.static_sources, **{POOL: STAKE})
        dispatcher.process(logs.log(POOL, "Initialize", {
            "sender": ADMIN, "token": TOKEN, "name": "Staked STK", "symbol": "sSTK",
        }))

        pool = session.get(StakePool, POOL)
        assert pool.factory_address is None
        assert pool.token_id == TOKEN

    def test_unbound_token_transfer_ignored(self, dispatcher, logs, session):
        dispatcher.process(logs.log(STAKE_FACTORY_ADDRESS, "NewChild", {"sender": ADMIN, "child": POOL}))

        assert dispatcher.process(token_transfer(logs, ALICE, POOL, 100)) is False
        assert session.get(StakePool, POOL).token_pool_size == 0


class TestTokenTransfers:
    """Underlying token moving into a pool"""

    def test_transfer_into_pool_grows_pool_size(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(token_transfer(logs, ALICE, POOL, 1000))

        pool = session.get(StakePool, POOL)
        assert pool.token_pool_size == 1000
        # No shares minted yet: token -> share ratio is 0, share -> token keeps its previous value
        assert pool.token_to_stake_token_ratio == 0
        assert pool.stake_token_to_token_ratio is None

    def test_transfer_elsewhere_is_noop(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        assert dispatcher.process(token_transfer(logs, ALICE, BOB, 1000)) is True

        pool = session.get(StakePool, POOL)
        assert pool.token_pool_size == 0

    def test_transfer_out_of_pool_is_ignored(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(token_transfer(logs, ALICE, POOL, 1000))
        dispatcher.process(token_transfer(logs, POOL, BOB, 400))

        assert session.get(StakePool, POOL).token_pool_size == 1000

    def test_other_token_into_pool_is_noop(self, dispatcher, logs, session):
        other_pool = addr(0x60)
        other_token = addr(0x61)
        deploy_pool(dispatcher, logs)
        deploy_pool(dispatcher, logs, pool=other_pool, token=other_token, symbol="sOTH")

        dispatcher.process(token_transfer(logs, ALICE, POOL, 500, token=other_token))
        dispatcher.process(token_transfer(logs, ALICE, other_pool, 700, token=other_token))

        assert session.get(StakePool, POOL).token_pool_size == 0
        assert session.get(StakePool, other_pool).token_pool_size == 700


class TestShareSupply:
    """Mints and burns of pool shares"""

    def test_mint_recomputes_ratios(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(token_transfer(logs, ALICE, POOL, 1000))
        dispatcher.process(share_transfer(logs, ZERO_ADDRESS, ALICE, 500))

        pool = session.get(StakePool, POOL)
        assert pool.total_supply == 500
        assert pool.token_to_stake_token_ratio == 0
        assert pool.stake_token_to_token_ratio == 2

    def test_burn_reduces_supply(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(share_transfer(logs, ZERO_ADDRESS, ALICE, 10 ** 21))
        dispatcher.process(token_transfer(logs, ALICE, POOL, 10 ** 18))
        dispatcher.process(share_transfer(logs, ALICE, ZERO_ADDRESS, 5 * 10 ** 20))

        pool = session.get(StakePool, POOL)
        assert pool.total_supply == 5 * 10 ** 20
        assert pool.token_to_stake_token_ratio == 500
        assert pool.stake_token_to_token_ratio == 0

    def test_share_transfer_between_holders_is_noop(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(share_transfer(logs, ZERO_ADDRESS, ALICE, 100))
        dispatcher.process(share_transfer(logs, ALICE, BOB, 60))

        assert session.get(StakePool, POOL).total_supply == 100

    def test_ratios_kept_when_supply_returns_to_zero(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(token_transfer(logs, ALICE, POOL, 900))
        dispatcher.process(share_transfer(logs, ZERO_ADDRESS, ALICE, 300))
        dispatcher.process(share_transfer(logs, ALICE, ZERO_ADDRESS, 300))

        pool = session.get(StakePool, POOL)
        assert pool.total_supply == 0
        assert pool.token_to_stake_token_ratio == 0
        assert pool.stake_token_to_token_ratio == 3

    def test_excessive_burn_halts(self, dispatcher, logs, session):
        deploy_pool(dispatcher, logs)
        dispatcher.process(share_transfer(logs, ZERO_ADDRESS, ALICE, 100))

        with pytest.raises(IndexingHaltError) as exc_info:
            dispatcher.process(share_transfer(logs, ALICE, ZERO_ADDRESS, 101))

        assert isinstance(exc_info.value.cause, LedgerInvariantError)
        assert session.get(StakePool, POOL).total_supply == 100
