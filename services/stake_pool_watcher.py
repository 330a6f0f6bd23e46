"""
Stake Pool Watcher

Tracks how much of the underlying token each stake pool holds and the two
exchange ratios derived from it:
    token_to_stake_token_ratio = total_supply // token_pool_size
    stake_token_to_token_ratio = token_pool_size // total_supply
A ratio is only recomputed while its denominator is non-zero; otherwise the
previous value is kept.
"""

import logging
from typing import Optional

from models import ERC20Token, StakePool
from services.data_source_registry import ERC20, STAKE
from services.handler_context import HandlerContext
from utils.event_envelope import ZERO_ADDRESS
from utils.indexing_errors import LedgerInvariantError
from utils.ratio_math import ratio_or_previous

logger = logging.getLogger(__name__)


class StakePoolWatcher:

    def __init__(self, ctx: HandlerContext):
        self.ctx = ctx
        self.store = ctx.store

    def register_pool(self, pool_address: str, factory_address: str) -> StakePool:
        """Pool deployed by a stake factory; its own logs are followed from now on"""
        envelope = self.ctx.envelope
        pool, created = self.store.get_or_create(
            StakePool, pool_address,
            factory_address=factory_address,
            deploy_block=envelope.block_number,
            deploy_timestamp=envelope.block_timestamp,
        )
        self.ctx.data_sources.bind(pool_address, STAKE, envelope.block_number)
        if created:
            logger.info(f"🏦 STAKE_POOLS: Registered pool {pool_address} from factory {factory_address}")
        return pool

    def initialize(self, pool_address: str, token_address: str, name: str, symbol: str) -> StakePool:
        """Link a pool to its underlying token and start watching that token"""
        pool = self.register_pool_if_missing(pool_address)
        token, created = self.store.get_or_create(ERC20Token, token_address)
        if created:
            metadata = self.ctx.chain_reader.token_metadata(token_address, self.ctx.envelope.block_number)
            if metadata is not None:
                token.name = metadata.name
                token.symbol = metadata.symbol
                token.decimals = metadata.decimals
                token.total_supply = metadata.total_supply

        pool.token_id = token.id
        pool.name = name
        pool.symbol = symbol
        self.ctx.data_sources.bind(token_address, ERC20, self.ctx.envelope.block_number)
        logger.info(f"🏦 STAKE_POOLS: Pool {pool_address} ({symbol}) stakes token {token_address}")
        return pool

    def register_pool_if_missing(self, pool_address: str) -> StakePool:
        pool = self.store.load(StakePool, pool_address)
        if pool is None:
            logger.warning(f"⚠️ STAKE_POOLS: {pool_address} initialized without a factory record")
            pool = self.register_pool(pool_address, factory_address=None)
        return pool

    def on_token_transfer(self, token_address: str, sender: str, recipient: str,
                          value: int) -> Optional[StakePool]:
        """Underlying token moved; only transfers into a pool of that token count"""
        pool = self.store.load(StakePool, recipient)
        if pool is None or pool.token_id != token_address:
            return None

        pool.token_pool_size += value
        self._recompute_ratios(pool)
        logger.info(f"📥 STAKE_POOLS: {value} of {token_address} into {recipient} (pool size {pool.token_pool_size})")
        return pool

    def on_share_transfer(self, pool_address: str, sender: str, recipient: str,
                          value: int) -> Optional[StakePool]:
        """Pool share moved; mints and burns change the share supply"""
        if sender != ZERO_ADDRESS and recipient != ZERO_ADDRESS:
            return None

        pool = self.register_pool_if_missing(pool_address)
        if sender == ZERO_ADDRESS:
            pool.total_supply += value
        else:
            if value > pool.total_supply:
                raise LedgerInvariantError(
                    f"Burn of {value} exceeds total supply {pool.total_supply} of pool {pool_address}"
                )
            pool.total_supply -= value

        self._recompute_ratios(pool)
        logger.info(f"🧮 STAKE_POOLS: Pool {pool_address} share supply now {pool.total_supply}")
        return pool

    @staticmethod
    def _recompute_ratios(pool: StakePool):
        pool.token_to_stake_token_ratio = ratio_or_previous(
            pool.total_supply, pool.token_pool_size, pool.token_to_stake_token_ratio
        )
        pool.stake_token_to_token_ratio = ratio_or_previous(
            pool.token_pool_size, pool.total_supply, pool.stake_token_to_token_ratio
        )
