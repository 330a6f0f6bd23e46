"""Factory log handlers: new children are created and followed"""

import logging

from models import Verify, VerifyFactory
from services.data_source_registry import VERIFY
from services.handler_context import HandlerContext
from services.stake_pool_watcher import StakePoolWatcher

logger = logging.getLogger(__name__)


def _verify_factory(ctx: HandlerContext) -> VerifyFactory:
    factory, _ = ctx.store.get_or_create(VerifyFactory, ctx.contract_address, address=ctx.contract_address)
    return factory


def handle_verify_new_child(ctx: HandlerContext):
    factory = _verify_factory(ctx)
    child = ctx.param("child")
    envelope = ctx.envelope

    verify, created = ctx.store.get_or_create(
        Verify, child,
        address=child,
        deploy_block=envelope.block_number,
        deploy_timestamp=envelope.block_timestamp,
        deployer=ctx.param("sender"),
        factory_id=factory.id,
    )
    if not created and verify.factory_id is None:
        verify.factory_id = factory.id
        verify.deployer = ctx.param("sender")

    ctx.data_sources.bind(child, VERIFY, envelope.block_number)
    logger.info(f"🏭 VERIFY_FACTORY: {ctx.param('sender')} deployed Verify {child}")


def handle_verify_implementation(ctx: HandlerContext):
    factory = _verify_factory(ctx)
    factory.implementation = ctx.param("implementation")
    logger.info(f"🏭 VERIFY_FACTORY: {factory.id} implementation is {factory.implementation}")


def handle_stake_new_child(ctx: HandlerContext):
    StakePoolWatcher(ctx).register_pool(ctx.param("child"), ctx.contract_address)


VERIFY_FACTORY_HANDLERS = {
    "NewChild": handle_verify_new_child,
    "Implementation": handle_verify_implementation,
}

STAKE_FACTORY_HANDLERS = {
    "NewChild": handle_stake_new_child,
}
