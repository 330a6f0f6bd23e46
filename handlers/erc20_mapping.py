"""ERC20 and stake pool log handlers"""

from services.handler_context import HandlerContext
from services.stake_pool_watcher import StakePoolWatcher


def handle_token_transfer(ctx: HandlerContext):
    StakePoolWatcher(ctx).on_token_transfer(
        ctx.contract_address, ctx.param("from"), ctx.param("to"), ctx.param("value"),
    )


def handle_stake_initialize(ctx: HandlerContext):
    StakePoolWatcher(ctx).initialize(
        ctx.contract_address, ctx.param("token"), ctx.param("name"), ctx.param("symbol"),
    )


def handle_stake_transfer(ctx: HandlerContext):
    StakePoolWatcher(ctx).on_share_transfer(
        ctx.contract_address, ctx.param("from"), ctx.param("to"), ctx.param("value"),
    )


ERC20_HANDLERS = {
    "Transfer": handle_token_transfer,
}

STAKE_HANDLERS = {
    "Initialize": handle_stake_initialize,
    "Transfer": handle_stake_transfer,
}
