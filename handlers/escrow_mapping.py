"""Redeemable claim escrow log handlers"""

from services.claim_escrow_ledger import ClaimEscrowLedger
from services.handler_context import HandlerContext


def handle_pending_deposit(ctx: HandlerContext):
    ClaimEscrowLedger(ctx).deposit_pending(
        ctx.param("sender"), ctx.param("sale"), ctx.param("redeemable"), ctx.param("token"), ctx.param("amount"),
    )


def handle_deposit(ctx: HandlerContext):
    ClaimEscrowLedger(ctx).deposit(
        ctx.param("depositor"), ctx.param("sale"), ctx.param("redeemable"), ctx.param("token"),
        ctx.param("supply"), ctx.param("amount"),
    )


def handle_sweep(ctx: HandlerContext):
    ClaimEscrowLedger(ctx).sweep_pending(
        ctx.param("sender"), ctx.param("depositor"), ctx.param("sale"), ctx.param("redeemable"),
        ctx.param("token"), ctx.param("supply"), ctx.param("amount"),
    )


def handle_withdraw(ctx: HandlerContext):
    ClaimEscrowLedger(ctx).withdraw(
        ctx.param("withdrawer"), ctx.param("sale"), ctx.param("redeemable"), ctx.param("token"),
        ctx.param("supply"), ctx.param("amount"),
    )


def handle_undeposit(ctx: HandlerContext):
    ClaimEscrowLedger(ctx).undeposit(
        ctx.param("sender"), ctx.param("sale"), ctx.param("redeemable"), ctx.param("token"),
        ctx.param("supply"), ctx.param("amount"),
    )


CLAIM_ESCROW_HANDLERS = {
    "PendingDeposit": handle_pending_deposit,
    "Deposit": handle_deposit,
    "Sweep": handle_sweep,
    "Withdraw": handle_withdraw,
    "Undeposit": handle_undeposit,
}
