"""
Claim Escrow Ledger
===================

Pro-rata accounting for redeemable claim escrows.

Every realized deposit is bucketed by (sale, redeemable supply at deposit time,
token). Holders redeeming between two deposits change the supply, so a later
deposit opens a new bucket instead of diluting claims against the old supply.
Each bucket keeps:
- total_deposited: only ever grows
- total_remaining: grows on deposit, shrinks on withdraw and undeposit
- per_redeemable: total_remaining // redeemable_supply (0 for zero supply)

The same totals are kept per depositor inside each bucket.
"""

import logging
from typing import Optional

from models import (
    ClaimEscrow, Deposit, ERC20Token, EscrowDepositor, EscrowWithdrawer, PendingDeposit,
    PendingDepositorToken, Sale, SaleStatus, SupplyTokenDeposit, SupplyTokenDepositor,
    SupplyTokenWithdrawer, Undeposit, Withdraw
)
from services.handler_context import HandlerContext
from utils.composite_ids import (
    escrow_party_id, pending_depositor_token_id, supply_token_deposit_id,
    supply_token_party_id, transaction_id
)
from utils.indexing_errors import LedgerInvariantError
from utils.ratio_math import safe_div

logger = logging.getLogger(__name__)


class ClaimEscrowLedger:
    """Ledger operations for the escrow emitting the current log"""

    def __init__(self, ctx: HandlerContext):
        self.ctx = ctx
        self.store = ctx.store
        self.escrow_address = ctx.contract_address

    # ------------------------------------------------------------------
    # Referenced entities
    # ------------------------------------------------------------------

    def escrow(self) -> ClaimEscrow:
        escrow, _ = self.store.get_or_create(ClaimEscrow, self.escrow_address, address=self.escrow_address)
        return escrow

    def sale(self, sale_address: str, redeemable: Optional[str] = None) -> Sale:
        """Mirror of the sale, with its status refreshed from chain state"""
        sale, _ = self.store.get_or_create(Sale, sale_address)
        if redeemable and not sale.redeemable_address:
            sale.redeemable_address = redeemable

        status = self.ctx.chain_reader.sale_status(sale_address, self.ctx.envelope.block_number)
        if status is not None and sale.status != status.value:
            logger.info(f"🔄 ESCROW_LEDGER: Sale {sale_address} {sale.status} -> {status.value}")
            sale.status = status.value
        return sale

    def token(self, token_address: str) -> ERC20Token:
        """ERC20 entity for a claim token, registered with chain metadata on first sight"""
        token, created = self.store.get_or_create(ERC20Token, token_address)
        if created:
            metadata = self.ctx.chain_reader.token_metadata(token_address, self.ctx.envelope.block_number)
            if metadata is not None:
                token.name = metadata.name
                token.symbol = metadata.symbol
                token.decimals = metadata.decimals
                token.total_supply = metadata.total_supply
            logger.info(f"🪙 ESCROW_LEDGER: Registered token {token_address} ({token.symbol or 'unknown'})")
        return token

    def depositor(self, address: str) -> EscrowDepositor:
        depositor, _ = self.store.get_or_create(
            EscrowDepositor, escrow_party_id(self.escrow_address, address),
            escrow_id=self.escrow_address, address=address,
        )
        return depositor

    def withdrawer(self, address: str) -> EscrowWithdrawer:
        withdrawer, _ = self.store.get_or_create(
            EscrowWithdrawer, escrow_party_id(self.escrow_address, address),
            escrow_id=self.escrow_address, address=address,
        )
        return withdrawer

    def bucket(self, sale: str, token: str, supply: int) -> SupplyTokenDeposit:
        bucket, created = self.store.get_or_create(
            SupplyTokenDeposit, supply_token_deposit_id(sale, self.escrow_address, supply, token),
            escrow_id=self.escrow_address, sale_id=sale, token_id=token, redeemable_supply=supply,
        )
        if created:
            logger.info(f"🪣 ESCROW_LEDGER: Opened bucket sale={sale} token={token} supply={supply}")
        return bucket

    def depositor_bucket(self, bucket: SupplyTokenDeposit, depositor: EscrowDepositor) -> SupplyTokenDepositor:
        record, _ = self.store.get_or_create(
            SupplyTokenDepositor,
            supply_token_party_id(bucket.sale_id, self.escrow_address, bucket.redeemable_supply,
                                  bucket.token_id, depositor.address),
            escrow_id=self.escrow_address,
            supply_token_deposit_id=bucket.id,
            depositor_id=depositor.id,
            depositor_address=depositor.address,
            redeemable_supply=bucket.redeemable_supply,
        )
        return record

    def _prepare(self, sale: str, redeemable: str, token: str):
        self.escrow()
        self.sale(sale, redeemable)
        self.token(token)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def deposit_pending(self, depositor_address: str, sale: str, redeemable: str, token: str,
                        amount: int) -> PendingDeposit:
        """Deposit made while the sale is still running; no bucket yet"""
        self._prepare(sale, redeemable, token)
        depositor = self.depositor(depositor_address)
        pending_total = self._pending_total(sale, depositor, token)
        pending_total.total_deposited += amount

        envelope = self.ctx.envelope
        record = self.store.create(
            PendingDeposit, transaction_id(envelope.transaction_hash),
            escrow_id=self.escrow_address,
            depositor_id=depositor.id,
            pending_depositor_token_id=pending_total.id,
            sale_id=sale,
            token_id=token,
            depositor_address=depositor_address,
            redeemable_address=redeemable,
            amount=amount,
            block=envelope.block_number,
            timestamp=envelope.block_timestamp,
        )
        logger.info(
            f"⏳ ESCROW_LEDGER: Pending deposit {amount} of {token} by {depositor_address} "
            f"(pending total {pending_total.total_deposited})"
        )
        return record

    def deposit(self, depositor_address: str, sale: str, redeemable: str, token: str, supply: int,
                amount: int, sender: Optional[str] = None, swept: bool = False) -> Deposit:
        """Realized deposit into the bucket for the current redeemable supply"""
        self._prepare(sale, redeemable, token)
        depositor = self.depositor(depositor_address)
        bucket = self.bucket(sale, token, supply)
        depositor_bucket = self.depositor_bucket(bucket, depositor)

        bucket.total_deposited += amount
        bucket.total_remaining += amount
        bucket.per_redeemable = safe_div(bucket.total_remaining, supply)
        depositor_bucket.total_deposited += amount
        depositor_bucket.total_remaining += amount

        envelope = self.ctx.envelope
        record = self.store.create(
            Deposit, transaction_id(envelope.transaction_hash),
            escrow_id=self.escrow_address,
            depositor_id=depositor.id,
            supply_token_deposit_id=bucket.id,
            supply_token_depositor_id=depositor_bucket.id,
            sale_id=sale,
            token_id=token,
            sender=sender or depositor_address,
            depositor_address=depositor_address,
            redeemable_address=redeemable,
            redeemable_supply=supply,
            token_amount=amount,
            swept=swept,
            block=envelope.block_number,
            timestamp=envelope.block_timestamp,
        )
        logger.info(
            f"💰 ESCROW_LEDGER: Deposit {amount} of {token} by {depositor_address} at supply {supply} "
            f"(remaining {bucket.total_remaining}, per redeemable {bucket.per_redeemable})"
        )
        return record

    def sweep_pending(self, sender: str, depositor_address: str, sale: str, redeemable: str, token: str,
                      supply: int, amount: int) -> Deposit:
        """Convert a depositor's pending amount into a realized deposit"""
        record = self.deposit(depositor_address, sale, redeemable, token, supply, amount,
                              sender=sender, swept=True)

        pending_total = self._pending_total(sale, self.depositor(depositor_address), token)
        if pending_total.swept:
            logger.info(f"🔁 ESCROW_LEDGER: Pending deposits of {depositor_address} already swept")
        else:
            pending_total.swept = True
            logger.info(f"🧹 ESCROW_LEDGER: {sender} swept {amount} pending for {depositor_address}")
        return record

    def withdraw(self, withdrawer_address: str, sale: str, redeemable: str, token: str, supply: int,
                 amount: int) -> Withdraw:
        """Claim withdrawn against the bucket of the given supply"""
        self._prepare(sale, redeemable, token)
        withdrawer = self.withdrawer(withdrawer_address)
        bucket = self.bucket(sale, token, supply)
        self._reduce_remaining(bucket, amount)

        # A withdrawer who also deposited into this bucket draws down their own share
        depositor_bucket = self.store.load(
            SupplyTokenDepositor,
            supply_token_party_id(sale, self.escrow_address, supply, token, withdrawer_address),
        )
        if depositor_bucket is not None:
            depositor_bucket.total_remaining -= min(amount, depositor_bucket.total_remaining)

        withdrawer_bucket, _ = self.store.get_or_create(
            SupplyTokenWithdrawer,
            supply_token_party_id(sale, self.escrow_address, supply, token, withdrawer_address),
            escrow_id=self.escrow_address,
            supply_token_deposit_id=bucket.id,
            withdrawer_id=withdrawer.id,
            withdrawer_address=withdrawer_address,
            redeemable_supply=supply,
        )
        withdrawer_bucket.total_withdrawn += amount

        envelope = self.ctx.envelope
        record = self.store.create(
            Withdraw, transaction_id(envelope.transaction_hash),
            escrow_id=self.escrow_address,
            withdrawer_id=withdrawer.id,
            supply_token_withdrawer_id=withdrawer_bucket.id,
            supply_token_deposit_id=bucket.id,
            sale_id=sale,
            token_id=token,
            withdrawer_address=withdrawer_address,
            redeemable_address=redeemable,
            redeemable_supply=supply,
            token_amount=amount,
            block=envelope.block_number,
            timestamp=envelope.block_timestamp,
        )
        logger.info(
            f"📤 ESCROW_LEDGER: Withdraw {amount} of {token} by {withdrawer_address} at supply {supply} "
            f"(remaining {bucket.total_remaining})"
        )
        return record

    def undeposit(self, sender: str, sale: str, redeemable: str, token: str, supply: int,
                  amount: int) -> Undeposit:
        """Deposit returned to its depositor after the sale failed"""
        self._prepare(sale, redeemable, token)
        sale_entity = self.store.load(Sale, sale)
        if sale_entity.status != SaleStatus.FAIL.value:
            logger.warning(
                f"⚠️ ESCROW_LEDGER: Undeposit on sale {sale} with status {sale_entity.status}, expected FAIL"
            )

        depositor = self.depositor(sender)
        bucket = self.bucket(sale, token, supply)
        self._reduce_remaining(bucket, amount)

        depositor_bucket = self.store.load(
            SupplyTokenDepositor,
            supply_token_party_id(sale, self.escrow_address, supply, token, sender),
        )
        if depositor_bucket is None or depositor_bucket.total_remaining < amount:
            held = 0 if depositor_bucket is None else depositor_bucket.total_remaining
            raise LedgerInvariantError(
                f"Undeposit of {amount} by {sender} exceeds their remaining deposit {held} "
                f"in bucket {bucket.id}"
            )
        depositor_bucket.total_remaining -= amount

        envelope = self.ctx.envelope
        record = self.store.create(
            Undeposit, transaction_id(envelope.transaction_hash),
            escrow_id=self.escrow_address,
            depositor_id=depositor.id,
            supply_token_deposit_id=bucket.id,
            supply_token_depositor_id=depositor_bucket.id,
            sale_id=sale,
            token_id=token,
            sender=sender,
            redeemable_supply=supply,
            token_amount=amount,
            block=envelope.block_number,
            timestamp=envelope.block_timestamp,
        )
        logger.info(
            f"↩️ ESCROW_LEDGER: Undeposit {amount} of {token} by {sender} at supply {supply} "
            f"(remaining {bucket.total_remaining})"
        )
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pending_total(self, sale: str, depositor: EscrowDepositor, token: str) -> PendingDepositorToken:
        record, _ = self.store.get_or_create(
            PendingDepositorToken,
            pending_depositor_token_id(sale, self.escrow_address, depositor.address, token),
            escrow_id=self.escrow_address,
            sale_id=sale,
            depositor_id=depositor.id,
            token_id=token,
            depositor_address=depositor.address,
        )
        return record

    @staticmethod
    def _reduce_remaining(bucket: SupplyTokenDeposit, amount: int):
        remaining = bucket.total_remaining - amount
        if remaining < 0:
            raise LedgerInvariantError(
                f"Bucket {bucket.id} would go negative: remaining {bucket.total_remaining}, "
                f"requested {amount}"
            )
        bucket.total_remaining = remaining
        bucket.per_redeemable = safe_div(remaining, bucket.redeemable_supply)
