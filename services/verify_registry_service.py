"""
Verify Registry Service
=======================

Projects request/decision calls on a Verify registry into per-address status
and an append-only event log.

Requests (add, request remove, request ban) only ever set the outstanding
request; decisions (approve, remove, ban) set the status and clear the request.
Status changes are guarded by VerifyStatusValidator, so a batch approve that
contains a banned address leaves that address untouched.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from models import (
    RequestStatus, Verify, VerifyAddress, VerifyEvent, VerifyEventKind, VerifyStatus
)
from services.handler_context import HandlerContext
from utils.composite_ids import verify_address_id, verify_event_id
from utils.event_envelope import ZERO_ADDRESS, Evidence
from utils.verify_state_validator import VerifyStatusValidator

logger = logging.getLogger(__name__)

# Requestable outcome -> event kind recorded for it
REQUEST_KINDS = {
    RequestStatus.REMOVE: VerifyEventKind.REQUEST_REMOVE,
    RequestStatus.BAN: VerifyEventKind.REQUEST_BAN,
}


class VerifyRegistryService:
    """State transitions for one Verify registry, scoped to the log being applied"""

    def __init__(self, ctx: HandlerContext):
        self.ctx = ctx
        self.store = ctx.store
        self.verify_address = ctx.contract_address

    def verify(self) -> Verify:
        """The registry entity, created zero-valued if its deployment was never seen"""
        envelope = self.ctx.envelope
        verify, created = self.store.get_or_create(
            Verify, self.verify_address,
            address=self.verify_address,
            deploy_block=envelope.block_number,
            deploy_timestamp=envelope.block_timestamp,
            deployer=ZERO_ADDRESS,
        )
        if created:
            logger.warning(f"⚠️ VERIFY_REGISTRY: {self.verify_address} seen before its deployment, created placeholder")
        return verify

    def account(self, address: str) -> VerifyAddress:
        self.verify()
        account, _ = self.store.get_or_create(
            VerifyAddress, verify_address_id(self.verify_address, address),
            verify_id=self.verify_address,
            address=address,
        )
        return account

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def add(self, sender: str, evidence: Evidence) -> Optional[VerifyEvent]:
        """Self-registration: the sender becomes ADDED with an APPROVE request"""
        account = self.account(sender)
        if not self._transition(account, VerifyStatus.ADDED):
            return None

        account.request_status = RequestStatus.APPROVE.value
        logger.info(f"📝 VERIFY_REGISTRY: {sender} requested approval on {self.verify_address}")
        return self._record(VerifyEventKind.REQUEST_APPROVE, sender, account, evidence)

    def request(self, request: RequestStatus, sender: str, evidences: Iterable[Evidence]) -> List[VerifyEvent]:
        """Request removal or ban of each target; never touches status"""
        if request not in REQUEST_KINDS:
            raise ValueError(f"Only REMOVE and BAN can be requested, got {request.value}")

        kind = REQUEST_KINDS[request]
        events = []
        for evidence in evidences:
            account = self.account(evidence.account)
            account.request_status = request.value
            events.append(self._record(kind, sender, account, evidence))

        logger.info(f"📝 VERIFY_REGISTRY: {sender} filed {len(events)} {kind.value} on {self.verify_address}")
        return events

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def approve(self, sender: str, evidences: Iterable[Evidence]) -> List[VerifyEvent]:
        return self._resolve(VerifyEventKind.APPROVE, VerifyStatus.APPROVED, sender, evidences)

    def remove(self, sender: str, evidences: Iterable[Evidence]) -> List[VerifyEvent]:
        return self._resolve(VerifyEventKind.REMOVE, VerifyStatus.NIL, sender, evidences)

    def ban(self, sender: str, evidences: Iterable[Evidence]) -> List[VerifyEvent]:
        return self._resolve(VerifyEventKind.BAN, VerifyStatus.BANNED, sender, evidences)

    def _resolve(self, kind: VerifyEventKind, target: VerifyStatus, sender: str,
                 evidences: Iterable[Evidence]) -> List[VerifyEvent]:
        # Applied in order, so a repeated account ends with its last entry
        events = []
        skipped = 0
        for evidence in evidences:
            account = self.account(evidence.account)
            if not self._transition(account, target):
                skipped += 1
                continue
            account.request_status = RequestStatus.NONE.value
            events.append(self._record(kind, sender, account, evidence))

        logger.info(
            f"✅ VERIFY_REGISTRY: {kind.value} by {sender} on {self.verify_address}: "
            f"{len(events)} applied, {skipped} skipped"
        )
        return events

    def _transition(self, account: VerifyAddress, target: VerifyStatus) -> bool:
        current = VerifyStatus(account.status)
        is_valid, _ = VerifyStatusValidator.validate_transition(current, target, account.id)
        if not is_valid:
            logger.info(f"⏭️ VERIFY_REGISTRY: Skipping {account.address} ({current.value} cannot become {target.value})")
            return False
        account.status = target.value
        return True

    def _record(self, kind: VerifyEventKind, sender: str, account: VerifyAddress,
                evidence: Evidence) -> VerifyEvent:
        envelope = self.ctx.envelope
        event_id = verify_event_id(self.verify_address, envelope.transaction_hash, self.ctx.sequencer.next())
        return self.store.create(
            VerifyEvent, event_id,
            verify_id=self.verify_address,
            account_id=account.id,
            kind=kind.value,
            block=envelope.block_number,
            timestamp=envelope.block_timestamp,
            transaction_hash=envelope.transaction_hash,
            log_index=envelope.log_index,
            sender=sender,
            account_address=account.address,
            data=evidence.data,
        )


# ----------------------------------------------------------------------
# Derived views
# ----------------------------------------------------------------------

def pending_requests(session: Session, verify_address: str) -> List[VerifyAddress]:
    """Addresses of a registry with an outstanding request"""
    session.flush()
    return list(session.scalars(
        select(VerifyAddress)
        .where(
            VerifyAddress.verify_id == verify_address.lower(),
            VerifyAddress.request_status != RequestStatus.NONE.value,
        )
        .order_by(VerifyAddress.address)
    ))


def addresses_with_status(session: Session, verify_address: str, status: VerifyStatus) -> List[VerifyAddress]:
    session.flush()
    return list(session.scalars(
        select(VerifyAddress)
        .where(VerifyAddress.verify_id == verify_address.lower(), VerifyAddress.status == status.value)
        .order_by(VerifyAddress.address)
    ))


def events_for(session: Session, account: VerifyAddress) -> List[VerifyEvent]:
    """Events where the account is the subject or the sender, in chain order"""
    session.flush()
    return list(session.scalars(
        select(VerifyEvent)
        .where(or_(
            VerifyEvent.account_id == account.id,
            and_(VerifyEvent.verify_id == account.verify_id, VerifyEvent.sender == account.address),
        ))
        .order_by(VerifyEvent.block, VerifyEvent.log_index, VerifyEvent.id)
    ))
