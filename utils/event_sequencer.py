"""Per-(contract, transaction) sequence numbers for composite event ids"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models import EventSequence

logger = logging.getLogger(__name__)


class EventSequencer:
    """
    Hands out sequence numbers for the records created while applying one log.

    Numbers are counted per (contract, transaction) across every event kind the
    contract emits, and each allocation is persisted under the log position and
    slot so that applying the same log again yields the same numbers.
    """

    def __init__(self, session: Session, contract_address: str, transaction_hash: str, log_index: int):
        self.session = session
        self.contract_address = contract_address
        self.transaction_hash = transaction_hash
        self.log_index = log_index
        self._slot = 0

    def next(self) -> int:
        slot = self._slot
        self._slot += 1

        existing = self.session.get(
            EventSequence, (self.contract_address, self.transaction_hash, self.log_index, slot)
        )
        if existing is not None:
            return existing.sequence

        allocated = self.session.scalar(
            select(func.count()).select_from(EventSequence).where(
                EventSequence.contract_address == self.contract_address,
                EventSequence.transaction_hash == self.transaction_hash,
            )
        )
        self.session.add(EventSequence(
            contract_address=self.contract_address,
            transaction_hash=self.transaction_hash,
            log_index=self.log_index,
            slot=slot,
            sequence=allocated,
        ))
        self.session.flush()
        logger.debug(
            f"🔢 SEQUENCE: {self.contract_address} tx {self.transaction_hash} "
            f"log {self.log_index}/{slot} -> {allocated}"
        )
        return allocated
