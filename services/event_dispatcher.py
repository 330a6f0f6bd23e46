"""
Event Dispatcher
================

Applies chain logs one at a time, in chain order, to the handlers bound to
the emitting contract. Each log is all-or-nothing:

1. decode the envelope
2. reject it if it is not after the last applied position
3. run every handler bound to (contract address, event name)
4. advance the cursor and commit

Any failure rolls the log back and halts the dispatcher with an
IndexingHaltError; later logs are refused until an operator intervenes.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Union

from sqlalchemy.orm import Session, sessionmaker

from database import managed_session
from handlers.erc20_mapping import ERC20_HANDLERS, STAKE_HANDLERS
from handlers.escrow_mapping import CLAIM_ESCROW_HANDLERS
from handlers.factory_mapping import STAKE_FACTORY_HANDLERS, VERIFY_FACTORY_HANDLERS
from handlers.notice_mapping import NOTICE_BOARD_HANDLERS
from handlers.verify_mapping import VERIFY_HANDLERS
from models import IndexingCursor
from services.data_source_registry import (
    CLAIM_ESCROW, ERC20, NOTICE_BOARD, STAKE, STAKE_FACTORY, VERIFY, VERIFY_FACTORY, DataSourceRegistry
)
from services.handler_context import HandlerContext
from utils.centralized_logger import centralized_logger
from utils.chain_reader import ChainReader, StaticChainReader
from utils.entity_store import EntityStore
from utils.event_envelope import EventEnvelope, decode_address, decode_params
from utils.event_sequencer import EventSequencer
from utils.indexing_errors import EventDecodeError, IndexingHaltError, OutOfOrderEventError

logger = logging.getLogger(__name__)

CURSOR_NAME = "chain"

Handler = Callable[[HandlerContext], None]

TEMPLATE_HANDLERS: Dict[str, Dict[str, Handler]] = {
    VERIFY_FACTORY: VERIFY_FACTORY_HANDLERS,
    VERIFY: VERIFY_HANDLERS,
    CLAIM_ESCROW: CLAIM_ESCROW_HANDLERS,
    NOTICE_BOARD: NOTICE_BOARD_HANDLERS,
    STAKE_FACTORY: STAKE_FACTORY_HANDLERS,
    STAKE: STAKE_HANDLERS,
    ERC20: ERC20_HANDLERS,
}


@dataclass
class DispatchStats:
    applied: int = 0
    ignored: int = 0


class EventDispatcher:
    """Single-threaded, strictly ordered log application"""

    def __init__(self, session_factory: Optional[sessionmaker] = None,
                 chain_reader: Optional[ChainReader] = None,
                 static_sources: Optional[Dict[str, str]] = None,
                 template_handlers: Optional[Dict[str, Dict[str, Handler]]] = None):
        self.session_factory = session_factory
        self.chain_reader = chain_reader or StaticChainReader()
        self.static_sources = static_sources
        self.template_handlers = template_handlers or TEMPLATE_HANDLERS
        self.stats = DispatchStats()
        self.halted: Optional[IndexingHaltError] = None

    def process(self, log: Union[EventEnvelope, Mapping[str, Any]]) -> bool:
        """Apply one log. Returns True if its handlers ran, False if it was ignored."""
        if self.halted is not None:
            raise IndexingHaltError(f"Indexing halted earlier: {self.halted}", cause=self.halted.cause)

        envelope = log if isinstance(log, EventEnvelope) else None
        try:
            with managed_session(self.session_factory) as session:
                routed = self._decode(session, log)
                if routed is None:
                    self.stats.ignored += 1
                    return False

                envelope, handlers = routed
                self._check_order(session, envelope)
                self._dispatch(session, envelope, handlers)
                self._advance_cursor(session, envelope)
        except Exception as e:
            self._halt(e, envelope)

        self.stats.applied += 1
        return True

    def _decode(self, session: Session, log: Union[EventEnvelope, Mapping[str, Any]]):
        """(envelope, handlers) for a log with bound handlers, None for an ignored one"""
        if isinstance(log, EventEnvelope):
            event_name, raw_address = log.event_name, log.contract_address
        else:
            event_name = log.get("event_name") or log.get("event")
            raw_address = log.get("contract_address") or log.get("address")
        if not isinstance(event_name, str) or not event_name:
            raise EventDecodeError("missing event name")

        # Logs without a bound handler are skipped without decoding their params
        address = decode_address(raw_address, event_name, "contract_address")
        handlers = self._handlers_for(session, address, event_name)
        if not handlers:
            logger.debug(f"🔍 DISPATCHER: No handler for {event_name} on {address}, ignoring")
            return None

        if isinstance(log, EventEnvelope):
            # Envelopes built by callers are validated like raw logs
            envelope = replace(log, contract_address=address, params=decode_params(event_name, log.params))
        else:
            envelope = EventEnvelope.from_log(log)
        return envelope, handlers

    def _handlers_for(self, session: Session, address: str, event_name: str):
        registry = DataSourceRegistry(session, self.static_sources)
        handlers = []
        for template in registry.templates_for(address):
            handler = self.template_handlers.get(template, {}).get(event_name)
            if handler is not None:
                handlers.append(handler)
        return handlers

    def _check_order(self, session: Session, envelope: EventEnvelope):
        cursor = session.get(IndexingCursor, CURSOR_NAME)
        if cursor is not None and envelope.position <= cursor.position:
            raise OutOfOrderEventError(envelope.position, cursor.position)

    def _dispatch(self, session: Session, envelope: EventEnvelope, handlers):
        ctx = HandlerContext(
            envelope=envelope,
            store=EntityStore(session),
            sequencer=EventSequencer(
                session, envelope.contract_address, envelope.transaction_hash, envelope.log_index
            ),
            chain_reader=self.chain_reader,
            data_sources=DataSourceRegistry(session, self.static_sources),
        )
        for handler in handlers:
            handler(ctx)

        logger.debug(
            f"✅ DISPATCHER: Applied {envelope.event_name} from {envelope.contract_address} "
            f"at {envelope.position}"
        )

    def _advance_cursor(self, session: Session, envelope: EventEnvelope):
        block_number, transaction_index, log_index = envelope.position
        cursor = session.get(IndexingCursor, CURSOR_NAME)
        if cursor is None:
            session.add(IndexingCursor(
                name=CURSOR_NAME,
                block_number=block_number,
                transaction_index=transaction_index,
                log_index=log_index,
            ))
        else:
            cursor.block_number = block_number
            cursor.transaction_index = transaction_index
            cursor.log_index = log_index

    def _halt(self, error: Exception, envelope: Optional[EventEnvelope]):
        where = (
            f"{envelope.event_name} from {envelope.contract_address} at {envelope.position}"
            if envelope is not None else "undecodable log"
        )
        halt = IndexingHaltError(f"Indexing halted on {where}: {error}", envelope=envelope, cause=error)
        self.halted = halt

        logger.critical(f"🚨 INDEXING_HALT: {where}: {type(error).__name__}: {error}")
        centralized_logger.log_indexing_halt(error, envelope)
        raise halt from error


def last_applied_position(session: Session):
    """(block, transaction index, log index) of the last applied log, or None"""
    cursor = session.get(IndexingCursor, CURSOR_NAME)
    return cursor.position if cursor is not None else None
