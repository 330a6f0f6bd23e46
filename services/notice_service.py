"""Notices published on the notice board about a subject contract"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Notice
from services.handler_context import HandlerContext
from utils.composite_ids import notice_id

logger = logging.getLogger(__name__)


def record_notice(ctx: HandlerContext, sender: str, subject: str, data: str) -> Notice:
    envelope = ctx.envelope
    entity_id = notice_id(subject, envelope.transaction_hash, ctx.sequencer.next())
    notice = ctx.store.create(
        Notice, entity_id,
        subject_address=subject,
        sender=sender,
        data=data,
        block=envelope.block_number,
        timestamp=envelope.block_timestamp,
        transaction_hash=envelope.transaction_hash,
    )
    logger.info(f"📌 NOTICE_BOARD: {sender} posted notice {entity_id}")
    return notice


def notices_for(session: Session, subject: str) -> List[Notice]:
    session.flush()
    return list(session.scalars(
        select(Notice).where(Notice.subject_address == subject.lower()).order_by(Notice.block, Notice.id)
    ))
