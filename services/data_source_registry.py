"""
Data Source Registry
====================

Decides which handler templates apply to a contract address. Statically
configured contracts come from Config; contracts created at runtime (registry
children, stake pools and the tokens they hold) are bound by handlers and
persisted so a restarted indexer keeps following them.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import Config
from models import DataSourceBinding

logger = logging.getLogger(__name__)

VERIFY_FACTORY = "verify_factory"
VERIFY = "verify"
CLAIM_ESCROW = "claim_escrow"
NOTICE_BOARD = "notice_board"
STAKE_FACTORY = "stake_factory"
STAKE = "stake"
ERC20 = "erc20"

TEMPLATES = (VERIFY_FACTORY, VERIFY, CLAIM_ESCROW, NOTICE_BOARD, STAKE_FACTORY, STAKE, ERC20)


class DataSourceRegistry:
    """Static plus dynamically bound (address -> template) mappings"""

    def __init__(self, session: Session, static_sources: Optional[Dict[str, str]] = None):
        self.session = session
        sources = Config.static_data_sources() if static_sources is None else static_sources
        self.static_sources = {address.lower(): template for address, template in sources.items()}
        for template in self.static_sources.values():
            if template not in TEMPLATES:
                raise ValueError(f"Unknown data source template: {template}")

    def templates_for(self, address: str) -> List[str]:
        """Templates bound to an address, static binding first"""
        address = address.lower()
        templates = []
        static = self.static_sources.get(address)
        if static:
            templates.append(static)

        bound = self.session.scalars(
            select(DataSourceBinding.template)
            .where(DataSourceBinding.address == address)
            .order_by(DataSourceBinding.bound_at_block, DataSourceBinding.template)
        ).all()
        templates.extend(t for t in bound if t not in templates)
        return templates

    def is_bound(self, address: str, template: str) -> bool:
        return template in self.templates_for(address)

    def bind(self, address: str, template: str, block_number: int) -> bool:
        """Bind a template to an address from the given block on. Returns True if new."""
        if template not in TEMPLATES:
            raise ValueError(f"Unknown data source template: {template}")

        address = address.lower()
        if self.is_bound(address, template):
            logger.debug(f"🔗 DATA_SOURCE: {template} already bound to {address}")
            return False

        self.session.add(DataSourceBinding(address=address, template=template, bound_at_block=block_number))
        self.session.flush()
        logger.info(f"🔗 DATA_SOURCE: Bound {template} to {address} at block {block_number}")
        return True
