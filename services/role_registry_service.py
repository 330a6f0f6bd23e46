"""
Role Registry Service

Mirrors RoleGranted / RoleRevoked on Verify registries. On-chain role ids are
keccak256 of the role name, except DEFAULT_ADMIN which is the zero hash.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session
from web3 import Web3

from models import VerifyAddress, VerifyAddressRole, VerifyRole
from services.handler_context import HandlerContext
from services.verify_registry_service import VerifyRegistryService
from utils.indexing_errors import EventDecodeError

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE_HASH = "0x" + "00" * 32


def role_hash(role: VerifyRole) -> str:
    """bytes32 id the contract uses for a role"""
    if role == VerifyRole.DEFAULT_ADMIN:
        return DEFAULT_ADMIN_ROLE_HASH
    return "0x" + bytes(Web3.keccak(text=role.value)).hex()


ROLES_BY_HASH: Dict[str, VerifyRole] = {role_hash(role): role for role in VerifyRole}

# Registry-level convenience set -> role
ROLE_SETS: Dict[str, VerifyRole] = {
    "approvers": VerifyRole.APPROVER,
    "removers": VerifyRole.REMOVER,
    "banners": VerifyRole.BANNER,
    "approver_admins": VerifyRole.APPROVER_ADMIN,
    "remover_admins": VerifyRole.REMOVER_ADMIN,
    "banner_admins": VerifyRole.BANNER_ADMIN,
    "default_admins": VerifyRole.DEFAULT_ADMIN,
}


def role_from_hash(value: str) -> VerifyRole:
    role = ROLES_BY_HASH.get(value.lower())
    if role is None:
        raise EventDecodeError(f"unknown role id {value}", param="role")
    return role


class RoleRegistryService:
    """Role membership changes for the registry emitting the current log"""

    def __init__(self, ctx: HandlerContext):
        self.ctx = ctx
        self.registry = VerifyRegistryService(ctx)

    def grant(self, role: VerifyRole, account_address: str, sender: str) -> bool:
        """Add the role to the account. Returns False when it was already held."""
        account = self.registry.account(account_address)
        if self._held(account, role) is not None:
            logger.info(f"🔁 ROLE_REGISTRY: {account_address} already holds {role.value}, nothing to grant")
            return False

        membership = VerifyAddressRole(verify_id=account.verify_id, role=role.value)
        account.roles.append(membership)
        self.ctx.store.save(membership)
        logger.info(f"🔑 ROLE_REGISTRY: {sender} granted {role.value} to {account_address} on {account.verify_id}")
        return True

    def revoke(self, role: VerifyRole, account_address: str, sender: str) -> bool:
        """Remove the role from the account. Returns False when it was not held."""
        account = self.registry.account(account_address)
        held = self._held(account, role)
        if held is None:
            logger.info(f"🔁 ROLE_REGISTRY: {account_address} does not hold {role.value}, nothing to revoke")
            return False

        account.roles.remove(held)
        self.ctx.session.flush()
        logger.info(f"🔒 ROLE_REGISTRY: {sender} revoked {role.value} from {account_address} on {account.verify_id}")
        return True

    @staticmethod
    def _held(account: VerifyAddress, role: VerifyRole):
        for membership in account.roles:
            if membership.role == role.value:
                return membership
        return None


def role_holders(session: Session, verify_address: str, role: VerifyRole) -> List[str]:
    """Addresses holding a role on a registry"""
    session.flush()
    return list(session.scalars(
        select(VerifyAddress.address)
        .join(VerifyAddressRole, VerifyAddressRole.verify_address_id == VerifyAddress.id)
        .where(VerifyAddressRole.verify_id == verify_address.lower(), VerifyAddressRole.role == role.value)
        .order_by(VerifyAddress.address)
    ))


def role_sets(session: Session, verify_address: str) -> Dict[str, List[str]]:
    """All convenience sets of a registry (approvers, removers, banners, admins)"""
    return {name: role_holders(session, verify_address, role) for name, role in ROLE_SETS.items()}
