"""
Verify Registry & Claim Escrow - Entity Store Schema
====================================================

Entities projected from chain events for two domains:
- Verify registries (allow/ban lists with request/decision flow and roles)
- Redeemable claim escrows (pro-rata deposits bucketed by redeemable supply)

Plus the supporting entities they reference: factories, notices, ERC20
tokens, sales, stake pools, and the indexer's own bookkeeping tables.

Every entity is keyed by a deterministic composite string id (see
utils/composite_ids.py). Children store a foreign key to their parent; the
parent-side collections are relationships derived from those keys, never
stored lists.
"""

from enum import Enum
from typing import List, Optional
from sqlalchemy import (
    BigInteger, Boolean, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, DateTime, func
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

ADDRESS_LENGTH = 42
HASH_LENGTH = 66
COMPOSITE_ID_LENGTH = 320


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class Uint256(TypeDecorator):
    """Unsigned 256-bit integer stored as a decimal string.

    Token amounts routinely exceed 64 bits and NUMERIC handling differs per
    backend, so values are persisted as text and always surface as ``int``.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"Uint256 column cannot store a negative value: {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class FieldDefaults:
    """Apply Python-side defaults at construction time.

    Column defaults only apply at flush, but handlers do arithmetic on freshly
    created entities before that happens.
    """

    __field_defaults__ = {}

    def __init__(self, **kwargs):
        for field, value in self.__field_defaults__.items():
            kwargs.setdefault(field, value)
        super().__init__(**kwargs)


# ============================================================================
# ENUMS - Domain Constants
# ============================================================================

class VerifyStatus(Enum):
    """Point-in-time status of an address inside a Verify registry"""
    NIL = "NIL"
    ADDED = "ADDED"
    APPROVED = "APPROVED"
    BANNED = "BANNED"


class RequestStatus(Enum):
    """Outstanding request against an address"""
    NONE = "NONE"
    APPROVE = "APPROVE"
    REMOVE = "REMOVE"
    BAN = "BAN"


class VerifyEventKind(Enum):
    """Kinds of state-changing calls recorded in the registry event log"""
    REQUEST_APPROVE = "REQUEST_APPROVE"
    APPROVE = "APPROVE"
    REQUEST_REMOVE = "REQUEST_REMOVE"
    REMOVE = "REMOVE"
    REQUEST_BAN = "REQUEST_BAN"
    BAN = "BAN"


class VerifyRole(Enum):
    """Access-control roles mirrored from Verify contracts"""
    APPROVER_ADMIN = "APPROVER_ADMIN"
    APPROVER = "APPROVER"
    REMOVER_ADMIN = "REMOVER_ADMIN"
    REMOVER = "REMOVER"
    BANNER_ADMIN = "BANNER_ADMIN"
    BANNER = "BANNER"
    DEFAULT_ADMIN = "DEFAULT_ADMIN"


class SaleStatus(Enum):
    """Lifecycle of the sale a claim escrow is attached to"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


# ============================================================================
# INDEXER BOOKKEEPING
# ============================================================================

class DataSourceBinding(Base):
    """Contract address bound to a handler template at runtime"""
    __tablename__ = 'data_source_bindings'

    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    template: Mapped[str] = mapped_column(String(32), primary_key=True)
    bound_at_block: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index('ix_data_source_bindings_template', 'template'),
    )


class IndexingCursor(Base):
    """Position of the last applied log, used to reject out-of-order delivery"""
    __tablename__ = 'indexing_cursors'

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_index: Mapped[int] = mapped_column(Integer, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def position(self):
        return (self.block_number, self.transaction_index, self.log_index)


class EventSequence(Base):
    """Per-(contract, transaction) sequence number, one per record a log creates"""
    __tablename__ = 'event_sequences'

    contract_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    transaction_hash: Mapped[str] = mapped_column(String(HASH_LENGTH), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    slot: Mapped[int] = mapped_column(Integer, primary_key=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint('contract_address', 'transaction_hash', 'sequence', name='uq_event_sequence'),
    )


# ============================================================================
# VERIFY REGISTRY
# ============================================================================

class VerifyFactory(Base):
    """Factory deploying Verify registries"""
    __tablename__ = 'verify_factories'

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    implementation: Mapped[Optional[str]] = mapped_column(String(ADDRESS_LENGTH), nullable=True)

    children: Mapped[List["Verify"]] = relationship("Verify", back_populates="factory")


class Verify(Base):
    """A deployed Verify registry"""
    __tablename__ = 'verifies'

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    deploy_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deploy_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deployer: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    factory_id: Mapped[Optional[str]] = mapped_column(ForeignKey('verify_factories.id'), nullable=True, index=True)

    factory: Mapped[Optional["VerifyFactory"]] = relationship("VerifyFactory", back_populates="children")
    verify_addresses: Mapped[List["VerifyAddress"]] = relationship("VerifyAddress", back_populates="verify")
    events: Mapped[List["VerifyEvent"]] = relationship(
        "VerifyEvent", back_populates="verify",
        order_by="[VerifyEvent.block, VerifyEvent.log_index]",
    )
    notices: Mapped[List["Notice"]] = relationship(
        "Notice", primaryjoin="foreign(Notice.subject_address) == Verify.address", viewonly=True,
    )


class VerifyAddress(FieldDefaults, Base):
    """An address as seen by one Verify registry"""
    __tablename__ = 'verify_addresses'
    __field_defaults__ = {
        "status": VerifyStatus.NIL.value,
        "request_status": RequestStatus.NONE.value,
    }

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    verify_id: Mapped[str] = mapped_column(ForeignKey('verifies.id'), nullable=False)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    request_status: Mapped[str] = mapped_column(String(16), nullable=False)

    verify: Mapped["Verify"] = relationship("Verify", back_populates="verify_addresses")
    roles: Mapped[List["VerifyAddressRole"]] = relationship(
        "VerifyAddressRole", back_populates="verify_address", cascade="all, delete-orphan",
    )
    subject_events: Mapped[List["VerifyEvent"]] = relationship("VerifyEvent", back_populates="account")

    @property
    def role_names(self) -> List[str]:
        """Held roles in canonical role order"""
        held = {role.role for role in self.roles}
        return [role.value for role in VerifyRole if role.value in held]

    __table_args__ = (
        Index('ix_verify_addresses_verify_status', 'verify_id', 'status'),
        Index('ix_verify_addresses_verify_request', 'verify_id', 'request_status'),
    )


class VerifyAddressRole(Base):
    """Membership of one address in one role"""
    __tablename__ = 'verify_address_roles'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    verify_address_id: Mapped[str] = mapped_column(ForeignKey('verify_addresses.id'), nullable=False)
    verify_id: Mapped[str] = mapped_column(ForeignKey('verifies.id'), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)

    verify_address: Mapped["VerifyAddress"] = relationship("VerifyAddress", back_populates="roles")

    __table_args__ = (
        UniqueConstraint('verify_address_id', 'role', name='uq_verify_address_role'),
        Index('ix_verify_address_roles_verify_role', 'verify_id', 'role'),
    )


class VerifyEvent(Base):
    """Append-only log entry for a state-changing registry call"""
    __tablename__ = 'verify_events'

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    verify_id: Mapped[str] = mapped_column(ForeignKey('verifies.id'), nullable=False)
    account_id: Mapped[str] = mapped_column(ForeignKey('verify_addresses.id'), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(HASH_LENGTH), nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    sender: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    account_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False, default="0x")

    verify: Mapped["Verify"] = relationship("Verify", back_populates="events")
    account: Mapped["VerifyAddress"] = relationship("VerifyAddress", back_populates="subject_events")

    __table_args__ = (
        Index('ix_verify_events_verify_kind', 'verify_id', 'kind'),
        Index('ix_verify_events_verify_sender', 'verify_id', 'sender'),
    )


class Notice(Base):
    """Free-form notice published about a subject contract"""
    __tablename__ = 'notices'

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    subject_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False, index=True)
    sender: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(HASH_LENGTH), nullable=False)


# ============================================================================
# TOKENS, SALES AND STAKE POOLS
# ============================================================================

class ERC20Token(FieldDefaults, Base):
    """ERC20 token referenced by escrows or stake pools"""
    __tablename__ = 'erc20_tokens'
    __field_defaults__ = {"total_supply": 0}

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    symbol: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    decimals: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_supply = mapped_column(Uint256, nullable=False)

    stake_pools: Mapped[List["StakePool"]] = relationship("StakePool", back_populates="token")


class StakePool(FieldDefaults, Base):
    """Staking contract holding a pool of an underlying ERC20 token"""
    __tablename__ = 'stake_pools'
    __field_defaults__ = {"token_pool_size": 0, "total_supply": 0}

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    factory_address: Mapped[Optional[str]] = mapped_column(String(ADDRESS_LENGTH), nullable=True)
    token_id: Mapped[Optional[str]] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    symbol: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    deploy_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deploy_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    token_pool_size = mapped_column(Uint256, nullable=False)
    total_supply = mapped_column(Uint256, nullable=False)
    token_to_stake_token_ratio = mapped_column(Uint256, nullable=True)
    stake_token_to_token_ratio = mapped_column(Uint256, nullable=True)

    token: Mapped[Optional["ERC20Token"]] = relationship("ERC20Token", back_populates="stake_pools")


class Sale(FieldDefaults, Base):
    """Mirror of the sale contract a claim escrow defers to"""
    __tablename__ = 'sales'
    __field_defaults__ = {"status": SaleStatus.PENDING.value}

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    redeemable_address: Mapped[Optional[str]] = mapped_column(String(ADDRESS_LENGTH), nullable=True)


# ============================================================================
# CLAIM ESCROW
# ============================================================================

class ClaimEscrow(Base):
    """A deployed redeemable claim escrow"""
    __tablename__ = 'claim_escrows'

    id: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), primary_key=True)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)

    pending_deposits: Mapped[List["PendingDeposit"]] = relationship("PendingDeposit", back_populates="escrow")
    pending_depositor_tokens: Mapped[List["PendingDepositorToken"]] = relationship(
        "PendingDepositorToken", back_populates="escrow")
    depositors: Mapped[List["EscrowDepositor"]] = relationship("EscrowDepositor", back_populates="escrow")
    deposits: Mapped[List["Deposit"]] = relationship("Deposit", back_populates="escrow")
    supply_token_deposits: Mapped[List["SupplyTokenDeposit"]] = relationship(
        "SupplyTokenDeposit", back_populates="escrow")
    withdraws: Mapped[List["Withdraw"]] = relationship("Withdraw", back_populates="escrow")
    withdrawers: Mapped[List["EscrowWithdrawer"]] = relationship("EscrowWithdrawer", back_populates="escrow")
    supply_token_withdrawers: Mapped[List["SupplyTokenWithdrawer"]] = relationship(
        "SupplyTokenWithdrawer", back_populates="escrow")
    undeposits: Mapped[List["Undeposit"]] = relationship("Undeposit", back_populates="escrow")
    notices: Mapped[List["Notice"]] = relationship(
        "Notice", primaryjoin="foreign(Notice.subject_address) == ClaimEscrow.address", viewonly=True,
    )


class EscrowDepositor(Base):
    """Hub linking a depositing address to its escrow records"""
    __tablename__ = 'escrow_depositors'

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="depositors")
    pending_deposits: Mapped[List["PendingDeposit"]] = relationship("PendingDeposit", back_populates="depositor")
    pending_depositor_tokens: Mapped[List["PendingDepositorToken"]] = relationship(
        "PendingDepositorToken", back_populates="depositor")
    deposits: Mapped[List["Deposit"]] = relationship("Deposit", back_populates="depositor")
    supply_token_depositors: Mapped[List["SupplyTokenDepositor"]] = relationship(
        "SupplyTokenDepositor", back_populates="depositor")
    undeposits: Mapped[List["Undeposit"]] = relationship("Undeposit", back_populates="depositor")

    @property
    def supply_token_deposits(self) -> List["SupplyTokenDeposit"]:
        """Buckets this depositor has a share in"""
        return [record.supply_token_deposit for record in self.supply_token_depositors]


class EscrowWithdrawer(Base):
    """Hub linking a withdrawing address to its escrow withdrawals"""
    __tablename__ = 'escrow_withdrawers'

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="withdrawers")
    withdraws: Mapped[List["Withdraw"]] = relationship("Withdraw", back_populates="withdrawer")
    supply_token_withdrawers: Mapped[List["SupplyTokenWithdrawer"]] = relationship(
        "SupplyTokenWithdrawer", back_populates="withdrawer")


class PendingDeposit(Base):
    """Amount deposited before the sale reached a final state"""
    __tablename__ = 'pending_deposits'

    id: Mapped[str] = mapped_column(String(HASH_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    depositor_id: Mapped[str] = mapped_column(ForeignKey('escrow_depositors.id'), nullable=False, index=True)
    pending_depositor_token_id: Mapped[str] = mapped_column(
        ForeignKey('pending_depositor_tokens.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    depositor_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    amount = mapped_column(Uint256, nullable=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="pending_deposits")
    depositor: Mapped["EscrowDepositor"] = relationship("EscrowDepositor", back_populates="pending_deposits")
    pending_depositor_token: Mapped["PendingDepositorToken"] = relationship(
        "PendingDepositorToken", back_populates="pending_deposits")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")


class PendingDepositorToken(FieldDefaults, Base):
    """Running pending total per (sale, escrow, depositor, token)"""
    __tablename__ = 'pending_depositor_tokens'
    __field_defaults__ = {"total_deposited": 0, "swept": False}

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False)
    depositor_id: Mapped[str] = mapped_column(ForeignKey('escrow_depositors.id'), nullable=False, index=True)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    depositor_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    total_deposited = mapped_column(Uint256, nullable=False)
    swept: Mapped[bool] = mapped_column(Boolean, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="pending_depositor_tokens")
    depositor: Mapped["EscrowDepositor"] = relationship("EscrowDepositor", back_populates="pending_depositor_tokens")
    pending_deposits: Mapped[List["PendingDeposit"]] = relationship(
        "PendingDeposit", back_populates="pending_depositor_token")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")


class SupplyTokenDeposit(FieldDefaults, Base):
    """Bucket aggregating all deposits for one (sale, redeemable supply, token)"""
    __tablename__ = 'supply_token_deposits'
    __field_defaults__ = {"total_deposited": 0, "total_remaining": 0, "per_redeemable": 0}

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False, index=True)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    total_deposited = mapped_column(Uint256, nullable=False)
    total_remaining = mapped_column(Uint256, nullable=False)
    per_redeemable = mapped_column(Uint256, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="supply_token_deposits")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")
    deposits: Mapped[List["Deposit"]] = relationship("Deposit", back_populates="supply_token_deposit")
    supply_token_depositors: Mapped[List["SupplyTokenDepositor"]] = relationship(
        "SupplyTokenDepositor", back_populates="supply_token_deposit")
    supply_token_withdrawers: Mapped[List["SupplyTokenWithdrawer"]] = relationship(
        "SupplyTokenWithdrawer", back_populates="supply_token_deposit")

    @property
    def depositors(self) -> List["EscrowDepositor"]:
        return [record.depositor for record in self.supply_token_depositors]

    @property
    def depositor_addresses(self) -> List[str]:
        return [record.depositor_address for record in self.supply_token_depositors]


class SupplyTokenDepositor(FieldDefaults, Base):
    """One depositor's share of a supply-token bucket"""
    __tablename__ = 'supply_token_depositors'
    __field_defaults__ = {"total_deposited": 0, "total_remaining": 0}

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    supply_token_deposit_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_deposits.id'), nullable=False, index=True)
    depositor_id: Mapped[str] = mapped_column(ForeignKey('escrow_depositors.id'), nullable=False, index=True)
    depositor_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    total_deposited = mapped_column(Uint256, nullable=False)
    total_remaining = mapped_column(Uint256, nullable=False)

    supply_token_deposit: Mapped["SupplyTokenDeposit"] = relationship(
        "SupplyTokenDeposit", back_populates="supply_token_depositors")
    depositor: Mapped["EscrowDepositor"] = relationship("EscrowDepositor", back_populates="supply_token_depositors")
    deposits: Mapped[List["Deposit"]] = relationship("Deposit", back_populates="supply_token_depositor")
    undeposits: Mapped[List["Undeposit"]] = relationship("Undeposit", back_populates="supply_token_depositor")


class Deposit(Base):
    """Realized deposit captured at the redeemable supply of its block"""
    __tablename__ = 'deposits'

    id: Mapped[str] = mapped_column(String(HASH_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    depositor_id: Mapped[str] = mapped_column(ForeignKey('escrow_depositors.id'), nullable=False, index=True)
    supply_token_deposit_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_deposits.id'), nullable=False, index=True)
    supply_token_depositor_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_depositors.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    sender: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    depositor_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    token_amount = mapped_column(Uint256, nullable=False)
    swept: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="deposits")
    depositor: Mapped["EscrowDepositor"] = relationship("EscrowDepositor", back_populates="deposits")
    supply_token_deposit: Mapped["SupplyTokenDeposit"] = relationship("SupplyTokenDeposit", back_populates="deposits")
    supply_token_depositor: Mapped["SupplyTokenDepositor"] = relationship(
        "SupplyTokenDepositor", back_populates="deposits")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")


class SupplyTokenWithdrawer(FieldDefaults, Base):
    """Withdrawals by one address against one supply-token bucket"""
    __tablename__ = 'supply_token_withdrawers'
    __field_defaults__ = {"total_withdrawn": 0}

    id: Mapped[str] = mapped_column(String(COMPOSITE_ID_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    supply_token_deposit_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_deposits.id'), nullable=False, index=True)
    withdrawer_id: Mapped[str] = mapped_column(ForeignKey('escrow_withdrawers.id'), nullable=False, index=True)
    withdrawer_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    total_withdrawn = mapped_column(Uint256, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="supply_token_withdrawers")
    supply_token_deposit: Mapped["SupplyTokenDeposit"] = relationship(
        "SupplyTokenDeposit", back_populates="supply_token_withdrawers")
    withdrawer: Mapped["EscrowWithdrawer"] = relationship(
        "EscrowWithdrawer", back_populates="supply_token_withdrawers")
    withdraws: Mapped[List["Withdraw"]] = relationship("Withdraw", back_populates="supply_token_withdrawer")


class Withdraw(Base):
    """Pro-rata claim withdrawn from a bucket"""
    __tablename__ = 'withdraws'

    id: Mapped[str] = mapped_column(String(HASH_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    withdrawer_id: Mapped[str] = mapped_column(ForeignKey('escrow_withdrawers.id'), nullable=False, index=True)
    supply_token_withdrawer_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_withdrawers.id'), nullable=False, index=True)
    supply_token_deposit_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_deposits.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    withdrawer_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_address: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    token_amount = mapped_column(Uint256, nullable=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="withdraws")
    withdrawer: Mapped["EscrowWithdrawer"] = relationship("EscrowWithdrawer", back_populates="withdraws")
    supply_token_withdrawer: Mapped["SupplyTokenWithdrawer"] = relationship(
        "SupplyTokenWithdrawer", back_populates="withdraws")
    supply_token_deposit: Mapped["SupplyTokenDeposit"] = relationship("SupplyTokenDeposit")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")


class Undeposit(Base):
    """Deposit returned to its depositor after a failed sale"""
    __tablename__ = 'undeposits'

    id: Mapped[str] = mapped_column(String(HASH_LENGTH), primary_key=True)
    escrow_id: Mapped[str] = mapped_column(ForeignKey('claim_escrows.id'), nullable=False, index=True)
    depositor_id: Mapped[str] = mapped_column(ForeignKey('escrow_depositors.id'), nullable=False, index=True)
    supply_token_deposit_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_deposits.id'), nullable=False, index=True)
    supply_token_depositor_id: Mapped[str] = mapped_column(
        ForeignKey('supply_token_depositors.id'), nullable=False, index=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey('sales.id'), nullable=False)
    token_id: Mapped[str] = mapped_column(ForeignKey('erc20_tokens.id'), nullable=False)
    sender: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    redeemable_supply = mapped_column(Uint256, nullable=False)
    token_amount = mapped_column(Uint256, nullable=False)
    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    escrow: Mapped["ClaimEscrow"] = relationship("ClaimEscrow", back_populates="undeposits")
    depositor: Mapped["EscrowDepositor"] = relationship("EscrowDepositor", back_populates="undeposits")
    supply_token_deposit: Mapped["SupplyTokenDeposit"] = relationship("SupplyTokenDeposit")
    supply_token_depositor: Mapped["SupplyTokenDepositor"] = relationship(
        "SupplyTokenDepositor", back_populates="undeposits")
    sale: Mapped["Sale"] = relationship("Sale")
    token: Mapped["ERC20Token"] = relationship("ERC20Token")
