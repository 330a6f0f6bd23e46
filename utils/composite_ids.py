"""Deterministic composite entity ids built from lowercase components"""

from config import Config


def _component(value) -> str:
    if isinstance(value, bool):
        raise TypeError("Boolean values are not valid id components")
    if isinstance(value, int):
        return str(value)
    return str(value).strip().lower()


def composite_id(*parts) -> str:
    """Join id components with the fixed separator"""
    return Config.ID_SEPARATOR.join(_component(part) for part in parts)


def verify_address_id(verify_address: str, account: str) -> str:
    return composite_id(verify_address, account)


def verify_event_id(verify_address: str, transaction_hash: str, sequence: int) -> str:
    return composite_id(verify_address, transaction_hash, sequence)


def notice_id(subject: str, transaction_hash: str, sequence: int) -> str:
    return composite_id(subject, transaction_hash, sequence)


def escrow_party_id(escrow: str, address: str) -> str:
    """Id shared by EscrowDepositor and EscrowWithdrawer hubs"""
    return composite_id(escrow, address)


def pending_depositor_token_id(sale: str, escrow: str, depositor: str, token: str) -> str:
    return composite_id(sale, escrow, depositor, token)


def supply_token_deposit_id(sale: str, escrow: str, supply: int, token: str) -> str:
    return composite_id(sale, escrow, supply, token)


def supply_token_party_id(sale: str, escrow: str, supply: int, token: str, address: str) -> str:
    """Id shared by SupplyTokenDepositor and SupplyTokenWithdrawer records"""
    return composite_id(sale, escrow, supply, token, address)


def transaction_id(transaction_hash: str) -> str:
    """Records keyed by a single transaction hash"""
    return _component(transaction_hash)
