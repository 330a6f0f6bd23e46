"""
Tests for the role membership mirror
"""

import pytest
from sqlalchemy import func, select
from web3 import Web3

from models import VerifyAddress, VerifyAddressRole, VerifyRole
from services.role_registry_service import (
    DEFAULT_ADMIN_ROLE_HASH, ROLE_SETS, role_from_hash, role_hash, role_holders, role_sets
)
from utils.composite_ids import verify_address_id
from utils.indexing_errors import EventDecodeError, IndexingHaltError

from conftest import ADMIN, ALICE, BOB, VERIFY_ADDRESS


def grant(logs, role, account, event="RoleGranted"):
    return logs.log(VERIFY_ADDRESS, event, {"role": role_hash(role), "account": account, "sender": ADMIN})


def role_rows(session):
    return session.scalar(select(func.count()).select_from(VerifyAddressRole))


class TestRoleHashes:
    """Role ids match the contract's keccak256 constants"""

    def test_named_roles_are_keccak_of_name(self):
        for role in VerifyRole:
            if role == VerifyRole.DEFAULT_ADMIN:
                continue
            assert bytes.fromhex(role_hash(role)[2:]) == bytes(Web3.keccak(text=role.value))

    def test_default_admin_is_zero_hash(self):
        assert role_hash(VerifyRole.DEFAULT_ADMIN) == DEFAULT_ADMIN_ROLE_HASH
        assert role_from_hash(DEFAULT_ADMIN_ROLE_HASH) == VerifyRole.DEFAULT_ADMIN

    def test_unknown_role_is_decode_error(self):
        with pytest.raises(EventDecodeError):
            role_from_hash("0x" + "ab" * 32)


class TestGrantAndRevoke:
    """RoleGranted / RoleRevoked projections"""

    def test_grant_adds_role_and_convenience_set(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(grant(logs, VerifyRole.APPROVER, BOB))
        dispatcher.process(grant(logs, VerifyRole.APPROVER_ADMIN, ADMIN))

        bob = session.get(VerifyAddress, verify_address_id(VERIFY_ADDRESS, BOB))
        assert bob.role_names == ["APPROVER"]
        assert role_holders(session, VERIFY_ADDRESS, VerifyRole.APPROVER) == [BOB]

        sets = role_sets(session, VERIFY_ADDRESS)
        assert set(sets) == set(ROLE_SETS)
        assert sets["approvers"] == [BOB]
        assert sets["approver_admins"] == [ADMIN]
        assert sets["banners"] == []

    def test_grant_twice_is_idempotent(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(grant(logs, VerifyRole.BANNER, BOB))
        dispatcher.process(grant(logs, VerifyRole.BANNER, BOB))

        assert role_rows(session) == 1
        assert role_holders(session, VERIFY_ADDRESS, VerifyRole.BANNER) == [BOB]

    def test_revoke_removes_role(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(grant(logs, VerifyRole.REMOVER, ALICE))
        dispatcher.process(grant(logs, VerifyRole.BANNER, ALICE))
        dispatcher.process(grant(logs, VerifyRole.REMOVER, ALICE, event="RoleRevoked"))

        alice = session.get(VerifyAddress, verify_address_id(VERIFY_ADDRESS, ALICE))
        assert alice.role_names == ["BANNER"]
        assert role_holders(session, VERIFY_ADDRESS, VerifyRole.REMOVER) == []

    def test_revoke_absent_role_is_noop(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(grant(logs, VerifyRole.APPROVER, ALICE))
        dispatcher.process(grant(logs, VerifyRole.BANNER, ALICE, event="RoleRevoked"))

        alice = session.get(VerifyAddress, verify_address_id(VERIFY_ADDRESS, ALICE))
        assert alice.role_names == ["APPROVER"]
        assert role_rows(session) == 1

    def test_roles_do_not_touch_status(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(grant(logs, VerifyRole.DEFAULT_ADMIN, ADMIN))

        admin = session.get(VerifyAddress, verify_address_id(VERIFY_ADDRESS, ADMIN))
        assert admin.status == "NIL"
        assert admin.request_status == "NONE"
        assert admin.role_names == ["DEFAULT_ADMIN"]

    def test_unknown_role_halts_indexing(self, dispatcher, logs, deployed_verify, session):
        log = logs.log(VERIFY_ADDRESS, "RoleGranted", {"role": "0x" + "ab" * 32, "account": BOB, "sender": ADMIN})

        with pytest.raises(IndexingHaltError) as exc_info:
            dispatcher.process(log)

        assert isinstance(exc_info.value.cause, EventDecodeError)
        assert role_rows(session) == 0
        assert session.get(VerifyAddress, verify_address_id(VERIFY_ADDRESS, BOB)) is None
