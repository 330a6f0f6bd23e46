"""
Tests for notice board postings
"""

from models import ClaimEscrow, Notice, Verify
from services.notice_service import notices_for

from conftest import ALICE, BOB, CLAIM_ESCROW_ADDRESS, NOTICE_BOARD_ADDRESS, VERIFY_ADDRESS


class TestNotices:

    def test_notice_recorded_with_sequenced_id(self, dispatcher, logs, session):
        log = logs.log(NOTICE_BOARD_ADDRESS, "NewNotice", {"sender": ALICE, "subject": VERIFY_ADDRESS, "data": "0xBEEF"})
        dispatcher.process(log)

        stored = session.get(Notice, f"{VERIFY_ADDRESS} - {log['transaction_hash']} - 0")
        assert stored is not None
        assert stored.sender == ALICE
        assert stored.subject_address == VERIFY_ADDRESS
        assert stored.data == "0xbeef"
        assert stored.block == log["block_number"]
        assert stored.timestamp == log["block_timestamp"]

    def test_notices_visible_on_subject(self, dispatcher, logs, deployed_verify, session):
        dispatcher.process(logs.log(NOTICE_BOARD_ADDRESS, "NewNotice", {"sender": ALICE, "subject": VERIFY_ADDRESS, "data": "0x01"}))
        dispatcher.process(logs.log(NOTICE_BOARD_ADDRESS, "NewNotice", {"sender": BOB, "subject": VERIFY_ADDRESS, "data": "0x02"}))
        dispatcher.process(logs.log(NOTICE_BOARD_ADDRESS, "NewNotice", {"sender": BOB, "subject": CLAIM_ESCROW_ADDRESS, "data": "0x03"}))

        verify = session.get(Verify, VERIFY_ADDRESS)
        assert sorted(n.data for n in verify.notices) == ["0x01", "0x02"]
        assert [n.sender for n in notices_for(session, VERIFY_ADDRESS.upper().replace("0X", "0x"))] == [ALICE, BOB]
        assert [n.data for n in notices_for(session, CLAIM_ESCROW_ADDRESS)] == ["0x03"]

    def test_notice_about_unknown_subject_kept(self, dispatcher, logs, session):
        # Subjects need not be indexed contracts; the notice stands on its own
        dispatcher.process(logs.log(NOTICE_BOARD_ADDRESS, "NewNotice", {"sender": ALICE, "subject": CLAIM_ESCROW_ADDRESS, "data": "0x"}))

        assert session.get(ClaimEscrow, CLAIM_ESCROW_ADDRESS) is None
        assert len(notices_for(session, CLAIM_ESCROW_ADDRESS)) == 1
