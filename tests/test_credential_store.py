"""
Tests for verification and hand-off code issue/redeem semantics
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from thamel_loyalty.db import HandoffCode, VerificationCode, utcnow
from thamel_loyalty.services import credential_store
from thamel_loyalty.services.account_registry import AccountRegistry
from thamel_loyalty.services.credential_store import CredentialStore, normalize_email


@pytest.fixture
def store(db_session):
    return CredentialStore(db_session)


@pytest.fixture
def fixed_codes(monkeypatch):
    """Make generated verification codes predictable"""
    codes = iter(["111111", "222222", "333333", "444444"])
    monkeypatch.setattr(credential_store, "generate_verification_code", lambda: next(codes))


class TestVerificationCodes:

    def test_generated_code_is_six_digits(self):
        for _ in range(50):
            code = credential_store.generate_verification_code()
            assert len(code) == 6
            assert code.isdigit()
            assert code[0] != "0"

    def test_normalize_email(self):
        assert normalize_email("  Guest@Example.COM ") == "guest@example.com"
        assert normalize_email(None) == ""

    def test_code_redeems_once(self, store):
        code = store.issue_verification_code("guest@example.com")

        assert store.redeem_verification_code("guest@example.com", code) is True
        assert store.redeem_verification_code("guest@example.com", code) is False

    def test_redeem_is_case_insensitive_on_email(self, store):
        code = store.issue_verification_code("Guest@Example.com")
        assert store.redeem_verification_code("GUEST@example.com", code) is True

    def test_reissue_invalidates_previous_code(self, store, fixed_codes, db_session):
        first = store.issue_verification_code("guest@example.com")
        second = store.issue_verification_code("guest@example.com")

        assert db_session.query(VerificationCode).count() == 1
        assert store.redeem_verification_code("guest@example.com", first) is False
        assert store.redeem_verification_code("guest@example.com", second) is True

    def test_code_is_bound_to_email(self, store, fixed_codes):
        code = store.issue_verification_code("guest@example.com")
        assert store.redeem_verification_code("other@example.com", code) is False
        assert store.redeem_verification_code("guest@example.com", code) is True

    def test_expired_code_is_rejected(self, store, db_session):
        code = store.issue_verification_code("guest@example.com")
        row = db_session.query(VerificationCode).filter_by(email="guest@example.com").one()
        row.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert store.redeem_verification_code("guest@example.com", code) is False

    @pytest.mark.parametrize("bad_code", ["", "12345", "1234567", "abcdef", None])
    def test_malformed_code_is_rejected(self, store, bad_code):
        store.issue_verification_code("guest@example.com")
        assert store.redeem_verification_code("guest@example.com", bad_code) is False

    def test_concurrent_redeem_has_one_winner(self, file_session_factory):
        setup = file_session_factory()
        code = CredentialStore(setup).issue_verification_code("race@example.com")
        setup.close()

        workers = 8
        barrier = threading.Barrier(workers)

        def redeem():
            db = file_session_factory()
            try:
                barrier.wait()
                return CredentialStore(db).redeem_verification_code("race@example.com", code)
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: redeem(), range(workers)))

        assert results.count(True) == 1


class TestHandoffCodes:

    @pytest.fixture
    def account(self, db_session):
        return AccountRegistry(db_session).create_local("app@example.com", "App User", "secret123")

    def test_handoff_code_is_opaque_hex(self, store, account):
        code = store.issue_handoff_code(account.id)
        assert len(code) == 32
        int(code, 16)

    def test_handoff_code_redeems_once(self, store, account):
        code = store.issue_handoff_code(account.id)

        assert store.redeem_handoff_code(code) == account.id
        assert store.redeem_handoff_code(code) is None

    def test_unknown_code(self, store):
        assert store.redeem_handoff_code("deadbeef") is None
        assert store.redeem_handoff_code("") is None

    def test_expired_code_is_rejected_and_removed(self, store, account, db_session):
        code = store.issue_handoff_code(account.id)
        row = db_session.query(HandoffCode).filter_by(code=code).one()
        row.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert store.redeem_handoff_code(code) is None
        assert db_session.query(HandoffCode).count() == 0

    def test_concurrent_exchange_has_one_winner(self, file_session_factory):
        setup = file_session_factory()
        account = AccountRegistry(setup).create_local("race@example.com", "Race", "secret123")
        code = CredentialStore(setup).issue_handoff_code(account.id)
        setup.close()

        workers = 8
        barrier = threading.Barrier(workers)

        def exchange():
            db = file_session_factory()
            try:
                barrier.wait()
                return CredentialStore(db).redeem_handoff_code(code)
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: exchange(), range(workers)))

        assert [r for r in results if r is not None] == [account.id]


class TestPurge:

    def test_purge_removes_only_expired(self, store, db_session):
        account = AccountRegistry(db_session).create_local("app@example.com", "App User", "secret123")
        store.issue_verification_code("old@example.com")
        store.issue_verification_code("fresh@example.com")
        old_handoff = store.issue_handoff_code(account.id)
        store.issue_handoff_code(account.id)

        past = utcnow() - timedelta(minutes=1)
        db_session.query(VerificationCode).filter_by(email="old@example.com").update({"expires_at": past})
        db_session.query(HandoffCode).filter_by(code=old_handoff).update({"expires_at": past})
        db_session.commit()

        assert store.purge_expired() == 2
        assert db_session.query(VerificationCode.email).scalar() == "fresh@example.com"
        assert db_session.query(HandoffCode).count() == 1
