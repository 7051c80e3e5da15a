"""
Tests for staff endpoints
"""
from thamel_loyalty.services.account_registry import AccountRegistry
from thamel_loyalty.services.points_ledger import PointsLedger
from thamel_loyalty.services.reservation_ledger import ReservationLedger


def seed(db_session, member):
    other = AccountRegistry(db_session).create_local("other@example.com", "Other", "secret123")
    AccountRegistry(db_session).set_push_token(member, "ExponentPushToken[member]")
    PointsLedger(db_session).earn_points("member@example.com", "250")
    PointsLedger(db_session).earn_points("other@example.com", "40.50")
    ReservationLedger(db_session).create_booking(member.id, "K1", "2026-11-20", "6:00 PM", "4165550100")
    return other


class TestStaffAccess:

    def test_all_admin_routes_require_secret(self, client):
        for path in ("/admin/stats", "/admin/accounts", "/admin/bookings"):
            assert client.get(path).status_code == 401
            assert client.get(path, headers={"X-Admin-Secret": "wrong"}).status_code == 403
        assert client.post("/admin/notify", json={"title": "Hi", "sendEmail": True}).status_code == 401


class TestReports:

    def test_stats(self, client, staff_headers, db_session, member):
        seed(db_session, member)
        response = client.get("/admin/stats", headers=staff_headers)
        assert response.status_code == 200
        assert response.json() == {
            "total_accounts": 2,
            "total_amount_transacted": 290.5,
            "total_karaoke_bookings": 1,
        }

    def test_accounts(self, client, staff_headers, db_session, member):
        seed(db_session, member)
        accounts = client.get("/admin/accounts", headers=staff_headers).json()["accounts"]
        by_email = {a["email"]: a for a in accounts}
        assert by_email["member@example.com"]["points"] == 25
        assert by_email["other@example.com"]["points"] == 4
        assert "hashed_password" not in by_email["member@example.com"]
        assert by_email["member@example.com"]["created_at"]

    def test_bookings_include_owner(self, client, staff_headers, db_session, member):
        seed(db_session, member)
        bookings = client.get("/admin/bookings", headers=staff_headers).json()["bookings"]
        assert len(bookings) == 1
        assert bookings[0]["slot"] == "6:00 PM"
        assert bookings[0]["account"] == {"name": "Member", "email": "member@example.com"}


class TestNotify:

    def test_broadcast_email_and_push(self, client, staff_headers, db_session, member, email_provider, push_provider):
        seed(db_session, member)
        response = client.post("/admin/notify", headers=staff_headers, json={
            "title": "Karaoke night",
            "body": "Half price rooms <tonight>",
            "sendEmail": True,
            "sendPush": True,
        })
        assert response.status_code == 200
        assert response.json() == {"recipients": 2, "email_count": 2, "push_count": 1}

        assert {m.to for m in email_provider.messages} == {"member@example.com", "other@example.com"}
        assert "&lt;tonight&gt;" in email_provider.messages[0].html_body
        assert push_provider.sent[-1][0] == ["ExponentPushToken[member]"]

    def test_targeted_broadcast(self, client, staff_headers, db_session, member, email_provider):
        seed(db_session, member)
        response = client.post("/admin/notify", headers=staff_headers, json={
            "title": "Your booking",
            "body": "See you soon",
            "sendEmail": True,
            "emails": ["OTHER@example.com"],
        })
        assert response.json()["recipients"] == 1
        assert [m.to for m in email_provider.messages] == ["other@example.com"]

    def test_requires_a_channel(self, client, staff_headers):
        response = client.post("/admin/notify", headers=staff_headers, json={"title": "Hello"})
        assert response.status_code == 400

    def test_requires_title(self, client, staff_headers):
        response = client.post("/admin/notify", headers=staff_headers, json={"title": " ", "sendPush": True})
        assert response.status_code == 400
