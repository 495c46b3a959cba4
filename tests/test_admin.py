"""
HTTP tests for admin user management, analytics and CSV export.
"""

import csv
import io
from datetime import datetime, timedelta

import pytest

from app.models.user import User
from app.services.analytics_service import get_daily_usage
from test_transactions import add_transaction


class TestUsers:

    def test_create_user(self, client, admin_headers, db):
        res = client.post("/api/admin/users", headers=admin_headers, json={
            "name": "Erin",
            "email": "Erin@Example.com",
            "password": "long-enough-pw",
        })
        assert res.status_code == 201
        assert res.json()["email"] == "erin@example.com"
        assert res.json()["role"] == "user"
        assert db.query(User).filter(User.email == "erin@example.com").one().hashed_password != "long-enough-pw"

    def test_duplicate_email(self, client, admin_headers, user):
        res = client.post("/api/admin/users", headers=admin_headers, json={
            "name": "Alice again",
            "email": "alice@example.com",
            "password": "long-enough-pw",
        })
        assert res.status_code == 409

    def test_invalid_role(self, client, admin_headers):
        res = client.post("/api/admin/users", headers=admin_headers, json={
            "name": "Frank",
            "email": "frank@example.com",
            "password": "long-enough-pw",
            "role": "superuser",
        })
        assert res.status_code == 400

    def test_patch_user(self, client, admin_headers, user):
        res = client.patch(f"/api/admin/users/{user.id}", headers=admin_headers, json={"is_active": False})
        assert res.status_code == 200
        assert res.json()["is_active"] is False
        assert res.json()["role"] == "user"

        res = client.patch(f"/api/admin/users/{user.id}", headers=admin_headers, json={"role": "admin"})
        assert res.json()["role"] == "admin"

    def test_patch_missing_user(self, client, admin_headers):
        res = client.patch("/api/admin/users/nope", headers=admin_headers, json={"role": "admin"})
        assert res.status_code == 404


class TestAdminTransactions:

    def test_filter_by_user(self, client, admin_headers, user, make_user, db):
        add_transaction(db, user)
        add_transaction(db, user)
        add_transaction(db, make_user(email="gina@example.com"))

        everyone = client.get("/api/admin/transactions", headers=admin_headers).json()
        only_alice = client.get(f"/api/admin/transactions?user_id={user.id}", headers=admin_headers).json()

        assert everyone["pagination"]["total"] == 3
        assert only_alice["pagination"]["total"] == 2

    def test_export_csv(self, client, admin_headers, user, db):
        add_transaction(db, user, total=0.5, ranking={"winner": "claude"})
        add_transaction(db, user, total=0.25)
        add_transaction(db, user, days_ago=45)

        today = datetime.utcnow().date()
        res = client.get("/api/admin/transactions/export", headers=admin_headers)

        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/csv")
        start = (today - timedelta(days=30)).isoformat()
        assert res.headers["content-disposition"] == (
            f'attachment; filename="promptforge-export-{start}-to-{today.isoformat()}.csv"'
        )

        rows = list(csv.reader(io.StringIO(res.text)))
        assert rows[0] == ["user_email", "framework", "question", "winner", "total_cost", "created_at"]
        assert len(rows) == 3
        assert sorted(row[3] for row in rows[1:]) == ["N/A", "claude"]
        assert {row[0] for row in rows[1:]} == {"alice@example.com"}

    def test_export_quotes_question(self, client, admin_headers, user, db):
        record = add_transaction(db, user)
        record.user_question = 'Say "hi", politely'
        db.commit()

        res = client.get("/api/admin/transactions/export", headers=admin_headers)
        assert '"Say ""hi"", politely"' in res.text

    def test_export_range(self, client, admin_headers, user, db):
        add_transaction(db, user, days_ago=45)
        since = (datetime.utcnow() - timedelta(days=50)).date().isoformat()
        until = (datetime.utcnow() - timedelta(days=40)).date().isoformat()

        res = client.get(f"/api/admin/transactions/export?from={since}&to={until}", headers=admin_headers)
        assert len(list(csv.reader(io.StringIO(res.text)))) == 2

    def test_export_requires_admin(self, client, user_headers):
        assert client.get("/api/admin/transactions/export", headers=user_headers).status_code == 403


class TestAnalytics:

    def test_summary(self, client, admin_headers, user, make_user, db):
        other = make_user(email="hank@example.com")
        add_transaction(db, user, framework="rtf", total=1.0)
        add_transaction(db, user, framework="rtf", total=0.5)
        add_transaction(db, other, framework="cot", total=0.25, days_ago=40)

        body = client.get("/api/admin/analytics/summary", headers=admin_headers).json()
        assert body == {
            "total_runs": 3,
            "total_cost": "1.75",
            "active_users": 1,
            "most_popular_framework": "rtf",
        }

    def test_summary_empty(self, client, admin_headers):
        body = client.get("/api/admin/analytics/summary", headers=admin_headers).json()
        assert body["total_runs"] == 0
        assert body["total_cost"] == "0.00"
        assert body["most_popular_framework"] == "N/A"

    def test_by_user(self, client, admin, admin_headers, user, db):
        add_transaction(db, user, total=0.3)
        add_transaction(db, user, total=0.2)

        body = client.get("/api/admin/analytics/by-user", headers=admin_headers).json()
        assert [row["email"] for row in body] == ["alice@example.com", "admin@example.com"]
        assert body[0]["total_runs"] == 2
        assert body[0]["total_cost"] == "0.5000"
        assert body[0]["last_active"] is not None
        assert body[1]["total_runs"] == 0
        assert body[1]["last_active"] is None

    def test_by_framework(self, client, admin_headers, user, db):
        for framework in ("cot", "rtf", "cot"):
            add_transaction(db, user, framework=framework)

        body = client.get("/api/admin/analytics/by-framework", headers=admin_headers).json()
        assert body == [{"framework": "cot", "runs": 2}, {"framework": "rtf", "runs": 1}]

    def test_daily_is_zero_filled(self, client, admin_headers, user, db):
        add_transaction(db, user, total=0.5)
        add_transaction(db, user, total=0.25, days_ago=3)
        add_transaction(db, user, days_ago=31)

        body = client.get("/api/admin/analytics/daily", headers=admin_headers).json()
        assert len(body) == 30
        assert body[-1]["date"] == datetime.utcnow().date().isoformat()
        assert body[-1] == {"date": body[-1]["date"], "runs": 1, "cost": pytest.approx(0.5)}
        assert body[-4]["runs"] == 1
        assert sum(day["runs"] for day in body) == 2

    def test_daily_accepts_explicit_today(self, db):
        today = datetime(2026, 3, 1).date()
        days = get_daily_usage(db, today=today)
        assert days[0]["date"] == "2026-01-31"
        assert days[-1]["date"] == "2026-03-01"
