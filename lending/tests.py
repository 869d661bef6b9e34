import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest import mock

import jwt
from django.conf import settings
from django.contrib.auth.hashers import make_password, check_password
from django.db import connection
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings
from django.urls import get_resolver
from rest_framework.test import APIClient

from .authentication import issue_token
from .models import User, LoanOffer, LoanApplication, PaymentRecord
from .permissions import OPERATION_ROLES
from . import services, tasks
from .utils import score_for_admin, score_for_borrower

FAST_HASHER = ["django.contrib.auth.hashers.MD5PasswordHasher"]


def make_user(name, role, email=None, password="secret123"):
    return User.objects.create(
        name=name,
        email=email or f"{name.lower()}@example.com",
        password=make_password(password),
        role=role,
    )


@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class LendingAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user("Ada", User.ADMIN)
        self.lender = make_user("Lena", User.LENDER)
        self.other_lender = make_user("Leo", User.LENDER)
        self.borrower = make_user("Bob", User.BORROWER)
        self.other_borrower = make_user("Bea", User.BORROWER)

    def as_user(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")
        return self.client

    def make_offer(self, lender=None, amount="1000.00", rate="12.50", term=12):
        return LoanOffer.objects.create(
            lender=lender or self.lender,
            amount=Decimal(amount),
            interest_rate=Decimal(rate),
            max_term_months=term,
        )

    def make_application(self, offer, borrower=None):
        return LoanApplication.objects.create(
            borrower=borrower or self.borrower,
            loan_offer=offer,
            national_id="8001015009087",
            monthly_salary=Decimal("4500.00"),
            reason="Car repairs",
        )

    def approve(self, application, lender=None):
        return self.as_user(lender or self.lender).patch(
            f"/api/lender/applications/{application.id}", {"status": "approved"}
        )


class CreditScoreTestCase(SimpleTestCase):
    def test_admin_score_base(self):
        self.assertEqual(score_for_admin([], []), 700)

    def test_admin_score_counts_payment_events_and_approvals(self):
        applications = [{"status": "approved"}, {"status": "approved"}, {"status": "rejected"}]
        records = [
            {"payments": [{"amount": 10}, {"amount": 20}]},
            {"payments": [{"amount": 5}]},
        ]
        self.assertEqual(score_for_admin(applications, records), 700 + 15 + 40)

    def test_admin_score_clamped_to_ceiling(self):
        records = [{"payments": [{"amount": 1}] * 1000}]
        self.assertEqual(score_for_admin([], records), 850)

    def test_admin_score_ignores_pending(self):
        self.assertEqual(score_for_admin([{"status": "pending"}], [{"payments": []}]), 700)

    def test_borrower_score_entries_without_status_stay_at_base(self):
        entries = [{"date": "2024-01-01T00:00:00Z", "amount": 100}] * 7
        self.assertEqual(score_for_borrower(entries), 650)

    def test_borrower_score_ontime_and_late(self):
        entries = [{"status": "ontime"}] * 4 + [{"status": "late"}] * 3
        self.assertEqual(score_for_borrower(entries), 650 + 20 - 30)

    def test_borrower_score_clamped_to_floor(self):
        self.assertEqual(score_for_borrower([{"status": "late"}] * 100), 300)

    def test_borrower_score_clamped_to_ceiling(self):
        self.assertEqual(score_for_borrower([{"status": "ontime"}] * 100), 850)


class AccessPolicyTestCase(SimpleTestCase):
    def test_every_view_operation_has_a_role(self):
        for pattern in get_resolver().url_patterns:
            for sub in getattr(pattern, "url_patterns", []):
                view_class = getattr(sub.callback, "view_class", None)
                for operation in getattr(view_class, "operations", {}).values():
                    self.assertIn(operation, OPERATION_ROLES)


class RegisterLoginTestCase(LendingAPITestCase):
    def test_register(self):
        data = {"name": "Nia", "email": "nia@example.com", "password": "pw12345", "role": "borrower"}
        response = self.client.post("/api/register", data)
        self.assertEqual(response.status_code, 201)
        user = User.objects.get(email="nia@example.com")
        self.assertEqual(user.role, "borrower")
        self.assertNotEqual(user.password, "pw12345")
        self.assertTrue(check_password("pw12345", user.password))

    def test_register_duplicate_email_any_role(self):
        for role in ("borrower", "lender", "admin"):
            data = {"name": "Dup", "email": "bob@example.com", "password": "x", "role": role}
            response = self.client.post("/api/register", data)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.data["error"], "email: Email already registered!")
        self.assertEqual(User.objects.filter(email="bob@example.com").count(), 1)

    def test_register_missing_field(self):
        response = self.client.post("/api/register", {"name": "X", "email": "x@example.com", "role": "lender"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("password", response.data["details"])

    def test_register_unknown_role(self):
        data = {"name": "X", "email": "x@example.com", "password": "pw", "role": "banker"}
        response = self.client.post("/api/register", data)
        self.assertEqual(response.status_code, 400)

    def test_login(self):
        response = self.client.post("/api/login", {"email": "bob@example.com", "password": "secret123", "role": "borrower"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"], {"name": "Bob", "email": "bob@example.com", "role": "borrower"})

        payload = jwt.decode(response.data["token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        self.assertEqual(payload["id"], self.borrower.id)
        self.assertEqual(payload["role"], "borrower")

    def test_login_wrong_role(self):
        response = self.client.post("/api/login", {"email": "bob@example.com", "password": "secret123", "role": "lender"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "Invalid email or role!")

    def test_login_wrong_password(self):
        response = self.client.post("/api/login", {"email": "bob@example.com", "password": "nope", "role": "borrower"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "Invalid password!")

    def test_login_token_works_on_protected_route(self):
        response = self.client.post("/api/login", {"email": "lena@example.com", "password": "secret123", "role": "lender"})
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        self.assertEqual(self.client.get("/api/lender/loan-offers").status_code, 200)


class AuthenticationTestCase(LendingAPITestCase):
    def test_missing_token(self):
        response = self.client.get("/api/borrower/loan-offers")
        self.assertEqual(response.status_code, 401)
        self.assertIn("error", response.data)

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.get("/api/borrower/loan-offers")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["error"], "Invalid token")

    def test_non_ascii_scheme(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bear\u00e9r abc")
        response = self.client.get("/api/borrower/loan-offers")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["error"], "Invalid token")

    def test_wrong_scheme(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {issue_token(self.borrower)}")
        self.assertEqual(self.client.get("/api/borrower/loan-offers").status_code, 401)

    def test_expired_token(self):
        expired = jwt.encode(
            {
                "id": self.borrower.id,
                "email": self.borrower.email,
                "role": "borrower",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {expired}")
        self.assertEqual(self.client.get("/api/borrower/loan-offers").status_code, 401)

    def test_unauthorized_before_validation(self):
        response = self.client.post("/api/lender/loan-offers", {})
        self.assertEqual(response.status_code, 401)

    def test_borrower_cannot_create_offer(self):
        data = {"amount": 500, "interest_rate": 10, "max_term_months": 6}
        response = self.as_user(self.borrower).post("/api/lender/loan-offers", data)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"], "Forbidden")
        self.assertEqual(LoanOffer.objects.count(), 0)

    def test_lender_cannot_use_admin_routes(self):
        self.assertEqual(self.as_user(self.lender).get("/api/admin/users").status_code, 403)

    def test_admin_cannot_record_payment(self):
        self.assertEqual(self.as_user(self.admin).post("/api/borrower/payments/1", {"amount": 5}).status_code, 403)


class LoanOfferTestCase(LendingAPITestCase):
    def test_create_offer(self):
        data = {"amount": 2500, "interest_rate": 9.5, "max_term_months": 24}
        response = self.as_user(self.lender).post("/api/lender/loan-offers", data)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["lender_id"], self.lender.id)
        self.assertTrue(response.data["is_active"])

        offer = LoanOffer.objects.get()
        self.assertEqual(offer.amount, Decimal("2500"))
        self.assertEqual(offer.lender, self.lender)

    def test_create_offer_missing_field(self):
        response = self.as_user(self.lender).post("/api/lender/loan-offers", {"amount": 100})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(LoanOffer.objects.count(), 0)

    def test_list_own_offers(self):
        self.make_offer()
        self.make_offer(lender=self.other_lender)
        response = self.as_user(self.lender).get("/api/lender/loan-offers")
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["lender_id"], self.lender.id)

    def test_active_offers_carry_lender_name(self):
        active = self.make_offer()
        inactive = self.make_offer(lender=self.other_lender)
        inactive.is_active = False
        inactive.save()

        response = self.as_user(self.borrower).get("/api/borrower/loan-offers")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([o["id"] for o in response.data], [active.id])
        self.assertEqual(response.data[0]["lender_name"], "Lena")

    def test_active_offer_of_deleted_lender(self):
        self.make_offer(lender=self.other_lender)
        self.other_lender.delete()
        response = self.as_user(self.borrower).get("/api/borrower/loan-offers")
        self.assertIsNone(response.data[0]["lender_name"])


class LoanApplicationTestCase(LendingAPITestCase):
    def test_create_application(self):
        offer = self.make_offer()
        data = {"loan_offer_id": offer.id, "national_id": "123", "monthly_salary": 3000, "reason": "School fees"}
        response = self.as_user(self.borrower).post("/api/borrower/applications", data)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["borrower_id"], self.borrower.id)

    def test_create_application_unknown_offer(self):
        data = {"loan_offer_id": 999, "national_id": "123", "monthly_salary": 3000, "reason": "x"}
        response = self.as_user(self.borrower).post("/api/borrower/applications", data)
        self.assertEqual(response.status_code, 404)

    def test_create_application_inactive_offer(self):
        offer = self.make_offer()
        offer.is_active = False
        offer.save()
        data = {"loan_offer_id": offer.id, "national_id": "123", "monthly_salary": 3000, "reason": "x"}
        response = self.as_user(self.borrower).post("/api/borrower/applications", data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(LoanApplication.objects.count(), 0)

    def test_status_cannot_be_set_on_create(self):
        offer = self.make_offer()
        data = {"loan_offer_id": offer.id, "national_id": "1", "monthly_salary": 1, "reason": "x", "status": "approved"}
        response = self.as_user(self.borrower).post("/api/borrower/applications", data)
        self.assertEqual(response.data["status"], "pending")

    def test_list_own_applications(self):
        offer = self.make_offer()
        mine = self.make_application(offer)
        self.make_application(offer, borrower=self.other_borrower)

        response = self.as_user(self.borrower).get("/api/borrower/applications")
        self.assertEqual([a["id"] for a in response.data], [mine.id])
        self.assertEqual(response.data[0]["loan_offer"]["lender"]["name"], "Lena")

    def test_lender_applications_include_payment_info(self):
        offer = self.make_offer()
        app = self.make_application(offer)
        self.make_application(self.make_offer(lender=self.other_lender))

        response = self.as_user(self.lender).get("/api/lender/applications")
        self.assertEqual(len(response.data), 1)
        self.assertIsNone(response.data[0]["payment_info"])
        self.assertEqual(response.data[0]["borrower"]["email"], "bob@example.com")

        self.approve(app)
        services.record_payment(app.id, Decimal("50"), self.borrower)
        response = self.as_user(self.lender).get("/api/lender/applications")
        info = response.data[0]["payment_info"]
        self.assertEqual(info["amount_paid"], Decimal("50"))
        self.assertEqual(len(info["payments"]), 1)


class ApplicationLifecycleTestCase(LendingAPITestCase):
    def setUp(self):
        super().setUp()
        self.offer = self.make_offer()
        self.application = self.make_application(self.offer)

    def test_approve_deactivates_offer_and_opens_record(self):
        response = self.approve(self.application)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "approved")

        self.offer.refresh_from_db()
        self.assertFalse(self.offer.is_active)
        record = PaymentRecord.objects.get(application=self.application)
        self.assertEqual(record.amount_paid, 0)
        self.assertEqual(record.payments.count(), 0)

    def test_double_approval_creates_one_record(self):
        self.approve(self.application)
        response = self.approve(self.application)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(PaymentRecord.objects.filter(application=self.application).count(), 1)
        self.offer.refresh_from_db()
        self.assertFalse(self.offer.is_active)

    def test_double_approval_keeps_payments(self):
        self.approve(self.application)
        services.record_payment(self.application.id, Decimal("25"), self.borrower)
        self.approve(self.application)
        record = PaymentRecord.objects.get(application=self.application)
        self.assertEqual(record.amount_paid, Decimal("25"))

    def test_reject_has_no_side_effects(self):
        response = self.as_user(self.lender).patch(
            f"/api/lender/applications/{self.application.id}", {"status": "rejected"}
        )
        self.assertEqual(response.data["status"], "rejected")
        self.offer.refresh_from_db()
        self.assertTrue(self.offer.is_active)
        self.assertFalse(PaymentRecord.objects.exists())

    def test_unknown_application(self):
        response = self.as_user(self.lender).patch("/api/lender/applications/9999", {"status": "approved"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "Application not found")

    def test_other_lender_cannot_decide(self):
        response = self.approve(self.application, lender=self.other_lender)
        self.assertEqual(response.status_code, 403)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, "pending")
        self.assertFalse(PaymentRecord.objects.exists())

    def test_back_to_pending_is_rejected(self):
        response = self.as_user(self.lender).patch(
            f"/api/lender/applications/{self.application.id}", {"status": "pending"}
        )
        self.assertEqual(response.status_code, 400)

    def test_approved_offer_leaves_active_listing(self):
        self.approve(self.application)
        response = self.as_user(self.borrower).get("/api/borrower/loan-offers")
        self.assertEqual(response.data, [])


class PaymentTestCase(LendingAPITestCase):
    def setUp(self):
        super().setUp()
        self.offer = self.make_offer(amount="1200.00", rate="15.00")
        self.application = self.make_application(self.offer)

    def pay(self, amount, borrower=None, application=None):
        application = application or self.application
        return self.as_user(borrower or self.borrower).post(
            f"/api/borrower/payments/{application.id}", {"amount": amount}
        )

    def test_payment_before_approval_not_found(self):
        response = self.pay(100)
        self.assertEqual(response.status_code, 404)

    def test_payments_accumulate_in_order(self):
        self.approve(self.application)
        amounts = [Decimal("100.00"), Decimal("250.50"), Decimal("49.50")]
        for amount in amounts:
            response = self.pay(str(amount))
            self.assertEqual(response.status_code, 200)

        self.assertEqual(response.data["amount_paid"], sum(amounts))
        self.assertEqual([p["amount"] for p in response.data["payments"]], amounts)

        record = PaymentRecord.objects.get(application=self.application)
        self.assertEqual(record.amount_paid, Decimal("400.00"))
        self.assertEqual(sum(p.amount for p in record.payments.all()), record.amount_paid)

    def test_payment_amount_required(self):
        self.approve(self.application)
        response = self.as_user(self.borrower).post(f"/api/borrower/payments/{self.application.id}", {})
        self.assertEqual(response.status_code, 400)

    def test_other_borrower_cannot_pay(self):
        self.approve(self.application)
        response = self.pay(10, borrower=self.other_borrower)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(PaymentRecord.objects.get().amount_paid, 0)

    def test_list_own_payments_carries_loan_terms(self):
        self.approve(self.application)
        self.pay(300)
        response = self.as_user(self.borrower).get("/api/borrower/payments")
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["loan_amount"], Decimal("1200.00"))
        self.assertEqual(response.data[0]["interest_rate"], Decimal("15.00"))
        self.assertEqual(response.data[0]["amount_paid"], Decimal("300"))

        self.assertEqual(self.as_user(self.other_borrower).get("/api/borrower/payments").data, [])

    def test_borrower_credit_score_stays_at_base(self):
        self.approve(self.application)
        for _ in range(3):
            self.pay(10)
        response = self.as_user(self.borrower).get("/api/borrower/credit-score")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"score": 650})


class AdminTestCase(LendingAPITestCase):
    def test_list_users_hides_password(self):
        response = self.as_user(self.admin).get("/api/admin/users")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 5)
        for user in response.data:
            self.assertNotIn("password", user)

    def test_self_delete_rejected(self):
        response = self.as_user(self.admin).delete(f"/api/admin/users/{self.admin.id}")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "Cannot delete your own account")
        self.assertTrue(User.objects.filter(pk=self.admin.id).exists())

    def test_delete_user(self):
        client = self.as_user(self.admin)
        self.assertEqual(client.get(f"/api/admin/users/{self.borrower.id}").status_code, 200)

        response = client.delete(f"/api/admin/users/{self.borrower.id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(client.get(f"/api/admin/users/{self.borrower.id}").status_code, 404)
        self.assertEqual(client.delete(f"/api/admin/users/{self.borrower.id}").status_code, 404)

    def test_set_user_role(self):
        response = self.as_user(self.admin).patch(f"/api/admin/users/{self.borrower.id}/role", {"role": "lender"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["role"], "lender")
        self.assertNotIn("password", response.data)
        self.borrower.refresh_from_db()
        self.assertEqual(self.borrower.role, "lender")

    def test_set_role_invalid(self):
        response = self.as_user(self.admin).patch(f"/api/admin/users/{self.borrower.id}/role", {"role": "king"})
        self.assertEqual(response.status_code, 400)

    def test_set_role_unknown_user(self):
        response = self.as_user(self.admin).patch("/api/admin/users/9999/role", {"role": "lender"})
        self.assertEqual(response.status_code, 404)

    def test_borrowers_overview_scores(self):
        offer = self.make_offer()
        app = self.make_application(offer)
        self.make_application(self.make_offer(lender=self.other_lender))
        self.approve(app)
        services.record_payment(app.id, Decimal("10"), self.borrower)
        services.record_payment(app.id, Decimal("20"), self.borrower)

        response = self.as_user(self.admin).get("/api/admin/borrowers")
        self.assertEqual(response.status_code, 200)
        by_email = {b["email"]: b for b in response.data}
        self.assertEqual(set(by_email), {"bob@example.com", "bea@example.com"})

        bob = by_email["bob@example.com"]
        self.assertEqual(len(bob["applications"]), 2)
        self.assertEqual(len(bob["payments"]), 1)
        self.assertEqual(bob["credit_score"], 700 + 2 * 5 + 20)
        self.assertEqual(by_email["bea@example.com"]["credit_score"], 700)

    def test_list_all_views(self):
        offer = self.make_offer()
        app = self.make_application(offer)
        self.approve(app)
        services.record_payment(app.id, Decimal("75"), self.borrower)
        client = self.as_user(self.admin)

        offers = client.get("/api/admin/loan-offers").data
        self.assertEqual(offers[0]["lender"]["email"], "lena@example.com")

        applications = client.get("/api/admin/loan-applications").data
        self.assertEqual(applications[0]["borrower"]["name"], "Bob")
        self.assertEqual(applications[0]["loan_offer"]["lender_name"], "Lena")

        payments = client.get("/api/admin/payments").data
        self.assertEqual(payments[0]["amount_paid"], Decimal("75"))
        self.assertEqual(payments[0]["application"]["borrower"]["name"], "Bob")
        self.assertEqual(payments[0]["application"]["loan_offer"]["lender"]["name"], "Lena")


class ErrorHandlingTestCase(LendingAPITestCase):
    def test_unexpected_error_becomes_server_error(self):
        with mock.patch("lending.views.queries.active_offers", side_effect=RuntimeError("store down")):
            response = self.as_user(self.borrower).get("/api/borrower/loan-offers")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {"error": "Server error: store down"})

    def test_health_check(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})


@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class SeedIngestionTestCase(TestCase):
    def write_csv(self, content):
        handle = tempfile.NamedTemporaryFile("w", suffix=".csv", delete=False)
        handle.write(content)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_ingest_users_and_offers(self):
        users = self.write_csv(
            "name,email,password,role\n"
            "Lena,Lena@Example.com,pw1,lender\n"
            "Bob,bob@example.com,pw2,borrower\n"
            "Zed,zed@example.com,pw3,wizard\n"
        )
        offers = self.write_csv(
            "lender_email,amount,interest_rate,max_term_months,is_active\n"
            "lena@example.com,1000,12.5,12,true\n"
            "lena@example.com,500,8,6,false\n"
            "bob@example.com,700,9,3,true\n"
            "ghost@example.com,700,9,3,true\n"
        )

        self.assertEqual(tasks.ingest_users(users), "Processed 2 users, 1 errors")
        lena = User.objects.get(email="lena@example.com")
        self.assertEqual(lena.role, "lender")
        self.assertTrue(check_password("pw1", lena.password))

        self.assertEqual(tasks.ingest_loan_offers(offers), "Processed 2 loan offers, 2 errors")
        self.assertEqual(LoanOffer.objects.filter(lender=lena).count(), 2)
        self.assertEqual(LoanOffer.objects.filter(is_active=True).count(), 1)

    def test_ingest_users_upserts_by_email(self):
        make_user("Old", User.BORROWER, email="bob@example.com")
        users = self.write_csv("name,email,password,role\nBob,bob@example.com,pw2,lender\n")
        tasks.ingest_users(users)
        bob = User.objects.get(email="bob@example.com")
        self.assertEqual((bob.name, bob.role), ("Bob", "lender"))

    def test_import_all_data_runs_in_order(self):
        users = self.write_csv("name,email,password,role\nLena,lena@example.com,pw1,lender\n")
        offers = self.write_csv("lender_email,amount,interest_rate,max_term_months\nlena@example.com,100,5,2\n")
        with self.settings(SEED_USERS_FILE=users, SEED_OFFERS_FILE=offers):
            result = tasks.import_all_data()
        self.assertEqual(result["users"], "Processed 1 users, 0 errors")
        self.assertEqual(result["loan_offers"], "Processed 1 loan offers, 0 errors")




@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class DeletedAccountTokenTestCase(TransactionTestCase):
    def test_token_of_deleted_lender_is_rejected(self):
        lender = make_user("Lena", User.LENDER)
        token = issue_token(lender)
        lender.delete()

        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = client.post("/api/lender/loan-offers", {"amount": 500, "interest_rate": 10, "max_term_months": 6})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "User no longer exists"})
        self.assertEqual(LoanOffer.objects.count(), 0)

    def test_token_of_deleted_borrower_is_rejected(self):
        lender = make_user("Lena", User.LENDER)
        borrower = make_user("Bob", User.BORROWER)
        offer = LoanOffer.objects.create(lender=lender, amount=1000, interest_rate=10, max_term_months=12)
        token = issue_token(borrower)
        borrower.delete()

        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        data = {"loan_offer_id": offer.id, "national_id": "1", "monthly_salary": 100, "reason": "x"}
        response = client.post("/api/borrower/applications", data)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(LoanApplication.objects.count(), 0)


@override_settings(PASSWORD_HASHERS=FAST_HASHER)
class ConcurrentLifecycleTestCase(TransactionTestCase):
    def setUp(self):
        self.lender = make_user("Lena", User.LENDER)
        self.borrower = make_user("Bob", User.BORROWER)
        self.offer = LoanOffer.objects.create(lender=self.lender, amount=1000, interest_rate=10, max_term_months=12)
        self.application = LoanApplication.objects.create(
            borrower=self.borrower, loan_offer=self.offer, national_id="1", monthly_salary=1, reason="x"
        )

    def run_in_threads(self, target, count):
        errors = []

        def worker():
            try:
                target()
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(errors, [])

    def test_concurrent_payments_do_not_lose_updates(self):
        services.set_application_status(self.application.id, LoanApplication.APPROVED, self.lender)

        self.run_in_threads(
            lambda: services.record_payment(self.application.id, Decimal("5"), self.borrower), 10
        )

        record = PaymentRecord.objects.get(application=self.application)
        self.assertEqual(record.amount_paid, Decimal("50"))
        self.assertEqual(record.payments.count(), 10)

    def test_concurrent_approvals_open_one_record(self):
        self.run_in_threads(
            lambda: services.set_application_status(
                self.application.id, LoanApplication.APPROVED, self.lender
            ),
            8,
        )

        self.assertEqual(PaymentRecord.objects.filter(application=self.application).count(), 1)
        self.offer.refresh_from_db()
        self.assertFalse(self.offer.is_active)
