# lending/queries.py
"""
Read side: composed views over offers, applications and payment records.

Join contracts:
- a user that was deleted shows up as ``None`` wherever its summary is expected;
- an application without a payment record has ``payment_info: None``;
- a payment record whose offer cannot be resolved reports loan_amount and
  interest_rate as 0.
"""
from collections import defaultdict

from .models import User, LoanOffer, LoanApplication, PaymentRecord
from .serializers import (
    UserSerializer, LoanOfferSerializer, LoanApplicationSerializer,
    PaymentRecordSerializer, PaymentEntrySerializer,
)
from .utils import score_for_admin, score_for_borrower


def _user_summary(user, with_email=True):
    if user is None:
        return None
    summary = {"id": user.id, "name": user.name}
    if with_email:
        summary["email"] = user.email
    return summary


def _payment_record(application):
    # Reverse one-to-one raises (an AttributeError subclass) when absent
    return getattr(application, "payment_record", None)


def _payment_info(record):
    if record is None:
        return None
    return {
        "amount_paid": record.amount_paid,
        "payments": PaymentEntrySerializer(record.payments.all(), many=True).data,
    }


def _offer_terms(offer, with_lender=False):
    terms = {"id": offer.id, "amount": offer.amount, "interest_rate": offer.interest_rate}
    if with_lender:
        terms["lender"] = _user_summary(offer.lender, with_email=False)
    return terms


def all_users():
    return UserSerializer(User.objects.order_by("id"), many=True).data


def lender_offers(lender_id):
    offers = LoanOffer.objects.filter(lender_id=lender_id)
    return LoanOfferSerializer(offers, many=True).data


def active_offers():
    offers = LoanOffer.objects.filter(is_active=True).select_related("lender")
    return [
        {
            **LoanOfferSerializer(offer).data,
            "lender_name": offer.lender.name if offer.lender else None,
        }
        for offer in offers
    ]


def all_offers():
    offers = LoanOffer.objects.select_related("lender")
    return [
        {**LoanOfferSerializer(offer).data, "lender": _user_summary(offer.lender)}
        for offer in offers
    ]


def lender_applications(lender_id):
    """Applications against the lender's offers, each with its payment info."""
    applications = (
        LoanApplication.objects.filter(loan_offer__lender_id=lender_id)
        .select_related("borrower", "loan_offer", "payment_record")
        .prefetch_related("payment_record__payments")
    )
    return [
        {
            **LoanApplicationSerializer(app).data,
            "borrower": _user_summary(app.borrower),
            "loan_offer": _offer_terms(app.loan_offer),
            "payment_info": _payment_info(_payment_record(app)),
        }
        for app in applications
    ]


def borrower_applications(borrower_id):
    applications = (
        LoanApplication.objects.filter(borrower_id=borrower_id)
        .select_related("loan_offer__lender")
    )
    return [
        {
            **LoanApplicationSerializer(app).data,
            "loan_offer": _offer_terms(app.loan_offer, with_lender=True),
        }
        for app in applications
    ]


def all_applications():
    applications = LoanApplication.objects.select_related("borrower", "loan_offer__lender")
    return [
        {
            **LoanApplicationSerializer(app).data,
            "borrower": _user_summary(app.borrower),
            "loan_offer": {
                **LoanOfferSerializer(app.loan_offer).data,
                "lender_name": app.loan_offer.lender.name if app.loan_offer.lender else None,
            },
        }
        for app in applications
    ]


def borrower_payments(borrower_id):
    """Payment records of the borrower's applications, with the loan terms attached."""
    records = (
        PaymentRecord.objects.filter(application__borrower_id=borrower_id)
        .select_related("application__loan_offer")
        .prefetch_related("payments")
    )
    data = []
    for record in records:
        offer = record.application.loan_offer
        data.append({
            **PaymentRecordSerializer(record).data,
            "loan_amount": offer.amount if offer else 0,
            "interest_rate": offer.interest_rate if offer else 0,
        })
    return data


def all_payments():
    records = (
        PaymentRecord.objects.select_related(
            "application__borrower", "application__loan_offer__lender"
        )
        .prefetch_related("payments")
    )
    data = []
    for record in records:
        app = record.application
        data.append({
            **PaymentRecordSerializer(record).data,
            "application": {
                "id": app.id,
                "status": app.status,
                "borrower": _user_summary(app.borrower),
                "loan_offer": _offer_terms(app.loan_offer, with_lender=True),
            },
        })
    return data


def borrowers_overview():
    """Every borrower with their applications, payment records and admin-view score."""
    borrowers = User.objects.filter(role=User.BORROWER).order_by("id")
    applications = (
        LoanApplication.objects.filter(borrower__role=User.BORROWER)
        .select_related("loan_offer")
    )
    records = (
        PaymentRecord.objects.filter(application__borrower__role=User.BORROWER)
        .select_related("application")
        .prefetch_related("payments")
    )

    apps_by_borrower = defaultdict(list)
    for app in applications:
        apps_by_borrower[app.borrower_id].append({
            **LoanApplicationSerializer(app).data,
            "loan_offer": _offer_terms(app.loan_offer),
        })

    payments_by_borrower = defaultdict(list)
    for record in records:
        payments_by_borrower[record.application.borrower_id].append(
            PaymentRecordSerializer(record).data
        )

    data = []
    for borrower in borrowers:
        borrower_apps = apps_by_borrower[borrower.id]
        borrower_records = payments_by_borrower[borrower.id]
        data.append({
            **UserSerializer(borrower).data,
            "applications": borrower_apps,
            "payments": borrower_records,
            "credit_score": score_for_admin(borrower_apps, borrower_records),
        })
    return data


def borrower_credit_score(borrower_id):
    entries = []
    for record in borrower_payments(borrower_id):
        entries.extend(record["payments"])
    return score_for_borrower(entries)
