# lending/services.py
"""
Write side of the lending workflow: offers, applications, the approval
lifecycle, repayments and user administration. Role checks happen before
these functions are reached; ownership and existence are checked here,
before anything is written.
"""
import logging

from django.contrib.auth.hashers import check_password
from django.db import transaction
from django.db.models import F
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from .models import User, LoanOffer, LoanApplication, PaymentRecord, PaymentEntry

logger = logging.getLogger(__name__)


def authenticate_user(email, password, role):
    user = User.objects.filter(email__iexact=email, role=role).first()
    if user is None:
        raise ValidationError("Invalid email or role!")
    if not check_password(password, user.password):
        raise ValidationError("Invalid password!")
    return user


def create_offer(lender, amount, interest_rate, max_term_months):
    offer = LoanOffer.objects.create(
        lender_id=lender.id,
        amount=amount,
        interest_rate=interest_rate,
        max_term_months=max_term_months,
    )
    logger.info(f"Lender {lender.id} published offer {offer.id}")
    return offer


def create_application(borrower, loan_offer_id, national_id, monthly_salary, reason):
    offer = LoanOffer.objects.filter(pk=loan_offer_id).first()
    if offer is None:
        raise NotFound("Loan offer not found")
    if not offer.is_active:
        raise ValidationError("Loan offer is no longer active")

    application = LoanApplication.objects.create(
        borrower_id=borrower.id,
        loan_offer=offer,
        national_id=national_id,
        monthly_salary=monthly_salary,
        reason=reason,
    )
    logger.info(f"Borrower {borrower.id} applied to offer {offer.id} (application {application.id})")
    return application


def set_application_status(application_id, new_status, lender):
    """
    Move an application to approved or rejected.

    Approval deactivates the offer and opens the payment record. The record
    is created at most once per application (unique on application_id), so
    repeated approvals only rewrite the status.
    """
    with transaction.atomic():
        application = (
            LoanApplication.objects.select_related("loan_offer")
            .filter(pk=application_id)
            .first()
        )
        if application is None:
            raise NotFound("Application not found")
        if application.loan_offer.lender_id != lender.id:
            raise PermissionDenied("You do not own the loan offer for this application")

        if new_status == LoanApplication.APPROVED:
            LoanOffer.objects.filter(pk=application.loan_offer_id).update(is_active=False)
            _, created = PaymentRecord.objects.get_or_create(application=application)
            if created:
                logger.info(f"Opened payment record for application {application.id}")

        application.status = new_status
        application.save(update_fields=["status"])

    logger.info(f"Lender {lender.id} set application {application.id} to {new_status}")
    return application


def record_payment(application_id, amount, borrower):
    """Append a repayment and bump the running total in one locked step."""
    application = LoanApplication.objects.filter(pk=application_id).only("id", "borrower_id").first()
    if application is not None and application.borrower_id != borrower.id:
        raise PermissionDenied("You do not own this application")

    with transaction.atomic():
        record = PaymentRecord.objects.select_for_update().filter(application_id=application_id).first()
        if record is None:
            raise NotFound("Payment record not found")

        PaymentEntry.objects.create(record=record, amount=amount)
        PaymentRecord.objects.filter(pk=record.pk).update(amount_paid=F("amount_paid") + amount)

    record.refresh_from_db()
    logger.info(f"Borrower {borrower.id} paid {amount} on application {application_id}")
    return record


def get_user(user_id):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def delete_user(user_id, admin):
    if int(user_id) == int(admin.id):
        raise ValidationError("Cannot delete your own account")

    user = get_user(user_id)
    user.delete()
    logger.info(f"Admin {admin.id} deleted user {user_id}")


def set_user_role(user_id, role, admin):
    user = get_user(user_id)
    user.role = role
    user.save(update_fields=["role"])
    logger.info(f"Admin {admin.id} set role of user {user_id} to {role}")
    return user
