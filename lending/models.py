# lending/models.py
from django.db import models
from django.utils import timezone


class User(models.Model):
    BORROWER = "borrower"
    LENDER = "lender"
    ADMIN = "admin"
    ROLE_CHOICES = [
        (BORROWER, "Borrower"),
        (LENDER, "Lender"),
        (ADMIN, "Admin"),
    ]

    name = models.CharField(max_length=120)
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)  # hash, never plain text
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, db_index=True)

    class Meta:
        db_table = 'lending_user'

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.role})"


class LoanOffer(models.Model):
    lender = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, related_name="loan_offers"
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2)
    max_term_months = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = 'lending_loan_offer'
        ordering = ["id"]

    def __str__(self):
        return f"Offer {self.id} - Lender {self.lender_id}"


class LoanApplication(models.Model):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
    ]

    borrower = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, related_name="loan_applications"
    )
    loan_offer = models.ForeignKey(
        LoanOffer, on_delete=models.CASCADE, related_name="applications"
    )
    national_id = models.CharField(max_length=32)
    monthly_salary = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.TextField()
    status = models.CharField(
        max_length=16, choices=STATUS_CHOICES, default=PENDING, db_index=True
    )

    class Meta:
        db_table = 'lending_loan_application'
        ordering = ["id"]

    def __str__(self):
        return f"Application {self.id} - Offer {self.loan_offer_id} ({self.status})"


class PaymentRecord(models.Model):
    """Running repayment ledger, one per approved application."""

    application = models.OneToOneField(
        LoanApplication, on_delete=models.CASCADE, related_name="payment_record"
    )
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        db_table = 'lending_payment_record'
        ordering = ["id"]

    def __str__(self):
        return f"Payments for application {self.application_id}: {self.amount_paid}"


class PaymentEntry(models.Model):
    record = models.ForeignKey(
        PaymentRecord, on_delete=models.CASCADE, related_name="payments"
    )
    date = models.DateTimeField(default=timezone.now)
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'lending_payment_entry'
        ordering = ["id"]
