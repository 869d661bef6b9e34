# lending/tasks.py
import pandas as pd
from decimal import Decimal, InvalidOperation
from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db import transaction
from celery import shared_task
import logging

from .models import User, LoanOffer

logger = logging.getLogger(__name__)

VALID_ROLES = {choice for choice, _ in User.ROLE_CHOICES}


def read_table(file_path: str) -> pd.DataFrame:
    """Load a seed sheet; .csv is read as text, anything else as Excel."""
    if str(file_path).lower().endswith('.csv'):
        df = pd.read_csv(file_path)
    else:
        df = pd.read_excel(file_path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


@shared_task
def ingest_users(file_path: str):
    """
    Ingest users sheet → lending_user (upsert by email)
    Headers: name, email, password, role
    """
    try:
        df = read_table(file_path)
        logger.info(f"User columns: {df.columns.tolist()}")
        logger.info(f"Processing {len(df)} user records")

        inserted_count = 0
        error_count = 0

        with transaction.atomic():
            for _, row in df.iterrows():
                email = str(row['email']).strip().lower()
                role = str(row['role']).strip().lower()
                if role not in VALID_ROLES:
                    logger.error(f"Unknown role {role!r} for user {email}")
                    error_count += 1
                    continue

                User.objects.update_or_create(
                    email=email,
                    defaults={
                        'name': str(row['name']).strip(),
                        'role': role,
                        'password': make_password(str(row['password'])),
                    },
                )
                inserted_count += 1

        logger.info(f"User ingestion completed: {inserted_count} upserted, {error_count} errors")
        return f"Processed {inserted_count} users, {error_count} errors"
    except Exception as e:
        logger.error(f"User ingestion failed: {e}")
        raise


@shared_task
def ingest_loan_offers(file_path: str):
    """
    Ingest loan offers sheet → lending_loan_offer
    Headers: lender_email, amount, interest_rate, max_term_months, is_active (optional)
    """
    try:
        df = read_table(file_path)
        logger.info(f"Loan offer columns: {df.columns.tolist()}")
        logger.info(f"Processing {len(df)} loan offer records")

        lenders = {
            email.lower(): lender_id
            for email, lender_id in User.objects.filter(role=User.LENDER).values_list('email', 'id')
        }
        logger.info(f"Found {len(lenders)} lenders in database")

        inserted_count = 0
        error_count = 0

        with transaction.atomic():
            for _, row in df.iterrows():
                lender_email = str(row['lender_email']).strip().lower()
                lender_id = lenders.get(lender_email)
                if lender_id is None:
                    logger.error(f"Lender {lender_email} not found for loan offer")
                    error_count += 1
                    continue

                is_active = True
                if 'is_active' in df.columns and not pd.isna(row['is_active']):
                    is_active = str(row['is_active']).strip().lower() in {'1', 'true', 'yes'}

                try:
                    LoanOffer.objects.create(
                        lender_id=lender_id,
                        amount=Decimal(str(row['amount'])),
                        interest_rate=Decimal(str(row['interest_rate'])),
                        max_term_months=int(row['max_term_months']),
                        is_active=is_active,
                    )
                except (TypeError, ValueError, InvalidOperation) as e:
                    logger.error(f"Error inserting loan offer for {lender_email}: {e}")
                    error_count += 1
                    continue
                inserted_count += 1

        logger.info(f"Loan offer ingestion completed: {inserted_count} inserted, {error_count} errors")
        return f"Processed {inserted_count} loan offers, {error_count} errors"
    except Exception as e:
        logger.error(f"Loan offer ingestion failed: {e}")
        raise


@shared_task
def import_all_data():
    """
    Master task: Users → Loan offers (SEQUENTIAL)
    Offers reference lenders by email, so users must land first.
    """
    try:
        logger.info("=== STARTING SEED DATA IMPORT ===")

        logger.info("STEP 1: Importing users...")
        user_result = ingest_users(settings.SEED_USERS_FILE)
        logger.info(f"USER IMPORT: {user_result}")

        logger.info("STEP 2: Importing loan offers...")
        offer_result = ingest_loan_offers(settings.SEED_OFFERS_FILE)
        logger.info(f"LOAN OFFER IMPORT: {offer_result}")

        logger.info("=== SEED DATA IMPORT COMPLETED SUCCESSFULLY ===")
        return {
            "users": user_result,
            "loan_offers": offer_result,
        }

    except Exception as e:
        logger.error(f"Seed data import failed: {e}")
        raise
