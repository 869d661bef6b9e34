MIN_SCORE = 300
MAX_SCORE = 850

ADMIN_BASE_SCORE = 700
POINTS_PER_PAYMENT_EVENT = 5
POINTS_PER_APPROVED_LOAN = 20

BORROWER_BASE_SCORE = 650
POINTS_PER_ONTIME_PAYMENT = 5
POINTS_PER_LATE_PAYMENT = 10


def clamp_score(score):
    return min(max(score, MIN_SCORE), MAX_SCORE)


def score_for_admin(applications, payment_records):
    """
    Score shown in the admin borrower overview.

    applications: mappings with a "status" key.
    payment_records: mappings with a "payments" sequence of entries.
    """
    score = ADMIN_BASE_SCORE

    # Factor i: every recorded repayment counts, whatever its size
    total_payment_events = sum(len(record.get("payments") or []) for record in payment_records)
    score += total_payment_events * POINTS_PER_PAYMENT_EVENT

    # Factor ii: approved loans
    approved_count = sum(1 for app in applications if app.get("status") == "approved")
    score += approved_count * POINTS_PER_APPROVED_LOAN

    return clamp_score(score)


def score_for_borrower(payment_entries):
    """
    Score shown to the borrower. Entries are classified by their "status"
    key ("ontime" / "late"); stored payment entries have no such key, so
    real histories score the base value.
    """
    score = BORROWER_BASE_SCORE

    on_time = sum(1 for entry in payment_entries if entry.get("status") == "ontime")
    score += on_time * POINTS_PER_ONTIME_PAYMENT

    late = sum(1 for entry in payment_entries if entry.get("status") == "late")
    score -= late * POINTS_PER_LATE_PAYMENT

    return clamp_score(score)
