"""
Report generation for credits that ask for one at signup.
"""
from models.report import Report

# Placeholder values until the vehicle check API is wired in
STUB_REGISTRATION = 'ABC-1234'


def generate_report(credit_type):
    """Build an unsaved Report for a credit of `credit_type`."""
    # TODO: fetch registration and stolen status from the vehicle check API
    return Report(
        report_type=credit_type,
        registration=STUB_REGISTRATION,
        stolen=False,
    )


def build_credits(credit_requests, expires_at):
    """
    Turn signup credit requests into (credits, reports).

    Each request is a mapping with `creditType` and optional `generateReport`.
    A credit that asked for a report is linked to the Report built for it.
    Anything that is not a list yields no credits.
    """
    from models.credit import Credit

    credits, reports = [], []
    if not isinstance(credit_requests, list):
        return credits, reports

    for entry in credit_requests:
        if not isinstance(entry, dict):
            continue
        credit_type = entry.get('creditType')
        credit = Credit(credit_type=credit_type, expires_at=expires_at, has_report=False)
        if entry.get('generateReport') is True:
            report = generate_report(credit_type)
            reports.append(report)
            credit.has_report = True
            credit.report = report
        credits.append(credit)
    return credits, reports
