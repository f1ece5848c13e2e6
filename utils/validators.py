"""
Input validation and normalization helpers.
Each check returns a plain bool or (is_valid, error) so routes can collect an
errors list and answer with the first one before touching the database.
"""
import re

# Longest values the users/credits columns hold
MAX_NAME_LENGTH = 100
MAX_CREDIT_TYPE_LENGTH = 50

EMAIL_RE = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$")
PHONE_SEPARATORS_RE = re.compile(r"[\s\-().]")
CARD_SEPARATORS_RE = re.compile(r"[\s-]")

MIN_PASSWORD_LENGTH = 8

GMAIL_DOMAINS = ('gmail.com', 'googlemail.com')
PLUS_TAG_DOMAINS = (
    'hotmail.com', 'hotmail.co.uk', 'live.com', 'outlook.com', 'msn.com',
    'icloud.com', 'me.com', 'mac.com',
)
YAHOO_DOMAINS = ('yahoo.com', 'yahoo.co.uk', 'ymail.com', 'rocketmail.com')


def validate_email(email):
    """Syntactic email check (no DNS lookup)."""
    if not email or not isinstance(email, str) or len(email) > 254:
        return False
    if not EMAIL_RE.match(email):
        return False
    local = email.rsplit('@', 1)[0]
    return len(local) <= 64 and not local.startswith('.') and not local.endswith('.') and '..' not in local


def normalize_email(email):
    """
    Canonicalize an email for equality comparison.

    Domain and local part are lowercased. Provider sub-address tags are removed
    (gmail/outlook/icloud "+tag", yahoo "-tag") and googlemail.com maps to
    gmail.com. Dots in the local part are always kept.
    Returns None for input that is not a valid address.
    """
    if not validate_email(email):
        return None
    local, domain = email.rsplit('@', 1)
    local = local.lower()
    domain = domain.lower()

    if domain in GMAIL_DOMAINS:
        local = local.split('+', 1)[0]
        domain = 'gmail.com'
    elif domain in PLUS_TAG_DOMAINS:
        local = local.split('+', 1)[0]
    elif domain in YAHOO_DOMAINS:
        local = local.split('-', 1)[0]

    normalized = f"{local}@{domain}"
    # Stripping a tag can leave an unusable local part such as "a."
    return normalized if validate_email(normalized) else None


def compact_phone(phone):
    """Phone number with separators removed, e.g. "+1 (415) 555-2671" -> "+14155552671"."""
    return PHONE_SEPARATORS_RE.sub('', phone.strip())


def is_mobile_phone(phone):
    """Loose international mobile check: optional '+', 10-15 digits."""
    if not phone or not isinstance(phone, str):
        return False
    compact = compact_phone(phone)
    if compact.startswith('+'):
        digits = compact[1:]
        if digits.startswith('0'):
            return False
    else:
        digits = compact
    return digits.isascii() and digits.isdigit() and 10 <= len(digits) <= 15


def luhn_checksum_ok(digits):
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def compact_card_number(number):
    """Card number with spaces and dashes removed."""
    return CARD_SEPARATORS_RE.sub('', str(number))


def is_credit_card(number):
    """Card number format (13-19 digits) plus Luhn checksum."""
    if number is None:
        return False
    compact = compact_card_number(number)
    if not compact.isascii() or not compact.isdigit() or not 13 <= len(compact) <= 19:
        return False
    return luhn_checksum_ok(compact)


def validate_password(password, min_length=MIN_PASSWORD_LENGTH,
                      message='Password must be at least 8 characters long'):
    """Length-only password rule. Returns (is_valid, error_message)."""
    if not password or not isinstance(password, str) or len(password) < min_length:
        return False, message
    return True, None
