"""
Lead Normalizer
Cleans and validates one resolved row into a LeadCandidate, or rejects it.

Rows are never rejected for a bad email; the email is dropped instead.
"""
import re
from typing import Mapping, Optional, Union

from leadwave.domain.models.lead import LeadSource
from leadwave.domain.models.lead_import import LeadCandidate, RowError


MIN_PHONE_DIGITS = 10

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = {
    "first_name": "first name",
    "last_name": "last name",
    "phone": "phone",
}


def normalize_phone(raw: str) -> str:
    """Strip everything except digits"""
    return re.sub(r"\D", "", raw or "")


def normalize_email(raw: str) -> Optional[str]:
    """
    Lowercase and trim an email.

    Returns:
        The cleaned email, or None if empty or not shaped like local@domain.tld
    """
    email = (raw or "").strip().lower()
    if not email or not EMAIL_PATTERN.match(email):
        return None
    return email


class LeadNormalizer:
    """Turns resolved raw values into canonical lead candidates"""

    def __init__(
        self,
        default_lead_source: str = LeadSource.FILE.value,
        min_phone_digits: int = MIN_PHONE_DIGITS,
    ):
        self.default_lead_source = default_lead_source
        self.min_phone_digits = min_phone_digits

    def normalize(
        self,
        row_number: int,
        values: Mapping[str, str],
        company_id: str,
        campaign_id: Optional[str] = None,
    ) -> Union[LeadCandidate, RowError]:
        """
        Validate and normalize one row.

        Args:
            row_number: 1-based data row number used in error reports
            values: Output of FieldResolver.resolve
            company_id: Owning company of the import
            campaign_id: Campaign receiving the leads, if any

        Returns:
            LeadCandidate on success, RowError with a readable reason otherwise
        """
        first_name = (values.get("first_name") or "").strip()
        last_name = (values.get("last_name") or "").strip()
        phone = normalize_phone(values.get("phone", ""))

        present = {"first_name": first_name, "last_name": last_name, "phone": phone}
        missing = [label for name, label in REQUIRED_FIELDS.items() if not present[name]]
        if missing:
            return RowError(row=row_number, reason=f"Missing required field(s): {', '.join(missing)}")

        if len(phone) < self.min_phone_digits:
            return RowError(
                row=row_number,
                reason=f"Phone number must contain at least {self.min_phone_digits} digits",
            )

        return LeadCandidate(
            row=row_number,
            company_id=company_id,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            email=normalize_email(values.get("email", "")),
            alt_phone=normalize_phone(values.get("alt_phone", "")) or None,
            lead_source=(values.get("lead_source") or "").strip() or self.default_lead_source,
            tag=(values.get("tag") or "").strip() or None,
            platform=(values.get("platform") or "").strip() or None,
            activity=(values.get("activity") or "").strip() or None,
            campaign_id=campaign_id,
        )
