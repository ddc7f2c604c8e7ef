"""Request models for the relay endpoints"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class MailRequest(BaseModel):
    """Body of ``/api/send-mail``: the form id and its submitted values"""
    type: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def submitter_email(self) -> Optional[str]:
        email = (self.payload or {}).get("email")
        if isinstance(email, str) and email.strip():
            return email.strip()
        return None


class VolunteerApplication(BaseModel):
    """Body of ``/api/volunteer``: the volunteer form's flat field mapping"""
    model_config = ConfigDict(extra="allow")

    fullName: Optional[str] = None
    age: Any = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    availability: Optional[str] = None
    roles: List[str] = []
    otherRole: Optional[str] = None
    experience: Optional[str] = None
    consentEvents: bool = False
    consentRODO: bool = False
    consentNewsletter: bool = False

    def is_complete(self) -> bool:
        """Name, city and availability are required, plus an email or a phone number."""
        def present(value: Optional[str]) -> bool:
            return bool(value and value.strip())

        return (
            present(self.fullName)
            and present(self.city)
            and (present(self.email) or present(self.phone))
            and present(self.availability)
        )


class CheckoutRequest(BaseModel):
    """Body of ``/api/checkout``; ``amount`` is checked by the endpoint"""
    amount: Any = None
    locale: Optional[str] = None

    def valid_amount(self) -> Optional[float]:
        amount = self.amount
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            return None
        if not amount > 0:
            return None
        return float(amount)
