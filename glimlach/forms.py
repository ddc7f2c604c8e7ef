"""Schemas for every form on the Glimlach website.

Each public builder returns a FormSchema; ``get_schema(form_id)`` returns the
default variant by id. Required boolean fields (consents) must be ticked:
an unchecked required checkbox blocks its step.

Forms:
    rsvp               4 steps: guardian, child, event and consents, summary
    volunteer          3 steps; the contact channel decides whether email or phone is required
    book_event         4 steps: organisation, contact, event details, consent
    sponsor            1 step
    quick_donate       1 step
    donation_in_kind   2 steps: items, contact
    donation_checkout  1 step; sent to the payment relay
    contact            1 step
"""

from typing import Callable, Dict, Tuple

from glimlach.schema import FieldDefinition as Field
from glimlach.schema import FormSchema, StepDefinition
from glimlach.types import FieldKind as K

DISABILITY_TYPES = ("physical", "sensory", "intellectual", "other")
PHOTO_CONSENT = ("full", "group", "none")
VOLUNTEER_AVAILABILITY = ("weekendy", "dni powszednie", "elastycznie")
VOLUNTEER_ROLES = ("animation", "logistics", "first_aid", "photo", "other")
VOLUNTEER_CHANNELS = ("email", "whatsapp")
ENTITY_TYPES = ("municipality", "school", "foundation", "company", "other")
VENUE_TYPES = ("indoor", "outdoor", "mixed")
FUNDING_SOURCES = ("municipal_budget", "grant", "sponsor", "own_funds", "other")
SPONSOR_PACKAGES = ("bronze", "silver", "gold", "city_partner")
DONATION_CATEGORIES = ("dzieci", "mamy", "zwierzęta")
IN_KIND_ITEMS = ("clothes", "toys", "school_supplies", "hygiene", "pet_food", "pet_accessories", "other")
DELIVERY_OPTIONS = ("drop_off", "pickup", "courier")


def rsvp_schema(event_id: str = "") -> FormSchema:
    """RSVP wizard for one event; ``event_id`` pre-fills the hidden event field."""
    return FormSchema(
        form_id="rsvp",
        steps=(
            StepDefinition(
                id="guardian",
                title_key="rsvpStep1",
                fields=(
                    Field("guardianName", K.TEXT, label_key="rsvpParentName"),
                    Field("email", K.EMAIL, label_key="rsvpEmail"),
                    Field("phone", K.PHONE, label_key="rsvpPhone"),
                    Field("address", K.TEXT, label_key="rsvpAddress"),
                ),
                required_field_ids=("guardianName", "email", "phone"),
            ),
            StepDefinition(
                id="child",
                title_key="rsvpStep2",
                fields=(
                    Field("childName", K.TEXT, label_key="rsvpChildName"),
                    Field("childAge", K.NUMBER, label_key="rsvpChildAge"),
                    Field("disabilityType", K.SINGLE_SELECT, options=DISABILITY_TYPES,
                          label_key="rsvpDisabilityType"),
                    Field("disabilityOther", K.TEXT),
                    Field("needsWheelchair", K.BOOLEAN),
                    Field("needsQuietZone", K.BOOLEAN),
                    Field("needsSignLanguage", K.BOOLEAN),
                    Field("needsAssistant", K.BOOLEAN),
                    Field("needsOtherCheck", K.BOOLEAN),
                    Field("needsOtherText", K.TEXT),
                    Field("allergies", K.FREE_TEXT),
                    Field("meds", K.FREE_TEXT),
                    Field("iceContact", K.TEXT),
                ),
                required_field_ids=("childName", "childAge", "disabilityType"),
            ),
            StepDefinition(
                id="event",
                title_key="rsvpStep3",
                fields=(
                    Field("eventId", K.TEXT, default_value=event_id),
                    Field("arrivalTime", K.TEXT),
                    Field("extraGuests", K.NUMBER, default_value="0"),
                    Field("consentParticipation", K.BOOLEAN),
                    Field("consentFirstAid", K.BOOLEAN),
                    Field("consentRODO", K.BOOLEAN),
                    Field("consentPhoto", K.SINGLE_SELECT, options=PHOTO_CONSENT),
                    Field("needsToEnjoy", K.FREE_TEXT),
                    Field("newsletter", K.BOOLEAN),
                ),
                required_field_ids=(
                    "consentParticipation",
                    "consentFirstAid",
                    "consentRODO",
                    "consentPhoto",
                ),
            ),
            StepDefinition(id="summary", title_key="rsvpStep4"),
        ),
    )


def volunteer_schema(channel: str = "email") -> FormSchema:
    """Volunteer application.

    The email variant requires an email address, the WhatsApp variant a
    phone number; the other contact field stays optional.
    """
    if channel not in VOLUNTEER_CHANNELS:
        raise ValueError(f"Unknown volunteer channel '{channel}'")
    contact_field = "email" if channel == "email" else "phone"
    return FormSchema(
        form_id="volunteer",
        steps=(
            StepDefinition(
                id="personal",
                fields=(
                    Field("fullName", K.TEXT, label_key="volunteerFormFullName"),
                    Field("age", K.NUMBER, label_key="volunteerFormAge"),
                    Field("city", K.TEXT, label_key="volunteerFormCity"),
                    Field("phone", K.PHONE),
                    Field("email", K.EMAIL),
                ),
                required_field_ids=("fullName", "age", "city", contact_field),
            ),
            StepDefinition(
                id="availability",
                fields=(
                    Field("availability", K.SINGLE_SELECT, default_value="weekendy",
                          options=VOLUNTEER_AVAILABILITY, label_key="volunteerFormAvailability"),
                    Field("roles", K.MULTI_SELECT, options=VOLUNTEER_ROLES),
                    Field("otherRole", K.FREE_TEXT),
                    Field("experience", K.FREE_TEXT, label_key="volunteerFormExperience"),
                ),
                required_field_ids=("availability",),
            ),
            StepDefinition(
                id="consents",
                fields=(
                    Field("consentEvents", K.BOOLEAN, label_key="volunteerFormConsentEvents"),
                    Field("consentRODO", K.BOOLEAN, label_key="volunteerFormConsentRODO"),
                    Field("consentNewsletter", K.BOOLEAN, label_key="volunteerFormConsentNewsletter"),
                ),
                required_field_ids=("consentEvents", "consentRODO"),
            ),
        ),
    )


def book_event_schema() -> FormSchema:
    """Request for the charity to run an event (municipalities, schools, companies)."""
    return FormSchema(
        form_id="book_event",
        steps=(
            StepDefinition(
                id="organisation",
                fields=(
                    Field("entityType", K.SINGLE_SELECT, options=ENTITY_TYPES, label_key="rfpEntityType"),
                    Field("entityName", K.TEXT, label_key="rfpEntityName"),
                    Field("nipKvk", K.TEXT, label_key="rfpNipKvk"),
                ),
                required_field_ids=("entityName", "nipKvk"),
            ),
            StepDefinition(
                id="contact",
                fields=(
                    Field("contactPerson", K.TEXT, label_key="rfpContactPerson"),
                    Field("email", K.EMAIL, label_key="rfpEmail"),
                    Field("phone", K.PHONE, label_key="rfpPhone"),
                    Field("whatsapp", K.PHONE, label_key="rfpWhatsApp"),
                ),
                required_field_ids=("contactPerson", "email", "phone"),
            ),
            StepDefinition(
                id="details",
                fields=(
                    Field("city", K.TEXT, label_key="rfpCity"),
                    Field("proposedDate", K.DATE, label_key="rfpProposedDate"),
                    Field("alternativeDates", K.TEXT, label_key="rfpAlternativeDates"),
                    Field("venueAddress", K.TEXT, label_key="rfpVenueAddress"),
                    Field("venueType", K.SINGLE_SELECT, options=VENUE_TYPES, label_key="rfpVenueType"),
                    Field("electricityAccess", K.BOOLEAN, label_key="rfpElectricityAccess"),
                    Field("participants", K.NUMBER, label_key="rfpParticipants"),
                    Field("accessibilityNeeds", K.TEXT, label_key="rfpAccessibilityNeeds"),
                    Field("budget", K.TEXT, label_key="rfpBudget"),
                    Field("fundingSource", K.SINGLE_SELECT, options=FUNDING_SOURCES,
                          label_key="rfpFundingSource"),
                ),
                required_field_ids=("city", "proposedDate"),
            ),
            StepDefinition(
                id="consent",
                fields=(Field("consent", K.BOOLEAN, label_key="rfpConsent"),),
                required_field_ids=("consent",),
            ),
        ),
    )


def sponsor_schema() -> FormSchema:
    return FormSchema(
        form_id="sponsor",
        steps=(
            StepDefinition(
                id="enquiry",
                fields=(
                    Field("companyName", K.TEXT),
                    Field("contactPerson", K.TEXT),
                    Field("email", K.EMAIL, label_key="sponsorsFormEmail"),
                    Field("phone", K.PHONE, label_key="sponsorsFormPhone"),
                    Field("package", K.SINGLE_SELECT, options=SPONSOR_PACKAGES),
                    Field("message", K.FREE_TEXT),
                ),
                required_field_ids=("companyName", "email", "phone"),
            ),
        ),
    )


def quick_donate_schema() -> FormSchema:
    """Pledge form on the help page; the email is optional, as on the site."""
    return FormSchema(
        form_id="quick_donate",
        steps=(
            StepDefinition(
                id="donation",
                fields=(
                    Field("amount", K.NUMBER, label_key="pomocQuickDonateAmount"),
                    Field("category", K.SINGLE_SELECT, options=DONATION_CATEGORIES,
                          label_key="pomocQuickDonateCategory"),
                    Field("name", K.TEXT, label_key="pomocQuickDonateName"),
                    Field("email", K.EMAIL, label_key="pomocQuickDonateEmail"),
                ),
                required_field_ids=("amount", "category", "name"),
            ),
        ),
    )


def donation_in_kind_schema() -> FormSchema:
    return FormSchema(
        form_id="donation_in_kind",
        steps=(
            StepDefinition(
                id="items",
                fields=(
                    Field("items", K.MULTI_SELECT, options=IN_KIND_ITEMS),
                    Field("otherItems", K.TEXT, label_key="pomocInKindOtherPlaceholder"),
                    Field("description", K.FREE_TEXT),
                ),
                required_field_ids=("items",),
            ),
            StepDefinition(
                id="contact",
                fields=(
                    Field("city", K.TEXT, label_key="pomocInKindCity"),
                    Field("delivery", K.SINGLE_SELECT, options=DELIVERY_OPTIONS,
                          label_key="pomocInKindDelivery"),
                    Field("email", K.EMAIL, label_key="pomocInKindEmail"),
                    Field("phone", K.PHONE, label_key="pomocInKindPhone"),
                ),
                required_field_ids=("city", "delivery", "email"),
            ),
        ),
    )


def donation_checkout_schema() -> FormSchema:
    """Amount picker for an online payment (preset buttons or a custom amount)."""
    return FormSchema(
        form_id="donation_checkout",
        steps=(
            StepDefinition(
                id="amount",
                fields=(Field("amount", K.NUMBER),),
                required_field_ids=("amount",),
            ),
        ),
    )


def contact_schema() -> FormSchema:
    return FormSchema(
        form_id="contact",
        steps=(
            StepDefinition(
                id="message",
                fields=(
                    Field("name", K.TEXT),
                    Field("email", K.EMAIL),
                    Field("subject", K.TEXT),
                    Field("message", K.FREE_TEXT),
                ),
                required_field_ids=("name", "email", "subject", "message"),
            ),
        ),
    )


SCHEMA_BUILDERS: Dict[str, Callable[[], FormSchema]] = {
    "rsvp": rsvp_schema,
    "volunteer": volunteer_schema,
    "book_event": book_event_schema,
    "sponsor": sponsor_schema,
    "quick_donate": quick_donate_schema,
    "donation_in_kind": donation_in_kind_schema,
    "donation_checkout": donation_checkout_schema,
    "contact": contact_schema,
}

_CACHE: Dict[str, FormSchema] = {}


def form_ids() -> Tuple[str, ...]:
    return tuple(SCHEMA_BUILDERS)


def get_schema(form_id: str) -> FormSchema:
    """Return the default schema for ``form_id``.

    Raises:
        KeyError: If no form with that id exists
    """
    if form_id not in SCHEMA_BUILDERS:
        raise KeyError(f"Unknown form '{form_id}'")
    if form_id not in _CACHE:
        _CACHE[form_id] = SCHEMA_BUILDERS[form_id]()
    return _CACHE[form_id]


__all__ = [
    "rsvp_schema",
    "volunteer_schema",
    "book_event_schema",
    "sponsor_schema",
    "quick_donate_schema",
    "donation_in_kind_schema",
    "donation_checkout_schema",
    "contact_schema",
    "SCHEMA_BUILDERS",
    "form_ids",
    "get_schema",
]
