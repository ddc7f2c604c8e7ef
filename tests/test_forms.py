"""Unit tests for the form catalog.

Tests cover:
- Every catalog form builds and is reachable by id
- Step layout and required fields of the RSVP and volunteer forms
- Strict checkbox rule on consent fields
- Walking each form from start to the last step
"""

import pytest

from glimlach import engine
from glimlach.errors import StepNotValidError
from glimlach.forms import (
    SCHEMA_BUILDERS,
    book_event_schema,
    form_ids,
    get_schema,
    rsvp_schema,
    volunteer_schema,
)
from glimlach.types import FieldKind

# Minimal values that satisfy every required field of a catalog form
COMPLETE_VALUES = {
    "rsvp": {
        "guardianName": "Ewa Nowak",
        "email": "ewa@example.org",
        "phone": "+31 6 1234 5678",
        "childName": "Tomek",
        "childAge": "8",
        "disabilityType": "sensory",
        "consentParticipation": True,
        "consentFirstAid": True,
        "consentRODO": True,
        "consentPhoto": "group",
    },
    "volunteer": {
        "fullName": "Ana Kowalska",
        "age": "27",
        "city": "Utrecht",
        "email": "ana@example.org",
        "consentEvents": True,
        "consentRODO": True,
    },
    "book_event": {
        "entityName": "Gemeente Utrecht",
        "nipKvk": "12345678",
        "contactPerson": "Jan de Vries",
        "email": "jan@utrecht.nl",
        "phone": "030 000 0000",
        "city": "Utrecht",
        "proposedDate": "2025-09-14",
        "consent": True,
    },
    "sponsor": {"companyName": "Bakkerij Jansen", "email": "info@jansen.nl", "phone": "010 123 4567"},
    "quick_donate": {"amount": "20", "category": "dzieci", "name": "Piotr"},
    "donation_in_kind": {
        "items": frozenset({"toys", "clothes"}),
        "city": "Rotterdam",
        "delivery": "drop_off",
        "email": "piotr@example.org",
    },
    "donation_checkout": {"amount": "50"},
    "contact": {"name": "Ola", "email": "ola@example.org", "subject": "Pytanie", "message": "Dzień dobry!"},
}


def fill(state, values):
    for field_id, value in values.items():
        state = engine.set_field_value(state, field_id, value)
    return state


class TestCatalog:
    """Test the catalog registry."""

    def test_all_forms_build(self):
        for form_id in form_ids():
            schema = get_schema(form_id)
            assert schema.form_id == form_id
            assert schema.step_count >= 1

    def test_unknown_form(self):
        with pytest.raises(KeyError, match="newsletter"):
            get_schema("newsletter")

    def test_get_schema_returns_same_instance(self):
        assert get_schema("rsvp") is get_schema("rsvp")

    def test_every_form_has_complete_values(self):
        assert set(COMPLETE_VALUES) == set(SCHEMA_BUILDERS)

    def test_every_form_can_be_walked_to_the_end(self):
        """Filling the required fields lets each form reach its last step and submit."""
        for form_id, values in COMPLETE_VALUES.items():
            state = fill(engine.initialize(get_schema(form_id)), values)
            while not state.is_last_step:
                state = engine.advance(state)
            assert engine.can_submit(state), form_id
            assert engine.build_payload(state).form_id == form_id


class TestRsvpForm:
    """Test the RSVP form layout."""

    def test_four_steps(self):
        assert [s.id for s in rsvp_schema().steps] == ["guardian", "child", "event", "summary"]

    def test_event_id_prefilled(self):
        state = engine.initialize(rsvp_schema(event_id="evt-utrecht-2025"))
        assert state.values["eventId"] == "evt-utrecht-2025"
        assert state.values["extraGuests"] == "0"

    def test_step_titles_are_translation_keys(self):
        assert [s.title_key for s in rsvp_schema().steps] == ["rsvpStep1", "rsvpStep2", "rsvpStep3", "rsvpStep4"]

    def test_unchecked_consent_blocks_event_step(self):
        values = {k: v for k, v in COMPLETE_VALUES["rsvp"].items() if k != "consentFirstAid"}
        state = fill(engine.initialize(rsvp_schema()), values)
        state = engine.advance(engine.advance(state))
        with pytest.raises(StepNotValidError) as exc_info:
            engine.advance(state)
        assert exc_info.value.missing_fields == ["consentFirstAid"]

    def test_disability_type_is_restricted(self):
        schema = rsvp_schema()
        assert schema.get_field("disabilityType").kind is FieldKind.SINGLE_SELECT
        assert "other" in schema.get_field("disabilityType").options


class TestVolunteerForm:
    """Test the per-channel volunteer form."""

    def test_email_channel_requires_email(self):
        required = volunteer_schema("email").steps[0].required_field_ids
        assert "email" in required
        assert "phone" not in required

    def test_whatsapp_channel_requires_phone(self):
        required = volunteer_schema("whatsapp").steps[0].required_field_ids
        assert "phone" in required
        assert "email" not in required

    def test_unknown_channel(self):
        with pytest.raises(ValueError, match="telegram"):
            volunteer_schema("telegram")

    def test_availability_default(self):
        state = engine.initialize(volunteer_schema())
        assert state.values["availability"] == "weekendy"
        assert state.values["roles"] == frozenset()

    def test_newsletter_is_optional(self):
        schema = volunteer_schema()
        assert "consentNewsletter" not in schema.steps[-1].required_field_ids


class TestBookEventForm:
    """Test the event booking form."""

    def test_proposed_date_must_be_a_date(self):
        from glimlach.errors import InvalidFieldValueError

        state = engine.initialize(book_event_schema())
        with pytest.raises(InvalidFieldValueError):
            engine.set_field_value(state, "proposedDate", "sometime in May")
        assert engine.set_field_value(state, "proposedDate", "2025-05-17").values["proposedDate"] == "2025-05-17"

    @pytest.mark.parametrize("value", ["2024", "2024-W01", "20240720"])
    def test_proposed_date_rejects_other_iso_forms(self, value):
        from glimlach.errors import InvalidFieldValueError

        state = engine.initialize(book_event_schema())
        with pytest.raises(InvalidFieldValueError):
            engine.set_field_value(state, "proposedDate", value)
