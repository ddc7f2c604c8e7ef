"""Unit tests for FormController.

Tests cover:
- State ownership and replacement
- Events emitted for every operation
- Double-submit protection while a submission is in flight
- Failure, retry and reset
"""

import asyncio

import pytest

from glimlach.controller import FormController
from glimlach.errors import StepNotValidError
from glimlach.events import EventEmitter
from glimlach.relay import RelayResult
from glimlach.schema import FieldDefinition, FormSchema, StepDefinition
from glimlach.state_machine import InvalidStateTransitionError
from glimlach.types import EventType, FieldKind, FormStatus


def make_schema() -> FormSchema:
    return FormSchema(
        form_id="volunteer",
        steps=(
            StepDefinition(
                id="personal",
                fields=(FieldDefinition("fullName", FieldKind.TEXT),),
                required_field_ids=("fullName",),
            ),
            StepDefinition(
                id="consents",
                fields=(FieldDefinition("consentRODO", FieldKind.BOOLEAN),),
                required_field_ids=("consentRODO",),
            ),
        ),
    )


class FakeRelay:
    def __init__(self, result=None):
        self.result = result or RelayResult(ok=True, data={"ok": True}, status_code=200)
        self.calls = []

    async def send(self, payload):
        self.calls.append(payload)
        return self.result


class GatedRelay(FakeRelay):
    """Relay whose response is held until ``release`` is set."""

    def __init__(self, result=None):
        super().__init__(result)
        self._release = None

    @property
    def release(self) -> asyncio.Event:
        # Created lazily so it binds to the running loop
        if self._release is None:
            self._release = asyncio.Event()
        return self._release

    async def send(self, payload):
        self.calls.append(payload)
        await self.release.wait()
        return self.result


def filled(controller: FormController) -> FormController:
    controller.set_field("fullName", "Ana Kowalska")
    controller.set_field("consentRODO", True)
    return controller


def recording(relay=None):
    emitter = EventEmitter()
    events = []
    emitter.on_any(events.append)
    controller = FormController(make_schema(), relay or FakeRelay(), emitter=emitter)
    return controller, events


class TestControllerState:
    """Test state handling."""

    def test_starts_initialized(self):
        controller = FormController(make_schema(), FakeRelay())
        assert controller.state.status is FormStatus.EDITING
        assert controller.values == {"fullName": "", "consentRODO": False}

    def test_set_field_replaces_state(self):
        controller = FormController(make_schema(), FakeRelay())
        before = controller.state
        after = controller.set_field("fullName", "Ana")
        assert after is controller.state
        assert after is not before
        assert before.values["fullName"] == ""

    def test_navigation(self):
        controller = FormController(make_schema(), FakeRelay())
        assert not controller.can_advance()
        assert not controller.can_retreat()
        controller.set_field("fullName", "Ana")
        assert controller.can_advance()
        controller.next_step()
        assert controller.state.current_step_index == 1
        assert controller.can_retreat()
        controller.previous_step()
        assert controller.state.current_step_index == 0

    def test_blocked_next_step_keeps_state(self):
        controller = FormController(make_schema(), FakeRelay())
        before = controller.state
        with pytest.raises(StepNotValidError):
            controller.next_step()
        assert controller.state is before

    def test_validate_current_step(self):
        controller = FormController(make_schema(), FakeRelay())
        assert controller.validate_current_step().missing_fields == ["fullName"]

    def test_reset(self):
        controller = filled(FormController(make_schema(), FakeRelay()))
        controller.reset()
        assert controller.values["fullName"] == ""
        assert controller.state.current_step_index == 0


class TestControllerEvents:
    """Test emitted events."""

    def test_initialized_event(self):
        _, events = recording()
        assert [e.type for e in events] == [EventType.FORM_INITIALIZED]
        assert events[0].form_id == "volunteer"

    def test_field_event_carries_field_id_only(self):
        controller, events = recording()
        controller.set_field("fullName", "Ana Kowalska")
        event = events[-1]
        assert event.type is EventType.FIELD_UPDATED
        assert event.payload == {"field": "fullName"}
        assert "Ana Kowalska" not in event.to_jsonl()

    def test_step_events(self):
        controller, events = recording()
        controller.set_field("fullName", "Ana")
        controller.next_step()
        controller.go_to_step(0)
        assert events[-2].type is EventType.STEP_ADVANCED
        assert events[-2].payload == {"from_step": 0, "to_step": 1}
        assert events[-1].type is EventType.STEP_RETREATED
        assert events[-1].step_index == 0

    def test_submission_events(self):
        controller, events = recording()
        filled(controller)
        asyncio.run(controller.submit())
        types = [e.type for e in events]
        assert types[-2:] == [EventType.SUBMISSION_STARTED, EventType.SUBMISSION_SUCCEEDED]
        assert events[-2].state is FormStatus.SUBMITTING
        assert events[-1].state is FormStatus.SUBMITTED

    def test_failure_event_has_reason(self):
        controller, events = recording(FakeRelay(RelayResult.failure("Brak wymaganych pól")))
        filled(controller)
        asyncio.run(controller.submit())
        assert events[-1].type is EventType.SUBMISSION_FAILED
        assert events[-1].payload == {"reason": "Brak wymaganych pól"}

    def test_incomplete_submit_emits_failure_without_started(self):
        controller, events = recording()
        asyncio.run(controller.submit())
        types = [e.type for e in events]
        assert EventType.SUBMISSION_STARTED not in types
        assert types[-1] is EventType.SUBMISSION_FAILED


class TestControllerSubmit:
    """Test submission through the controller."""

    def test_success(self):
        relay = FakeRelay()
        controller = filled(FormController(make_schema(), relay))
        state = asyncio.run(controller.submit())
        assert state.status is FormStatus.SUBMITTED
        assert controller.state is state
        assert len(relay.calls) == 1

    def test_double_submit_calls_relay_once(self):
        """A second submit while the first is in flight is a no-op."""
        relay = GatedRelay()
        controller = filled(FormController(make_schema(), relay))

        async def scenario():
            first = asyncio.create_task(controller.submit())
            await asyncio.sleep(0)
            assert controller.state.status is FormStatus.SUBMITTING
            second = await controller.submit()
            assert second.status is FormStatus.SUBMITTING
            relay.release.set()
            return await first

        final = asyncio.run(scenario())
        assert final.status is FormStatus.SUBMITTED
        assert len(relay.calls) == 1

    def test_concurrent_submits_with_gather(self):
        relay = GatedRelay()
        controller = filled(FormController(make_schema(), relay))

        async def scenario():
            async def release_later():
                await asyncio.sleep(0)
                relay.release.set()

            return await asyncio.gather(controller.submit(), controller.submit(), release_later())

        asyncio.run(scenario())
        assert len(relay.calls) == 1
        assert controller.state.status is FormStatus.SUBMITTED

    def test_edits_rejected_while_submitting(self):
        relay = GatedRelay()
        controller = filled(FormController(make_schema(), relay))

        async def scenario():
            task = asyncio.create_task(controller.submit())
            await asyncio.sleep(0)
            with pytest.raises(InvalidStateTransitionError):
                controller.set_field("fullName", "Ola")
            relay.release.set()
            await task

        asyncio.run(scenario())
        assert controller.values["fullName"] == "Ana Kowalska"

    def test_submit_after_success_is_noop(self):
        relay = FakeRelay()
        controller = filled(FormController(make_schema(), relay))
        asyncio.run(controller.submit())
        asyncio.run(controller.submit())
        assert len(relay.calls) == 1

    def test_retry_after_failure(self):
        relay = FakeRelay(RelayResult.failure())
        controller = filled(FormController(make_schema(), relay))
        assert asyncio.run(controller.submit()).status is FormStatus.FAILED
        relay.result = RelayResult(ok=True, data={"ok": True})
        assert asyncio.run(controller.submit()).status is FormStatus.SUBMITTED
        assert len(relay.calls) == 2

    def test_reset_while_submitting_keeps_fresh_session(self):
        """A result arriving after reset does not replace the new session."""
        relay = GatedRelay()
        emitter = EventEmitter()
        events = []
        emitter.on_any(events.append)
        controller = filled(FormController(make_schema(), relay, emitter=emitter))

        async def scenario():
            first = asyncio.create_task(controller.submit())
            await asyncio.sleep(0)
            assert controller.state.status is FormStatus.SUBMITTING
            controller.reset()
            relay.release.set()
            return await first

        returned = asyncio.run(scenario())
        assert controller.state.status is FormStatus.EDITING
        assert controller.state.values["fullName"] == ""
        assert returned is controller.state
        assert len(relay.calls) == 1
        assert events[-1].type is EventType.FORM_INITIALIZED

    def test_submit_after_reset_during_submission(self):
        relay = GatedRelay()
        controller = filled(FormController(make_schema(), relay))

        async def scenario():
            first = asyncio.create_task(controller.submit())
            await asyncio.sleep(0)
            controller.reset()
            relay.release.set()
            await first
            filled(controller)
            return await controller.submit()

        assert asyncio.run(scenario()).status is FormStatus.SUBMITTED
        assert len(relay.calls) == 2
