"""Test suite for the Glimlach step-form engine and submission relay.

This package contains tests for:
- Schema construction and field kind checks
- Step validation and the status state machine
- Engine operations (initialize, edit, navigate, submit)
- Relay clients against mocked HTTP transports
- The form catalog, translator and router
- The relay server endpoints
- Integration scenarios (complete RSVP and volunteer flows)
"""
