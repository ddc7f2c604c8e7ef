"""Glimlach step-form engine and submission relay.

The website of the Schenk een Glimlach foundation collects RSVPs, volunteer
applications, event bookings, sponsorship enquiries and donations through
multi-step forms. This package provides:
- A schema-driven step form engine with per-step required-field validation
- An explicit editing -> submitting -> submitted/failed lifecycle
- HTTP relay clients that forward finished submissions for email or payment
- The relay server those clients talk to
- Locale-aware translation lookup and page routing over injected collaborators

Basic usage:
    >>> from glimlach.controller import FormController
    >>> from glimlach.forms import get_schema
    >>> from glimlach.relay import MailRelay
    >>> controller = FormController(get_schema("contact"), MailRelay("http://localhost:5000"))
    >>> controller.set_field("name", "Ana").values["name"]
    'Ana'
"""

__version__ = "0.1.0"
__author__ = "Fundacja Schenk een Glimlach"

# Version info
VERSION = (0, 1, 0)

# Core exports
from glimlach.controller import FormController
from glimlach.forms import get_schema

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormController",
    "get_schema",
]
