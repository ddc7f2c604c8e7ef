"""Translation lookup.

Texts are kept per locale in flat ``{key: text}`` tables. A lookup tries the
current locale, then the default locale, then gives up and returns the key
itself so a missing translation shows up on screen instead of failing.

Texts may carry positional placeholders ``{0}``, ``{1}``...; placeholders
without a matching argument are left as they are.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from glimlach.browser import KeyValueStore

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES: Tuple[str, ...] = ("pl", "nl", "en")
LOCALE_STORAGE_KEY = "language"

_PLACEHOLDER = re.compile(r"\{(\d+)\}")

Translations = Mapping[str, Mapping[str, str]]

DEFAULT_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "pl": {
        "formStepOf": "Krok {0} z {1}",
        "formNext": "Dalej",
        "formBack": "Wstecz",
        "formSubmit": "Wyślij",
        "formSubmitting": "Wysyłanie...",
        "formSuccess": "Dziękujemy! Formularz został wysłany.",
        "formError": "Nie udało się wysłać formularza. Spróbuj ponownie.",
        "formRequired": "To pole jest wymagane",
        "rsvpStep1": "Dane opiekuna",
        "rsvpStep2": "Dane dziecka",
        "rsvpStep3": "Wydarzenie i zgody",
        "rsvpStep4": "Podsumowanie",
        "volunteerFormFullName": "Imię i nazwisko",
        "volunteerFormCity": "Miasto",
        "volunteerFormAvailability": "Dostępność",
        "volunteerSuccess": "Dziękujemy za zgłoszenie!",
    },
    "nl": {
        "formStepOf": "Stap {0} van {1}",
        "formNext": "Volgende",
        "formBack": "Terug",
        "formSubmit": "Versturen",
        "formSubmitting": "Bezig met versturen...",
        "formSuccess": "Bedankt! Het formulier is verzonden.",
        "formError": "Het formulier kon niet worden verzonden. Probeer het opnieuw.",
        "formRequired": "Dit veld is verplicht",
        "rsvpStep1": "Gegevens ouder/voogd",
        "rsvpStep2": "Gegevens kind",
        "rsvpStep3": "Evenement en toestemmingen",
        "rsvpStep4": "Overzicht",
        "volunteerFormFullName": "Volledige naam",
        "volunteerFormCity": "Stad",
        "volunteerFormAvailability": "Beschikbaarheid",
    },
    "en": {
        "formStepOf": "Step {0} of {1}",
        "formNext": "Next",
        "formBack": "Back",
        "formSubmit": "Send",
        "formSubmitting": "Sending...",
        "formSuccess": "Thank you! The form has been sent.",
        "formError": "The form could not be sent. Please try again.",
        "formRequired": "This field is required",
        "rsvpStep1": "Guardian details",
        "rsvpStep2": "Child details",
        "rsvpStep3": "Event and consents",
        "rsvpStep4": "Summary",
        "volunteerFormFullName": "Full name",
        "volunteerFormCity": "City",
        "volunteerFormAvailability": "Availability",
    },
}


def interpolate(text: str, args: Tuple[Any, ...]) -> str:
    """Replace ``{n}`` with ``args[n]``.

    Examples:
        >>> interpolate("Step {0} of {1}", (2, 4))
        'Step 2 of 4'
        >>> interpolate("Hello {0} and {1}", ("Ana",))
        'Hello Ana and {1}'
    """
    def substitute(match: "re.Match[str]") -> str:
        index = int(match.group(1))
        if index < len(args):
            return str(args[index])
        return match.group(0)

    return _PLACEHOLDER.sub(substitute, text)


class Translator:
    """Looks up display texts for the current locale.

    Attributes:
        translations: ``{locale: {key: text}}``
        default_locale: Locale consulted when the current one lacks a key
        store: Optional persistence for the chosen locale

    Examples:
        >>> translator = Translator(DEFAULT_TRANSLATIONS, locale="en")
        >>> translator.translate("formStepOf", 1, 4)
        'Step 1 of 4'
        >>> translator.translate("noSuchKey")
        'noSuchKey'
    """

    def __init__(
        self,
        translations: Translations = DEFAULT_TRANSLATIONS,
        locale: str = "nl",
        default_locale: str = "pl",
        store: Optional[KeyValueStore] = None,
    ):
        self.translations = translations
        self.default_locale = default_locale
        self.store = store

        stored = store.get(LOCALE_STORAGE_KEY) if store is not None else None
        if stored is not None and stored in translations:
            locale = stored
        elif stored is not None:
            logger.warning(f"Ignoring stored locale '{stored}'")
        self._locale = locale

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def locales(self) -> Tuple[str, ...]:
        return tuple(self.translations)

    def set_locale(self, locale: str) -> None:
        """Switch locale and persist the choice.

        Raises:
            ValueError: If there is no translation table for ``locale``
        """
        if locale not in self.translations:
            raise ValueError(
                f"Unsupported locale '{locale}', expected one of: {', '.join(self.translations)}"
            )
        self._locale = locale
        if self.store is not None:
            self.store.set(LOCALE_STORAGE_KEY, locale)

    def _lookup(self, key: str) -> Optional[str]:
        for locale in (self._locale, self.default_locale):
            text = self.translations.get(locale, {}).get(key)
            if text:
                return text
        return None

    def translate(self, key: str, *args: Any) -> str:
        """Text for ``key`` in the current locale, with ``{n}`` placeholders filled."""
        text = self._lookup(key)
        if text is None:
            logger.debug(f"Missing translation for '{key}' ({self._locale})")
            text = key
        if args:
            return interpolate(text, args)
        return text

    __call__ = translate


__all__ = [
    "SUPPORTED_LOCALES",
    "LOCALE_STORAGE_KEY",
    "DEFAULT_TRANSLATIONS",
    "Translations",
    "interpolate",
    "Translator",
]
