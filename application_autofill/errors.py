"""Exceptions raised by the autofill engine."""


class AutofillError(Exception):
    """Base class for autofill failures that abort a pass."""


class ProfileError(AutofillError):
    """The candidate profile could not be parsed."""


class OptionsError(AutofillError):
    """The options bag passed to the bridge is invalid."""
