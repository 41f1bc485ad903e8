"""
Mental Health ROI — Error Taxonomy

Validation errors block the requested computation and are reported inline.
Persistence errors are transient and leave in-memory form state untouched.
Nothing here is fatal to the process.
"""


class RoiError(Exception):
    """Base class for every error raised by the engines."""


class ValidationError(RoiError):
    """A required input is missing or invalid for the requested calculation."""


class DerivedFieldError(ValidationError):
    def __init__(self, form_type, field):
        super().__init__(f"Field '{field}' in form {form_type} is calculated and cannot be edited")
        self.form_type = form_type
        self.field = field


class UnknownFormError(ValidationError):
    def __init__(self, form_type):
        super().__init__(f"Unknown form type '{form_type}'")
        self.form_type = form_type


class StoreUnavailable(RoiError):
    """The document store could not be reached or its contents could not be read."""
