"""Exceptions raised by the electronic delivery pipeline."""


class DeliveryError(Exception):
    """Base class for delivery export errors."""


class SequenceNumberError(DeliveryError, ValueError):
    """Sequence number is not a usable integer."""


class SequenceOverflowError(SequenceNumberError):
    """Sequence number left the 1..9999999 range."""


class ExportRequestError(DeliveryError):
    """Export request rejected before any pipeline stage ran."""
