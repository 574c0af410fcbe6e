"""
Exceptions and value validation helpers for FCB1010 data.
"""

from typing import Optional, Sequence


class FCBError(Exception):
    """Base class for fcbmanager errors."""

    pass


class ValidationError(FCBError):
    """Raised when a value fails validation."""

    pass


class ValueOutOfRange(ValidationError):
    """Raised when a structured edit falls outside the field's domain."""

    def __init__(self, field: str, value: int, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


class NotClean(FCBError):
    """Raised when an operation needs a synchronised buffer."""

    pass


class TransportError(FCBError):
    """Raised when the MIDI transport cannot deliver or open a port."""

    pass


class ConfigError(FCBError):
    """Raised when the configuration file cannot be used."""

    pass


def validate_device_number(device_number: int) -> None:
    """Validate the SysEx device number byte (0-127)."""
    if not 0 <= device_number <= 0x7F:
        raise ValidationError(f"Device number must be 0-127, got {device_number}")


def check_domain(
    name: str,
    value: int,
    minimum: int,
    maximum: int,
    choices: Optional[Sequence[int]] = None,
) -> None:
    """
    Check ``value`` against a field domain.

    Raises:
        ValueOutOfRange: If value is not an int inside the domain
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueOutOfRange(name, value, f"{name} must be an integer, got {value!r}")
    if choices is not None:
        if value not in choices:
            raise ValueOutOfRange(
                name, value, f"{name} must be one of {sorted(choices)}, got {value}"
            )
        return
    if not minimum <= value <= maximum:
        raise ValueOutOfRange(name, value, f"{name} must be {minimum}-{maximum}, got {value}")
