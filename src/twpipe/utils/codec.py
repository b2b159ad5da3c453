"""
Hyperparameter Codec

Single encode/decode pair for the unsigned integer scalars stored in model
artifacts, plus the coercion used for values coming from configuration.
"""

from typing import Any, Optional

from ..errors import CorruptModelArtifact, InvalidHyperparameter

# persisted scalars are unsigned 32-bit integers
UINT_MAX = 2 ** 32 - 1
UINT_DIGITS = len(str(UINT_MAX))


def encode_uint(value: int) -> str:
    """
    Encode an unsigned integer as artifact text.

    Args:
        value: Non-negative integer

    Returns:
        Decimal string representation

    Raises:
        InvalidHyperparameter: If value is not a non-negative int
    """
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT_MAX:
        raise InvalidHyperparameter("cannot encode value as unsigned 32-bit integer", actual=value)
    return str(value)


def decode_uint(text: Any, stage: Optional[str] = None, field: Optional[str] = None) -> int:
    """
    Decode an unsigned integer read from a model artifact.

    Args:
        text: Stored value
        stage: Stage namespace, for error reporting
        field: Field name, for error reporting

    Returns:
        Decoded integer

    Raises:
        CorruptModelArtifact: If the value is not a string of ASCII digits or
            exceeds the unsigned 32-bit range
    """
    if not isinstance(text, str) or not text or not (text.isascii() and text.isdigit()):
        raise CorruptModelArtifact("malformed unsigned integer in artifact",
                                   stage=stage, field=field, actual=text)
    if len(text) > UINT_DIGITS or int(text) > UINT_MAX:
        raise CorruptModelArtifact("unsigned integer out of range in artifact",
                                   stage=stage, field=field, actual=text[:UINT_DIGITS + 1])
    return int(text)


def coerce_uint(value: Any, stage: Optional[str] = None, field: Optional[str] = None) -> int:
    """
    Coerce a configuration value to an unsigned integer.

    Missing values (``None``) become 0; "never supplied" and "supplied as
    zero" are the same thing.

    Raises:
        InvalidHyperparameter: If the value is negative, not integral or
            exceeds the unsigned 32-bit range
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise InvalidHyperparameter("hyperparameter must be an unsigned integer",
                                    stage=stage, field=field, actual=value)
    if isinstance(value, str) and value.isascii() and value.isdigit():
        if len(value) > UINT_DIGITS:
            raise InvalidHyperparameter("hyperparameter exceeds the unsigned 32-bit range",
                                        stage=stage, field=field, actual=value[:UINT_DIGITS + 1])
        value = int(value)
    if isinstance(value, int):
        if value < 0:
            raise InvalidHyperparameter("hyperparameter must not be negative",
                                        stage=stage, field=field, actual=value)
        if value > UINT_MAX:
            raise InvalidHyperparameter("hyperparameter exceeds the unsigned 32-bit range",
                                        stage=stage, field=field, expected=UINT_MAX)
        return value
    raise InvalidHyperparameter("hyperparameter must be an unsigned integer",
                                stage=stage, field=field, actual=value)
