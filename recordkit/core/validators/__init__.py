"""
Standard constraint implementations.

Provides validators for numeric bounds, length bounds, membership
(inclusion, exclusion, subset) and regex formats.
"""

from collections.abc import Mapping
from typing import Any

from recordkit.core.errors import DefinitionError

from .base_validator import BaseValidator, ValidationError
from .length_validator import LengthValidator
from .membership_validator import MembershipValidator
from .number_validator import NumberValidator
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator

VALIDATOR_REGISTRY: dict[str, type[BaseValidator]] = {
    option: validator_class
    for validator_class in (NumberValidator, LengthValidator, MembershipValidator, RegexValidator)
    for option in validator_class.options
}

# Options that parameterize other constraints rather than declaring one
PARAMETER_OPTIONS = ("count", "flags")

VALIDATION_OPTIONS = tuple(VALIDATOR_REGISTRY) + PARAMETER_OPTIONS


def build_validators(field_name: str, validations: Mapping[str, Any]) -> list[BaseValidator]:
    """
    Instantiate one validator per declared constraint, in declaration order.

    Args:
        field_name: Field the constraints belong to
        validations: Mapping of option -> bound (plus parameter options "count" and "flags")

    Returns:
        List of validators

    Raises:
        DefinitionError: If an option is unknown or a bound is invalid
    """
    parameters = {name: validations[name] for name in PARAMETER_OPTIONS if name in validations}
    if "count" in parameters and not any(option in validations for option in LengthValidator.options):
        raise DefinitionError("'count' requires one of is/min/max", field=field_name)
    if "flags" in parameters and "format" not in validations:
        raise DefinitionError("'flags' requires format", field=field_name)

    validators = []
    for option, bound in validations.items():
        if option in PARAMETER_OPTIONS:
            continue
        validator_class = VALIDATOR_REGISTRY.get(option)
        if not validator_class:
            raise DefinitionError(f"Unknown validation option: {option}", field=field_name)
        validators.append(validator_class(field_name, option, bound, parameters))
    return validators


__all__ = [
    "BaseValidator",
    "ValidationError",
    "NumberValidator",
    "LengthValidator",
    "MembershipValidator",
    "RegexValidator",
    "RequiredFieldValidator",
    "VALIDATOR_REGISTRY",
    "VALIDATION_OPTIONS",
    "build_validators",
]
