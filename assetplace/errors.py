"""Error taxonomy for the projection engine."""

from __future__ import annotations


class ProjectionError(Exception):
    """Base class for errors raised by the projection engine."""


class InvalidInputError(ProjectionError, ValueError):
    """Raised when numeric inputs are rejected before a projection starts."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ConfigurationError(ProjectionError):
    """Raised when tax or engine configuration cannot satisfy a request."""


class MissingTaxRuleError(ConfigurationError, LookupError):
    """Raised when no tax rule set exists for a (country, holding type) pair."""

    def __init__(self, country: str, holding_type: str):
        self.country = country
        self.holding_type = holding_type
        super().__init__(f"no tax rule set configured for country '{country}' and holding type '{holding_type}'")
