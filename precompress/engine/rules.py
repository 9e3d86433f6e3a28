"""Asset path matching rules (test / include / exclude)."""

import re
from typing import List, Optional

from ..config import CompressionOptions, PathCondition, PathRule
from ..util.logging import get_logger

logger = get_logger(__name__)


class MatchRule:
    """Base class for path rules."""

    def __init__(self, name: str, conditions: List[PathCondition]):
        self.name = name
        self.conditions = conditions

    def matches(self, asset_name: str) -> bool:
        """A string condition is a prefix; a regex condition is searched."""
        for condition in self.conditions:
            if isinstance(condition, str):
                if asset_name.startswith(condition):
                    return True
            elif condition.search(asset_name):
                return True
        return False

    def should_include(self, asset_name: str) -> bool:
        raise NotImplementedError


class MatchAnyRule(MatchRule):
    """Asset must match one of the conditions."""

    def should_include(self, asset_name: str) -> bool:
        return self.matches(asset_name)


class IncludeRule(MatchAnyRule):
    """Asset must match one of the conditions."""
    pass


class ExcludeRule(MatchRule):
    """Asset must not match any of the conditions."""

    def should_include(self, asset_name: str) -> bool:
        return not self.matches(asset_name)


def _as_conditions(rule: Optional[PathRule]) -> List[PathCondition]:
    if rule is None:
        return []
    if isinstance(rule, (str, re.Pattern)):
        return [rule]
    return list(rule)


class RuleEngine:
    """Applies test/include/exclude rules to asset names."""

    def __init__(
        self,
        test: Optional[PathRule] = None,
        include: Optional[PathRule] = None,
        exclude: Optional[PathRule] = None,
    ):
        self.rules: List[MatchRule] = []

        for rule_class, name, value in (
            (MatchAnyRule, "test", test),
            (IncludeRule, "include", include),
            (ExcludeRule, "exclude", exclude),
        ):
            conditions = _as_conditions(value)
            if conditions:
                self.rules.append(rule_class(name, conditions))

    @classmethod
    def from_options(cls, options: CompressionOptions) -> "RuleEngine":
        return cls(test=options.test, include=options.include, exclude=options.exclude)

    def __call__(self, asset_name: str) -> bool:
        return self.should_include(asset_name)

    def should_include(self, asset_name: str) -> bool:
        """Determine if an asset passes every rule."""
        for rule in self.rules:
            if not rule.should_include(asset_name):
                logger.debug(f"Asset excluded by rule '{rule.name}': {asset_name}")
                return False
        return True
