"""Rule registry.

Rules are plain generator functions registered with a decorator. Each one
receives the scanned file, its structural model and the config, and yields
`(line, message)` pairs; the engine attaches rule id and severity.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from epicstyle.config import Config
from epicstyle.types import Severity, SourceFile, StructuralModel

Finding = tuple[int, str]
CheckFunction = Callable[[SourceFile, StructuralModel, Config], Iterable[Finding]]


@dataclass(frozen=True)
class Rule:
    """A registered style rule."""

    rule_id: str
    severity: Severity
    description: str
    level: int
    check: CheckFunction

    def is_active(self, config: Config) -> bool:
        return self.level <= config.level and self.rule_id not in config.disabled_rules


class RuleRegistry:
    """Open set of rules, keyed by rule id."""

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def add(self, rule: Rule) -> None:
        """Register a rule.

        Raises:
            ValueError: If a rule with the same id is already registered
        """
        if rule.rule_id in self._rules:
            raise ValueError(f"Rule already registered: {rule.rule_id}")
        self._rules[rule.rule_id] = rule

    def register(
        self, rule_id: str, severity: Severity, description: str, level: int = 1
    ) -> Callable[[CheckFunction], CheckFunction]:
        """Decorator registering a check function as a rule."""

        def decorator(check: CheckFunction) -> CheckFunction:
            self.add(Rule(rule_id, severity, description, level, check))
            return check

        return decorator

    def get(self, rule_id: str) -> Rule:
        return self._rules[rule_id]

    def active_rules(self, config: Config) -> list[Rule]:
        """Rules enabled by config, in rule id order."""
        return [rule for rule in self if rule.is_active(config)]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(sorted(self._rules.values(), key=lambda rule: rule.rule_id))

    def __len__(self) -> int:
        return len(self._rules)


DEFAULT_REGISTRY = RuleRegistry()
register_rule = DEFAULT_REGISTRY.register
