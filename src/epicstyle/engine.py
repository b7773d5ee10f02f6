"""Rule evaluation for a single file."""
from epicstyle import rules  # noqa: F401  registers the rule catalog
from epicstyle.config import Config
from epicstyle.logging_config import get_logger
from epicstyle.registry import DEFAULT_REGISTRY, RuleRegistry
from epicstyle.types import SourceFile, StructuralModel, Violation

logger = get_logger(__name__)


def evaluate_rules(
    source: SourceFile,
    model: StructuralModel,
    config: Config,
    registry: RuleRegistry | None = None,
) -> list[Violation]:
    """Run every active rule against one file.

    Args:
        source: Scanned file
        model: Structural model of the file
        config: Checker settings
        registry: Rules to evaluate, the default catalog when None

    Returns:
        Violations in rule id order, each rule's findings in emission order
    """
    registry = registry if registry is not None else DEFAULT_REGISTRY
    violations: list[Violation] = []

    for rule in registry.active_rules(config):
        for line, message in rule.check(source, model, config):
            violations.append(
                Violation(
                    rule_id=rule.rule_id,
                    severity=rule.severity,
                    path=source.path,
                    line=max(1, line),
                    message=message,
                )
            )

    logger.debug(f"{source.path}: {len(violations)} violations")
    return violations
