"""
Rule registry for explicit rule management.

There is no process-wide registry: callers build one, pass it around, and
hand the resulting instances to the Analyzer. This gives:
- Explicit control over which rules run
- CLI integration (--rules, --exclude)
- Testing isolation (a registry holding only the rules under test)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, TypeVar

if TYPE_CHECKING:
    from dashsense.analyzer.rules.base import Rule

T = TypeVar("T", bound="Rule")


class RuleRegistry:
    """
    Ordered collection of rule classes keyed by rule id.

    Example:
        registry = RuleRegistry.default()
        rules = registry.instantiate(exclude={"Q11"})
        analyzer = Analyzer(rules=rules)
    """

    def __init__(self, rule_classes: Iterable[type[Rule]] = ()) -> None:
        self._rules: dict[str, type[Rule]] = {}
        for rule_cls in rule_classes:
            self.register(rule_cls)

    @classmethod
    def default(cls) -> RuleRegistry:
        """A new registry holding every built-in rule, in registration order."""
        from dashsense.analyzer.rules import DEFAULT_RULE_CLASSES

        return cls(DEFAULT_RULE_CLASSES)

    def register(self, rule_cls: type[T]) -> type[T]:
        """
        Register a rule class.

        Returns the class, so the method also works as a decorator on a
        registry instance.

        Raises:
            ValueError: If a rule with the same ID is already registered
        """
        rule_id = rule_cls.rule_id

        if rule_id in self._rules:
            existing = self._rules[rule_id]
            raise ValueError(
                f"Rule '{rule_id}' already registered by {existing.__module__}.{existing.__name__}. "
                f"Cannot register {rule_cls.__module__}.{rule_cls.__name__}"
            )

        self._rules[rule_id] = rule_cls
        return rule_cls

    def unregister(self, rule_id: str) -> bool:
        """Remove a rule; True if it was registered."""
        if rule_id in self._rules:
            del self._rules[rule_id]
            return True
        return False

    def get(self, rule_id: str) -> type[Rule] | None:
        return self._rules.get(rule_id)

    def all(self) -> list[type[Rule]]:
        """All registered rule classes, in registration order."""
        return list(self._rules.values())

    def all_ids(self) -> list[str]:
        return list(self._rules.keys())

    def filter(
        self,
        include: set[str] | None = None,
        exclude: set[str] | None = None,
    ) -> list[type[Rule]]:
        """
        Get a filtered list of rule classes.

        Args:
            include: If provided, only include these rule IDs
            exclude: If provided, exclude these rule IDs

        Returns:
            Filtered list of rule classes, registration order preserved

        Example:
            # Only the scoping rules
            rules = registry.filter(include={"Q1", "Q5"})

            # Everything except the gauge heuristic
            rules = registry.filter(exclude={"Q11"})
        """
        rules = self.all()

        if include is not None:
            rules = [r for r in rules if r.rule_id in include]

        if exclude is not None:
            rules = [r for r in rules if r.rule_id not in exclude]

        return rules

    def instantiate(
        self,
        include: set[str] | None = None,
        exclude: set[str] | None = None,
    ) -> list[Rule]:
        """Fresh rule instances for the filtered classes."""
        return [cls() for cls in self.filter(include=include, exclude=exclude)]

    def unknown_ids(self, rule_ids: Iterable[str]) -> list[str]:
        """Ids in ``rule_ids`` that no registered rule carries."""
        return [rule_id for rule_id in rule_ids if rule_id not in self._rules]

    def clear(self) -> None:
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules
