"""Per-session state shared by every plan construction call."""

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Set

if TYPE_CHECKING:
    from ..config import OptimizerConfig


class Rule(Enum):
    """Rewrite rules that can be toggled per session."""

    HOIST = "hoist"
    DECORRELATE = "decorrelate"


class ColumnIdAllocator:
    """Issues column ids that are unique within one session."""

    def __init__(self, start: int = 0):
        self._next = start

    def next_id(self) -> int:
        """Return a fresh column id, strictly greater than any issued before."""
        column_id = self._next
        self._next += 1
        return column_id

    def peek(self) -> int:
        """Return the id the next call to next_id will issue."""
        return self._next

    def __repr__(self) -> str:
        return f"ColumnIdAllocator(next={self._next})"


class RuleSet:
    """Mutable set of enabled rewrite rules. Starts empty."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._enabled: Set[Rule] = set(rules)

    def enable(self, rule: Rule) -> None:
        self._enabled.add(rule)

    def disable(self, rule: Rule) -> None:
        self._enabled.discard(rule)

    def is_enabled(self, rule: Rule) -> bool:
        return rule in self._enabled

    def __contains__(self, rule: Rule) -> bool:
        return self.is_enabled(rule)

    def __iter__(self) -> Iterator[Rule]:
        return iter(sorted(self._enabled, key=lambda rule: rule.value))

    def __len__(self) -> int:
        return len(self._enabled)

    def __repr__(self) -> str:
        names = ", ".join(rule.value for rule in self)
        return f"RuleSet({names})"


class OptimizerContext:
    """Builder context: one id allocator and one rule set per session.

    Sessions must not share a context; build independent plans with
    independent contexts.
    """

    def __init__(
        self,
        allocator: Optional[ColumnIdAllocator] = None,
        rules: Optional[RuleSet] = None,
        check_invariants: bool = True,
    ):
        self.allocator = allocator if allocator is not None else ColumnIdAllocator()
        self.rules = rules if rules is not None else RuleSet()
        self.check_invariants = check_invariants

    @classmethod
    def from_config(cls, config: "OptimizerConfig") -> "OptimizerContext":
        """Create a fresh session context from optimizer configuration.

        Args:
            config: Optimizer section of the loaded configuration

        Returns:
            Context with a new allocator and the configured rules enabled
        """
        rules = RuleSet()
        if config.enable_hoisting:
            rules.enable(Rule.HOIST)
        if config.enable_decorrelation:
            rules.enable(Rule.DECORRELATE)
        return cls(rules=rules, check_invariants=config.check_invariants)

    def next_id(self) -> int:
        return self.allocator.next_id()

    def enable(self, rule: Rule) -> None:
        self.rules.enable(rule)

    def is_enabled(self, rule: Rule) -> bool:
        return self.rules.is_enabled(rule)

    def __repr__(self) -> str:
        return f"OptimizerContext({self.allocator!r}, {self.rules!r})"
