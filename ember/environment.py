from typing import Dict, Iterable, Optional, Tuple

from ember.errors import SourcePosition, UnboundVariableError
from ember.types import Value


class Environment:
    """One scope layer mapping identifiers to runtime values.

    Scopes chain to their parent, innermost first. The global declaration
    scope has no parent and is not written to once declarations are
    loaded; every call, `let`, matched arm and local declaration block adds
one child layer.
    """
    def __init__(self, parent: Optional['Environment'] = None, values: Optional[Dict[str, Value]] = None):
        self.parent = parent
        self.values: Dict[str, Value] = dict(values) if values else {}

    def get(self, name: str, position: Optional[SourcePosition] = None) -> Value:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        raise UnboundVariableError(name, position)

    def lookup(self, name: str) -> Optional[Value]:
        """Like `get`, but returns None for an unbound name."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        return None

    def is_bound(self, name: str) -> bool:
        return self.lookup(name) is not None

    def define(self, name: str, value: Value):
        self.values[name] = value

    def child(self, bindings: Iterable[Tuple[str, Value]] = ()) -> 'Environment':
        return Environment(parent=self, values=dict(bindings))
