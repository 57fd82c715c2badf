"""Purely functional composition of CDK constructs.

Nothing touches a construct scope while a stack is being described:
``iaac`` and ``Effect`` only record what to create. ``join`` (or
``Effect.run``) registers every recorded construct with a scope, in order.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from constructs import Construct


class Pure:
    """A value that can be produced once a construct scope is known."""

    def __init__(self, fn: Callable[[Construct], Any]):
        self._fn = fn

    def run(self, scope: Construct) -> Any:
        return self._fn(scope)

    def map(self, f: Callable[[Any], Any]) -> "Pure":
        return Pure(lambda scope: f(self.run(scope)))


def iaac(construct: Callable[..., Any]) -> Callable[..., Pure]:
    """Turn a construct class into a factory of pure constructs.

    The returned function takes a zero argument props function; its name
    becomes the construct id unless ``id`` is given.
    """
    def bind(props: Callable[[], Mapping[str, Any]], id: Optional[str] = None) -> Pure:
        name = id or props.__name__
        return Pure(lambda scope: construct(scope, name, **props()))
    return bind


def wrap(cls: Callable[[Any], Any]) -> Callable[[Pure], Pure]:
    """Apply a non-construct type (e.g. an integration) to a pure value."""
    return lambda pure: pure.map(cls)


def _resolve(scope: Construct, value: Any) -> Any:
    return value.run(scope) if isinstance(value, Pure) else value


class Effect:
    """An ordered, immutable list of steps accumulating named values."""

    def __init__(self, steps: Tuple[Callable[[Any, Dict[str, Any]], Dict[str, Any]], ...] = ()):
        self._steps = tuple(steps)

    def _then(self, step) -> "Effect":
        return Effect(self._steps + (step,))

    def flat_map(self, fn: Callable[[Dict[str, Any]], Mapping[str, Any]]) -> "Effect":
        """Add the named values (pure or plain) returned by fn."""
        def step(scope, env):
            added = {name: _resolve(scope, value) for name, value in fn(dict(env)).items()}
            return {**env, **added}
        return self._then(step)

    def effect(self, fn: Callable[[Dict[str, Any]], Any]) -> "Effect":
        """Run fn for its side effects on the constructs created so far."""
        def step(scope, env):
            fn(dict(env))
            return env
        return self._then(step)

    def run(self, scope: Construct) -> Dict[str, Any]:
        env: Dict[str, Any] = {}
        for step in self._steps:
            env = step(scope, env)
        return env


def use(pures: Mapping[str, Any]) -> Effect:
    """Start an effect from named pure values."""
    return Effect().flat_map(lambda _: pures)


def join(scope: Construct, effect: Effect) -> Dict[str, Any]:
    """Register every construct described by effect within scope."""
    return effect.run(scope)
