"""Two-variant success/failure container used by the parser entry points and the evaluator. Failures are ordinary
values: nothing in the core engines raises to signal a user error.

```
Success(value).map(fn)   == Success(fn(value))
Failure(reason).map(fn)  == Failure(reason)
Success(value).bind(fn)  == fn(value)          ; fn must return a Result
Failure(reason).bind(fn) == Failure(reason)
```
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Union


@dataclass(frozen=True)
class Success:
    """Successful computation carrying value."""
    value: Any

    def is_success(self):
        return True

    def map(self, fn):
        return Success(fn(self.value))

    def bind(self, fn):
        return fn(self.value)


@dataclass(frozen=True)
class Failure:
    """Failed computation carrying reason (a message, or a syntax error description)."""
    reason: Any

    def is_success(self):
        return False

    def map(self, fn):
        return self

    def bind(self, fn):
        return self


Result = Union[Success, Failure]


def sequence(results: Iterable[Result]) -> Result:
    """Collects successful values into a list. The first Failure is returned as is and later results are not looked at.
    """
    values = []
    for result in results:
        if not result.is_success():
            return result
        values.append(result.value)
    return Success(values)


async def traverse(items: Iterable[Any], fn: Callable[[Any], Awaitable[Result]]) -> Result:
    """Awaits fn on every item in order, stopping at the first Failure. Items after a failure are never passed to fn, and
    values collected before it are discarded.
    """
    values: List[Any] = []
    for item in items:
        result = await fn(item)
        if not result.is_success():
            return result
        values.append(result.value)
    return Success(values)
