from __future__ import annotations
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union

Predicate = Callable[[], Union[bool, Awaitable[bool]]]


class ExecutableSkill(Protocol):
    name: str

    def run(self, inputs: Optional[Mapping[str, Any]] = None) -> Any: ...

    def check(self, value: Any) -> Union[bool, Awaitable[bool]]: ...

    def has_check(self) -> bool: ...


class SkillResolver(Protocol):
    def resolve(self, skill_name: str) -> ExecutableSkill: ...
