"""
Validation Environment Inputs

What the resolver needs to know about the world outside the file: the
predeclared (builtin) names, the bindings hidden behind semantics flags,
and the flags themselves. Nothing here is ever evaluated.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Mapping, Optional, Set

from ..utils.config import FLAG_DISALLOW_LOAD_AFTER_STATEMENT, FLAG_RESTRICT_STRING_ESCAPES

# Builtins of the core language plus the BUILD helpers tests rely on
DEFAULT_BUILTINS = (
    "None", "True", "False",
    "all", "any", "bool", "dict", "dir", "enumerate", "fail", "getattr",
    "hasattr", "hash", "int", "len", "list", "max", "min", "print", "range",
    "repr", "reversed", "sorted", "str", "tuple", "type", "zip",
    "depset", "select", "struct", "native", "rule", "provider", "attr",
)


@dataclass(frozen=True)
class StarlarkSemantics:
    """Boolean language flags, named as on the command line."""
    incompatible_bzl_disallow_load_after_statement: bool = True
    incompatible_restrict_string_escapes: bool = False

    def flag_value(self, name: str) -> bool:
        if name not in {f.name for f in fields(self)}:
            raise KeyError(f"unknown semantics flag '{name}'")
        return getattr(self, name)

    @classmethod
    def from_flags(cls, flags: Mapping[str, bool]) -> 'StarlarkSemantics':
        return cls(**dict(flags))


DEFAULT_SEMANTICS = StarlarkSemantics()


@dataclass(frozen=True)
class FlagGuardedValue:
    """
    A binding only visible under certain semantics.

    An experimental value needs its flag on; a deprecated value disappears
    once its flag is on.
    """
    value: Any
    flag: str
    experimental_flag: bool

    @classmethod
    def experimental(cls, flag: str, value: Any = None) -> 'FlagGuardedValue':
        return cls(value, flag, True)

    @classmethod
    def deprecated(cls, flag: str, value: Any = None) -> 'FlagGuardedValue':
        return cls(value, flag, False)

    def is_accessible(self, semantics: StarlarkSemantics) -> bool:
        enabled = semantics.flag_value(self.flag)
        return enabled if self.experimental_flag else not enabled

    def error_from_attempting_access(self, semantics: StarlarkSemantics, name: str) -> str:
        if self.experimental_flag:
            return (
                f"{name} is experimental and thus unavailable with the current flags. "
                f"It may be enabled by setting --{self.flag}"
            )
        return (
            f"{name} is deprecated and will be removed soon. "
            f"It may be temporarily re-enabled by setting --{self.flag}=false"
        )


class Environment:
    """
    Predeclared bindings for one validation run.

    - globals: plain names, always visible
    - guarded: FlagGuardedValues, visible depending on semantics
    """

    def __init__(
        self,
        globals: Optional[Mapping[str, Any]] = None,
        guarded: Optional[Mapping[str, FlagGuardedValue]] = None,
        semantics: StarlarkSemantics = DEFAULT_SEMANTICS,
    ):
        self.globals: Dict[str, Any] = dict(globals or {})
        self.guarded: Dict[str, FlagGuardedValue] = dict(guarded or {})
        self.semantics = semantics

    @classmethod
    def default(cls, semantics: StarlarkSemantics = DEFAULT_SEMANTICS,
                extra: Iterable[str] = ()) -> 'Environment':
        names = list(DEFAULT_BUILTINS) + list(extra)
        return cls(globals={name: None for name in names}, semantics=semantics)

    def with_semantics(self, semantics: StarlarkSemantics) -> 'Environment':
        return Environment(self.globals, self.guarded, semantics)

    def variable_names(self) -> Set[str]:
        names = set(self.globals)
        names.update(n for n, v in self.guarded.items() if v.is_accessible(self.semantics))
        return names

    def restricted_bindings(self) -> Dict[str, FlagGuardedValue]:
        return {n: v for n, v in self.guarded.items() if not v.is_accessible(self.semantics)}


__all__ = [
    "DEFAULT_BUILTINS",
    "DEFAULT_SEMANTICS",
    "Environment",
    "FlagGuardedValue",
    "StarlarkSemantics",
    "FLAG_DISALLOW_LOAD_AFTER_STATEMENT",
    "FLAG_RESTRICT_STRING_ESCAPES",
]
