"""
Object names and instances: the identities the property cache is keyed by.

An object name has the form ``domain:key=value[,key=value...]``. Two names
are equal when their canonical forms are equal, and the canonical form sorts
key properties by name, so ``java.lang:type=GC,name=G1`` and
``java.lang:name=G1,type=GC`` are the same resource. The key property list
string, however, is kept exactly as written so the cache can report
properties in source order.

The cache does not depend on these classes. Anything hashable that exposes
``key_property_list_string`` satisfies :class:`Identity`, and anything that
exposes an ``object_name`` satisfies :class:`IdentityHolder`.

Examples:
    >>> name = ObjectName("java.lang:type=GarbageCollector,name=G1")
    >>> name.domain
    'java.lang'
    >>> name.key_property_list_string
    'type=GarbageCollector,name=G1'
    >>> name.canonical_name
    'java.lang:name=G1,type=GarbageCollector'
    >>> name == ObjectName("java.lang:name=G1,type=GarbageCollector")
    True

Tags:
    object-name, identity, protocol, mbean-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from mbeanspine.core.errors import MalformedObjectNameError
from mbeanspine.parser import scan_key_properties

DOMAIN_SEPARATOR = ":"


@runtime_checkable
class Identity(Protocol):
    """Anything the cache can key on. Implementations must be hashable."""

    @property
    def key_property_list_string(self) -> str: ...


@runtime_checkable
class IdentityHolder(Protocol):
    """A resource-instance handle that exposes its identity."""

    @property
    def object_name(self) -> Identity: ...


def _canonical_key_properties(properties: str) -> str:
    result = scan_key_properties(properties)
    ordered = sorted(result.to_mapping().items())
    canonical = ",".join(f"{name}={value}" for name, value in ordered)
    if result.remainder:
        canonical = f"{canonical},{result.remainder}" if canonical else result.remainder
    return canonical


@dataclass(frozen=True, eq=False, slots=True)
class ObjectName:
    """
    Immutable object name, compared by canonical form.

    Only the domain separator is required; the key property list is not
    validated beyond what canonicalisation needs. An empty domain is allowed.

    Raises:
        MalformedObjectNameError: If ``name`` is not a string or has no ``:``.
    """

    name: str
    domain: str = field(init=False)
    key_property_list_string: str = field(init=False)
    canonical_name: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise MalformedObjectNameError(
                f"Object name must be a string, got {type(self.name).__name__}"
            )
        domain, sep, properties = self.name.partition(DOMAIN_SEPARATOR)
        if not sep:
            raise MalformedObjectNameError(
                "Object name has no domain separator"
            ).with_context(object_name=self.name)

        object.__setattr__(self, "domain", domain)
        object.__setattr__(self, "key_property_list_string", properties)
        object.__setattr__(
            self,
            "canonical_name",
            f"{domain}{DOMAIN_SEPARATOR}{_canonical_key_properties(properties)}",
        )

    @classmethod
    def of(cls, name: str | ObjectName) -> ObjectName:
        """Return ``name`` unchanged if it is already an ObjectName."""
        if isinstance(name, ObjectName):
            return name
        return cls(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectName):
            return NotImplemented
        return self.canonical_name == other.canonical_name

    def __hash__(self) -> int:
        return hash(self.canonical_name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class ObjectInstance:
    """A registered resource: its object name plus implementation class."""

    object_name: ObjectName
    class_name: str | None = None

    @classmethod
    def of(cls, name: str | ObjectName, class_name: str | None = None) -> ObjectInstance:
        return cls(ObjectName.of(name), class_name)


__all__ = [
    "DOMAIN_SEPARATOR",
    "Identity",
    "IdentityHolder",
    "ObjectName",
    "ObjectInstance",
]
