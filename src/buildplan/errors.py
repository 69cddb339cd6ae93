# src/buildplan/errors.py
"""Configuration errors surfaced to the plan consumer.

Every error derives from BuildPlanError so callers can catch the whole
family at once. Errors that can point at a declaration carry a
SourceLocation.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """Where a declaration came from."""

    source: str  # file path, or a label like "<override:foo>"
    line: int | None = None
    column: int | None = None
    package: str | None = None

    def __str__(self) -> str:
        text = self.source
        if self.line is not None:
            text += f":{self.line}"
            if self.column is not None:
                text += f":{self.column}"
        return text


class BuildPlanError(Exception):
    """Base class for every planning failure."""

    code: int = 1


class ConfigParseError(BuildPlanError):
    """Malformed configuration: bad YAML, bad value, unknown or missing key."""

    def __init__(
        self,
        message: str,
        *,
        location: SourceLocation | None = None,
        key: str | None = None,
    ) -> None:
        self.message = message
        self.location = location
        self.key = key
        super().__init__(_with_location(message, location))


class MissingPackageError(BuildPlanError):
    """A dependency name does not resolve to a package of the workspace."""

    def __init__(
        self,
        package: str,
        *,
        required_by: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.package = package
        self.required_by = required_by
        xmsg = f"Could not resolve package `{package}`"
        if required_by is not None:
            xmsg += f" (a dependency of `{required_by}`)"
        if detail:
            xmsg += f": {detail}"
        super().__init__(xmsg)


class DuplicateKeyError(BuildPlanError):
    """Two declarations normalize to the same key."""

    def __init__(
        self,
        key: str,
        *,
        kind: str,
        first: SourceLocation | None,
        second: SourceLocation | None,
    ) -> None:
        self.key = key
        self.kind = kind
        self.first = first
        self.second = second
        xmsg = (
            f"Duplicate {kind} key `{key}`: declared at {first or '<unknown>'}"
            f" and again at {second or '<unknown>'}"
        )
        super().__init__(xmsg)


class UnknownAutoApplyError(BuildPlanError):
    """An auto_apply value outside none/dependents/all_packages/root_package."""

    def __init__(
        self,
        value: object,
        *,
        builder_key: str | None = None,
        location: SourceLocation | None = None,
    ) -> None:
        self.value = value
        self.builder_key = builder_key
        self.location = location
        xmsg = f"Unknown auto_apply value {value!r}"
        if builder_key is not None:
            xmsg += f" for builder `{builder_key}`"
        xmsg += "; expected one of none, dependents, all_packages, root_package"
        super().__init__(_with_location(xmsg, location))


class CyclicBuilderOrderError(BuildPlanError):
    """Builder ordering constraints form a cycle."""

    def __init__(self, members: Sequence[str]) -> None:
        self.members = list(members)
        xmsg = "Builders have a cyclic ordering dependency: " + " -> ".join(
            self.members
        )
        super().__init__(xmsg)


class BuilderReferenceError(BuildPlanError):
    """A builder's import or factory reference cannot be resolved."""

    def __init__(self, builder_key: str, reference: str, reason: str) -> None:
        self.builder_key = builder_key
        self.reference = reference
        self.reason = reason
        super().__init__(
            f"Builder `{builder_key}` references `{reference}`: {reason}"
        )


class PlanningError(BuildPlanError):
    """Several configuration errors found in one planning run."""

    def __init__(self, errors: Iterable[BuildPlanError]) -> None:
        self.errors = list(errors)
        lines = [f"Found {len(self.errors)} configuration error(s):"]
        lines.extend(f"  - {e}" for e in self.errors)
        super().__init__("\n".join(lines))


def _with_location(message: str, location: SourceLocation | None) -> str:
    if location is None:
        return message
    return f"{location}: {message}"


def raise_collected(errors: Sequence[BuildPlanError]) -> None:
    """Raise nothing, the single error, or a PlanningError for several."""
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise PlanningError(errors)
