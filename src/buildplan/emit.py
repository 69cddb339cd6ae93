# src/buildplan/emit.py
"""Output adapters that render a BuildPlan for a consumer."""

import json
from typing import Protocol

from .planner import BuilderApplication, BuildPlan


class PlanEmitter(Protocol):
    def emit(self, plan: BuildPlan) -> str: ...


class JsonPlanEmitter:
    """Deterministic JSON: same plan, same bytes."""

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def emit(self, plan: BuildPlan) -> str:
        return json.dumps(plan.to_dict(), indent=self.indent, sort_keys=True) + "\n"


class TextPlanEmitter:
    def _describe(self, app: BuilderApplication) -> list[str]:
        flags = []
        if app.is_optional:
            flags.append("optional")
        flags.append("hidden" if app.hide_output else "visible")
        packages = ", ".join(app.apply_to.packages) or "(opt-in only)"
        lines = [
            f"  {app.key} [{', '.join(flags)}]",
            f"    factories: {', '.join(f.qualified_name for f in app.factories)}",
            f"    applies to ({app.apply_to.policy}): {packages}",
        ]
        if not app.apply_to.generate_for.is_anything:
            gen = app.apply_to.generate_for
            if gen.include is not None:
                lines.append(f"    include: {', '.join(gen.include)}")
            if gen.exclude:
                lines.append(f"    exclude: {', '.join(gen.exclude)}")
        return lines

    def emit(self, plan: BuildPlan) -> str:
        lines = [
            f"Root package: {plan.root_package}",
            f"Package order: {', '.join(plan.package_order)}",
            "",
            f"Builders ({len(plan.builder_applications)}):",
        ]
        for app in plan.builder_applications:
            lines.extend(self._describe(app))
        lines.append("")
        lines.append(f"Post-process builders ({len(plan.post_process_applications)}):")
        for app in plan.post_process_applications:
            lines.extend(self._describe(app))
        lines.append("")
        lines.append(f"Targets ({len(plan.build_targets)}):")
        for key in sorted(plan.build_targets):
            target = plan.build_targets[key]
            deps = ", ".join(target.dependencies) or "-"
            lines.append(f"  {key} (depends on: {deps})")
        return "\n".join(lines) + "\n"


EMITTERS: dict[str, type[PlanEmitter]] = {
    "json": JsonPlanEmitter,
    "text": TextPlanEmitter,
}


def get_emitter(output_format: str) -> PlanEmitter:
    """Return the emitter registered for `output_format`."""
    try:
        return EMITTERS[output_format]()
    except KeyError:
        xmsg = (
            f"Unknown output format {output_format!r};"
            f" expected one of {', '.join(sorted(EMITTERS))}"
        )
        raise ValueError(xmsg) from None
