"""Built-in rules and their registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fieldcheck.registry import ParamPolicy
from fieldcheck.rules.comparison import COMPARISON_RULES, OPTIONAL_PARAM
from fieldcheck.rules.crossfield import CROSSFIELD_RULES
from fieldcheck.rules.presence import PRESENCE_RULES, is_default, is_required
from fieldcheck.rules.strings import PARAM_RULES, PATTERN_RULES

if TYPE_CHECKING:
    from fieldcheck.registry import Registry

# Cross-field rules whose parameter may be blank (compare with the parent).
_BLANK_PARAM_CROSSFIELD: frozenset[str] = frozenset(
    {"eqfield", "nefield", "gtfield", "gtefield", "ltfield", "ltefield"}
)


def register_builtins(registry: Registry) -> None:
    """Register every default rule into *registry*."""
    registry.register_rule(
        "required", is_required, needs_context=True, call_when_absent=True, param=ParamPolicy.NONE
    )
    registry.register_rule(
        "isdefault", is_default, needs_context=True, call_when_absent=True, param=ParamPolicy.NONE
    )
    for name, fn in PRESENCE_RULES.items():
        registry.register_rule(
            name, fn, needs_context=True, call_when_absent=True, param=ParamPolicy.REQUIRED
        )

    for name, fn in COMPARISON_RULES.items():
        policy = ParamPolicy.OPTIONAL if name in OPTIONAL_PARAM else ParamPolicy.REQUIRED
        registry.register_rule(name, fn, param=policy)

    for name, cfn in CROSSFIELD_RULES.items():
        policy = ParamPolicy.OPTIONAL if name in _BLANK_PARAM_CROSSFIELD else ParamPolicy.REQUIRED
        registry.register_rule(name, cfn, needs_context=True, param=policy)

    for name, sfn in PATTERN_RULES.items():
        registry.register_rule(name, sfn, param=ParamPolicy.NONE)
    for name, sfn in PARAM_RULES.items():
        registry.register_rule(name, sfn, param=ParamPolicy.REQUIRED)
