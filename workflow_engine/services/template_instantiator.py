"""
Turn a template definition plus caller parameters into a concrete rule definition.

`instantiate` is a pure function and performs no validation of required
parameters. Only keys present in the caller map are substituted, blank
values included; declared parameter defaults are consulted solely by
`missing_required_parameters`, which the template service runs first.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping

from ..schemas.rule import ActionIn, ConditionIn, stringify_value
from ..schemas.template import TemplateDefinition


@dataclass
class RuleDefinition:
    conditions: list[ConditionIn] = field(default_factory=list)
    actions: list[ActionIn] = field(default_factory=list)


def instantiate(definition: TemplateDefinition, parameters: Mapping[str, Any]) -> RuleDefinition:
    conditions: list[ConditionIn] = []
    for skeleton in definition.conditions:
        value = skeleton.value
        if skeleton.is_parameterized and skeleton.parameter_name and skeleton.parameter_name in parameters:
            value = stringify_value(parameters[skeleton.parameter_name])
        conditions.append(
            ConditionIn(
                condition_type=skeleton.condition_type,
                field_name=skeleton.field_name,
                operator=skeleton.operator,
                value=value,
                logical_operator=skeleton.logical_operator,
                order=skeleton.order,
            )
        )

    actions: list[ActionIn] = []
    for skeleton in definition.actions:
        merged = copy.deepcopy(skeleton.parameters)
        for action_key, parameter_name in skeleton.parameter_mappings.items():
            if parameter_name in parameters:
                merged[action_key] = copy.deepcopy(parameters[parameter_name])
        actions.append(
            ActionIn(
                action_type=skeleton.action_type,
                parameters=merged,
                order=skeleton.order,
                continue_on_error=skeleton.continue_on_error,
                error_handling=skeleton.error_handling,
            )
        )
    return RuleDefinition(conditions=conditions, actions=actions)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_required_parameters(definition: TemplateDefinition, parameters: Mapping[str, Any]) -> list[str]:
    return [
        p.name
        for p in sorted(definition.parameters, key=lambda p: p.order)
        if p.is_required and _is_blank(parameters.get(p.name)) and _is_blank(p.default_value)
    ]
