from workflow_engine.schemas.enums import ActionType, ConditionType
from workflow_engine.schemas.template import (
    TemplateActionSkeleton,
    TemplateConditionSkeleton,
    TemplateDefinition,
    TemplateParameter,
)
from workflow_engine.services.template_instantiator import (
    instantiate,
    missing_required_parameters,
)


def _reminder_definition() -> TemplateDefinition:
    return TemplateDefinition(
        conditions=[
            TemplateConditionSkeleton(
                condition_type=ConditionType.DATE_COMPARISON,
                field_name="DaysUntilDeadline",
                operator="lessthanorequal",
                value="7",
                order=1,
                is_parameterized=True,
                parameter_name="reminderDays",
            ),
            TemplateConditionSkeleton(
                field_name="Status",
                operator="notequals",
                value="Filed",
                order=2,
            ),
        ],
        actions=[
            TemplateActionSkeleton(
                action_type=ActionType.SEND_EMAIL,
                parameters={"subject": "Deadline", "to": "placeholder@example.com"},
                order=1,
                parameter_mappings={"to": "clientEmail"},
            )
        ],
        parameters=[
            TemplateParameter(name="reminderDays", data_type="number", is_required=True, default_value="7", order=1),
            TemplateParameter(name="clientEmail", data_type="email", is_required=True, order=2),
        ],
    )


def test_parameterized_condition_takes_caller_value():
    rule = instantiate(_reminder_definition(), {"reminderDays": "3"})
    assert rule.conditions[0].value == "3"
    assert rule.conditions[1].value == "Filed"


def test_omitted_parameter_keeps_literal():
    rule = instantiate(_reminder_definition(), {})
    assert rule.conditions[0].value == "7"


def test_non_string_parameter_values_are_stringified():
    rule = instantiate(_reminder_definition(), {"reminderDays": 14})
    assert rule.conditions[0].value == "14"


def test_action_mapping_overwrites_literal_parameter():
    definition = _reminder_definition()
    rule = instantiate(definition, {"clientEmail": "client@example.com"})
    assert rule.actions[0].parameters == {"subject": "Deadline", "to": "client@example.com"}
    # the template itself is never mutated
    assert definition.actions[0].parameters["to"] == "placeholder@example.com"


def test_unmapped_action_keeps_literal_parameters():
    rule = instantiate(_reminder_definition(), {"unrelated": "x"})
    assert rule.actions[0].parameters["to"] == "placeholder@example.com"
    assert rule.actions[0].action_type is ActionType.SEND_EMAIL


def test_missing_required_parameters_respects_defaults():
    definition = _reminder_definition()
    assert missing_required_parameters(definition, {}) == ["clientEmail"]
    assert missing_required_parameters(definition, {"clientEmail": "  "}) == ["clientEmail"]
    assert missing_required_parameters(definition, {"clientEmail": "a@b.c"}) == []


def _defaults_differ_definition() -> TemplateDefinition:
    definition = _reminder_definition()
    definition.actions[0].parameters["to"] = "literal@example.com"
    definition.parameters = [
        TemplateParameter(name="reminderDays", data_type="number", default_value="14", order=1),
        TemplateParameter(name="clientEmail", data_type="email", default_value="form-default@example.com", order=2),
    ]
    return definition


def test_declared_defaults_do_not_replace_skeleton_literals():
    rule = instantiate(_defaults_differ_definition(), {})
    assert rule.conditions[0].value == "7"
    assert rule.actions[0].parameters["to"] == "literal@example.com"


def test_blank_caller_value_is_substituted():
    rule = instantiate(_defaults_differ_definition(), {"reminderDays": "", "clientEmail": ""})
    assert rule.conditions[0].value == ""
    assert rule.actions[0].parameters["to"] == ""
