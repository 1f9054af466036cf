from datetime import datetime, timedelta, timezone

from workflow_engine.services.conditions import (
    apply_operator,
    compare_values,
    evaluate_condition,
    evaluate_conditions,
    fold_results,
)
from workflow_engine.services.payload import FieldValue


def _cond(field, operator, value=None, logical="AND", order=0):
    return {
        "id": f"c{order}",
        "condition_type": "FieldComparison",
        "field_name": field,
        "operator": operator,
        "value": value,
        "logical_operator": logical,
        "order": order,
    }


def test_zero_conditions_always_match():
    result = evaluate_conditions([], {"Anything": 1})
    assert result.matched is True
    assert result.condition_results == []


def test_equals_compares_stringified_field():
    payload = {"Status": "Confirmed", "Count": 3, "Paid": True}
    assert evaluate_conditions([_cond("Status", "equals", "Confirmed")], payload).matched
    assert not evaluate_conditions([_cond("Status", "equals", "confirmed")], payload).matched
    assert evaluate_conditions([_cond("Count", "equals", "3")], payload).matched
    assert evaluate_conditions([_cond("Paid", "equals", "true")], payload).matched


def test_operator_name_is_case_insensitive():
    assert evaluate_conditions([_cond("Status", "EQUALS", "Open")], {"Status": "Open"}).matched
    assert evaluate_conditions([_cond("Status", "NotEquals", "Closed")], {"Status": "Open"}).matched


def test_null_field_never_equals_and_notequals_is_negation():
    assert not evaluate_conditions([_cond("Missing", "equals", "x")], {}).matched
    assert evaluate_conditions([_cond("Missing", "notequals", "x")], {}).matched


def test_greater_than_uses_numeric_comparison():
    rule = [_cond("Amount", "greaterthan", "1000")]
    assert evaluate_conditions(rule, {"Amount": 1500}).matched is True
    assert evaluate_conditions(rule, {"Amount": 500}).matched is False
    # "500" > "1000" ordinally; numeric parse must win.
    assert evaluate_conditions(rule, {"Amount": "500"}).matched is False


def test_or_equal_variants_include_equality():
    payload = {"Amount": 1000.0}
    assert evaluate_conditions([_cond("Amount", "greaterthanorequal", "1000")], payload).matched
    assert evaluate_conditions([_cond("Amount", "lessthanorequal", "1000")], payload).matched
    assert not evaluate_conditions([_cond("Amount", "lessthan", "1000")], payload).matched


def test_ordering_falls_back_to_dates_then_strings():
    assert compare_values(FieldValue.of("2024-03-01"), "2024-02-15T10:00:00Z") == 1
    assert compare_values(FieldValue.of("apple"), "banana") == -1
    assert compare_values(FieldValue.of(None), "1") is None


def test_null_field_under_ordering_operator_is_false():
    assert not evaluate_conditions([_cond("Amount", "greaterthan", "0")], {}).matched
    assert not evaluate_conditions([_cond("Amount", "lessthanorequal", "0")], {}).matched


def test_left_fold_and_then_or():
    # (A AND B) OR C with A true, B false, C true
    conditions = [
        _cond("A", "equals", "1", order=1),
        _cond("B", "equals", "1", logical="AND", order=2),
        _cond("C", "equals", "1", logical="OR", order=3),
    ]
    assert evaluate_conditions(conditions, {"A": 1, "B": 0, "C": 1}).matched is True


def test_left_fold_has_no_and_precedence():
    # A OR B AND C folds as (A OR B) AND C, so a false C fails the rule.
    conditions = [
        _cond("A", "equals", "1", order=1),
        _cond("B", "equals", "1", logical="OR", order=2),
        _cond("C", "equals", "1", logical="AND", order=3),
    ]
    assert evaluate_conditions(conditions, {"A": 1, "B": 0, "C": 0}).matched is False


def test_fold_ignores_first_operator_and_treats_unknown_as_and():
    assert fold_results([("OR", False), ("AND", True)]) is False
    assert fold_results([("AND", True), ("XOR", False)]) is False
    assert fold_results([("AND", False), ("or", True)]) is True


def test_conditions_evaluated_in_ascending_order():
    conditions = [
        _cond("C", "equals", "1", logical="OR", order=3),
        _cond("A", "equals", "1", order=1),
        _cond("B", "equals", "1", logical="AND", order=2),
    ]
    result = evaluate_conditions(conditions, {"A": 1, "B": 0, "C": 1})
    assert [r.field_name for r in result.condition_results] == ["A", "B", "C"]
    assert result.matched is True


def test_every_condition_is_evaluated_for_diagnostics():
    conditions = [
        _cond("A", "equals", "1", order=1),
        _cond("B", "equals", "1", order=2),
        _cond("C", "equals", "1", order=3),
    ]
    result = evaluate_conditions(conditions, {"A": 0, "B": 1, "C": 1})
    assert result.matched is False
    assert [r.matched for r in result.condition_results] == [False, True, True]


def test_isnull_and_isnotnull_ignore_value():
    assert evaluate_conditions([_cond("Missing", "isnull", "ignored")], {}).matched
    assert not evaluate_conditions([_cond("Present", "isnull", "x")], {"Present": "v"}).matched
    assert evaluate_conditions([_cond("Present", "isnotnull", "whatever")], {"Present": 0}).matched


def test_unknown_operator_fails_closed_with_message():
    result = evaluate_condition(_cond("Status", "sortof", "x"), {"Status": "x"})
    assert result.matched is False
    assert "Unsupported operator" in result.error_message
    assert evaluate_conditions([_cond("Status", "sortof", "x")], {"Status": "x"}).matched is False


def test_operator_error_is_reported_not_raised():
    result = evaluate_condition(_cond("Amount", "between", "10"), {"Amount": 5})
    assert result.matched is False
    assert result.error_message.startswith("Error evaluating condition")

    bad_regex = evaluate_condition(_cond("Name", "matches", "("), {"Name": "abc"})
    assert bad_regex.matched is False
    assert bad_regex.error_message


def test_missing_nested_path_is_null():
    payload = {"Client": {"Country": "SL"}, "Tags": ["a"]}
    assert evaluate_conditions([_cond("Client.Country", "equals", "SL")], payload).matched
    assert evaluate_conditions([_cond("Client.City", "isnull")], payload).matched
    assert evaluate_conditions([_cond("Tags.0", "isnull")], payload).matched
    assert evaluate_conditions([_cond("Client.Country.Code", "isnull")], payload).matched


def test_string_operators():
    payload = {"Email": "ops@example.com"}
    assert apply_operator("contains", FieldValue.of(payload["Email"]), "@example")
    assert apply_operator("startswith", FieldValue.of(payload["Email"]), "ops")
    assert apply_operator("endswith", FieldValue.of(payload["Email"]), ".com")
    assert not apply_operator("contains", FieldValue.of(None), "x")


def test_list_operators():
    doc = FieldValue.of("TaxReturn")
    assert apply_operator("in", doc, "TaxReturn, FinancialStatement")
    assert not apply_operator("notin", doc, "TaxReturn,FinancialStatement")
    tags = FieldValue.of(["vip", "overdue"])
    assert apply_operator("contains", tags, "overdue")
    assert apply_operator("containsall", tags, "vip,overdue")
    assert not apply_operator("containsall", tags, "vip,new")
    assert apply_operator("length", tags, "2")


def test_between_is_inclusive():
    assert apply_operator("between", FieldValue.of(100), "100,200")
    assert apply_operator("between", FieldValue.of(200), "100,200")
    assert not apply_operator("between", FieldValue.of(201), "100,200")


def test_date_operators():
    now = datetime.now(timezone.utc)
    assert apply_operator("before", FieldValue.of("2024-01-01"), "2024-06-01")
    assert apply_operator("after", FieldValue.of("2024-07-01T00:00:00Z"), "2024-06-01")
    assert not apply_operator("before", FieldValue.of("not a date"), "2024-06-01")
    assert apply_operator("today", FieldValue.of(now.isoformat()), None)
    assert apply_operator("yesterday", FieldValue.of(now - timedelta(days=1)), None)
    assert apply_operator("thismonth", FieldValue.of(now), None)
    assert apply_operator("thisweek", FieldValue.of(now), None)


def test_matches_and_empty():
    assert apply_operator("matches", FieldValue.of("INV-2024-001"), r"^INV-\d{4}-\d+$")
    assert apply_operator("empty", FieldValue.of(""), None)
    assert apply_operator("empty", FieldValue.of([]), None)
    assert apply_operator("empty", FieldValue.of(None), None)
    assert not apply_operator("empty", FieldValue.of("x"), None)


def test_condition_result_carries_actual_and_expected():
    result = evaluate_condition(_cond("Amount", "greaterthan", "1000"), {"Amount": 1500.0})
    assert result.matched is True
    assert result.actual_value == "1500"
    assert result.expected_value == "1000"
    assert result.condition_id == "c0"


def test_boolean_field_equality_ignores_literal_case():
    payload = {"Paid": True, "Refunded": False}
    for literal in ("True", "true", "TRUE"):
        assert evaluate_conditions([_cond("Paid", "equals", literal)], payload).matched
    assert evaluate_conditions([_cond("Refunded", "equals", "False")], payload).matched
    assert not evaluate_conditions([_cond("Paid", "equals", "False")], payload).matched
    assert evaluate_conditions([_cond("Paid", "notequals", "False")], payload).matched
    # text fields stay case sensitive
    assert not evaluate_conditions([_cond("Flag", "equals", "True")], {"Flag": "true"}).matched
