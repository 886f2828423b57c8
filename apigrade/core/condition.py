from __future__ import annotations

from typing import Any

_VALID_OPS = {"eq", "ne", "in", "gt", "gte"}
_NUMERIC_OPS = {"gt", "gte"}


def validate_condition(condition: dict) -> list[str]:
    """Return a list of error strings if the condition tree is malformed."""
    errors: list[str] = []
    _validate_node(condition, errors, path="condition")
    return errors


def _validate_node(node: dict, errors: list[str], path: str) -> None:
    if not isinstance(node, dict):
        errors.append(f"{path}: expected dict, got {type(node).__name__}")
        return

    for combinator in ("all", "any"):
        if combinator in node:
            children = node[combinator]
            if not isinstance(children, list):
                errors.append(f"{path}.{combinator}: expected list, got {type(children).__name__}")
                return
            if not children:
                errors.append(f"{path}.{combinator}: must not be empty")
            for i, child in enumerate(children):
                _validate_node(child, errors, path=f"{path}.{combinator}[{i}]")
            return

    # Leaf node: must have fact, op, value
    for key in ("fact", "op", "value"):
        if key not in node:
            errors.append(f"{path}: missing required key '{key}'")
    op = node.get("op")
    if "op" in node and op not in _VALID_OPS:
        errors.append(f"{path}: unknown operator '{op}' (valid: {sorted(_VALID_OPS)})")
    if op == "in":
        val = node.get("value")
        if val is not None and not isinstance(val, (list, tuple, set)):
            errors.append(f"{path}: 'in' operator requires a list value, got {type(val).__name__}")
    if op in _NUMERIC_OPS:
        val = node.get("value")
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            errors.append(f"{path}: '{op}' operator requires a numeric value, got {type(val).__name__}")


def evaluate_condition(condition: dict, facts: dict[str, Any]) -> bool:
    """Evaluate an all/any condition tree against a flat fact map.

    Missing facts cause the leaf condition to evaluate to False.
    """
    if "all" in condition:
        return all(evaluate_condition(c, facts) for c in condition["all"])
    if "any" in condition:
        return any(evaluate_condition(c, facts) for c in condition["any"])

    fact_key = condition["fact"]
    op = condition["op"]
    expected = condition["value"]

    # Explicit contract: missing fact → False
    if fact_key not in facts:
        return False
    actual = facts[fact_key]

    if op == "eq":
        return actual == expected
    if op == "ne":
        return actual != expected
    if op == "in":
        return actual in expected
    if op in _NUMERIC_OPS:
        if isinstance(actual, bool) or not isinstance(actual, (int, float)):
            return False
        return actual > expected if op == "gt" else actual >= expected

    raise ValueError(f"Unknown operator: {op}")


def extract_fact_keys(condition: dict) -> set[str]:
    """Walk a condition tree and collect all referenced fact keys."""
    keys: set[str] = set()
    if "all" in condition:
        for c in condition["all"]:
            keys |= extract_fact_keys(c)
    elif "any" in condition:
        for c in condition["any"]:
            keys |= extract_fact_keys(c)
    elif "fact" in condition:
        keys.add(condition["fact"])
    return keys
