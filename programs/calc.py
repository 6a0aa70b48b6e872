#!/usr/bin/env python3
"""AST-based calculator route.

Point a keyword at this file to evaluate arithmetic in the browser:

  routes:
    calc:
      path: "/opt/keyhop/programs/calc.py"
      min_args: 1

Prints {"body": "<result>"} on success. Errors go to stderr with exit code 2,
which keyhop reports as a failed hop.
"""
from __future__ import annotations

import ast
import json
import operator
import sys

OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.FloorDiv: operator.floordiv,
    ast.Pow: operator.pow,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


class CalcError(ValueError):
    pass


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.BinOp) and type(node.op) in OPS:
        return float(OPS[type(node.op)](_eval_node(node.left), _eval_node(node.right)))
    if isinstance(node, ast.UnaryOp) and type(node.op) in OPS:
        return float(OPS[type(node.op)](_eval_node(node.operand)))
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return float(node.value)
    raise CalcError("unsupported_expression")


def evaluate(expr: str) -> float:
    if not expr.strip():
        raise CalcError("missing_expression")
    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as exc:
        raise CalcError("invalid_expression") from exc
    return _eval_node(tree.body)


def format_result(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def main(argv: list[str]) -> int:
    expr = " ".join(argv[1:])
    try:
        result = evaluate(expr)
    except (CalcError, ZeroDivisionError, OverflowError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 2
    print(json.dumps({"body": format_result(result)}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
