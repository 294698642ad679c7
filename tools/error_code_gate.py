#!/usr/bin/env python3
"""
CI gate for the dotinit error-code contract.

The contract is read statically from dotinit/error_model.py (no
import): the ERROR_CODE_POLICY literal and the `code` attribute of
every exception class. It is compared with docs/error_code_lock.json.
Removing or changing a locked entry fails the gate; additions are
reported as notes.
"""


from pathlib import Path
from typing import Any
import json
import ast
import os


ROOT          = Path(__file__).resolve().parents[1]
MODEL_FILE    = ROOT / "dotinit" / "error_model.py"
LOCK_FILE     = ROOT / "docs" / "error_code_lock.json"
APPROVAL_FILE = ROOT / ".error_code_breaking_change_approved"
OVERRIDE_ENV  = "DOTINIT_ALLOW_ERROR_CODE_BREAK"


def _assigned_name(node: ast.stmt) -> tuple[str | None, ast.expr | None]:
    if isinstance(node, ast.Assign) and len(node.targets) == 1:
        target = node.targets[0]
        if isinstance(target, ast.Name): return target.id, node.value
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return node.target.id, node.value
    return None, None


def _scan_model(text: str) -> tuple[dict[str, Any], dict[str, str]]:
    """Return (policy literal, class name -> code) from module source."""
    tree = ast.parse(text, filename=str(MODEL_FILE))
    policy: dict[str, Any] | None = None
    codes: dict[str, str] = {}
    for node in tree.body:
        name, value = _assigned_name(node)
        if name == "ERROR_CODE_POLICY" and value is not None:
            policy = ast.literal_eval(value)
        if not isinstance(node, ast.ClassDef): continue
        for stmt in node.body:
            attr, expr = _assigned_name(stmt)
            if attr == "code" and expr is not None:
                codes[node.name] = ast.literal_eval(expr)
    if not isinstance(policy, dict):
        raise KeyError(f"ERROR_CODE_POLICY dict not found in {MODEL_FILE}")
    return policy, codes


def current_contract() -> dict[str, Any]:
    policy, codes = _scan_model(MODEL_FILE.read_text(encoding="utf-8"))
    return {
        "schema": "dotinit.error_codes.v1",
        "schema_version": 1,
        "exception_codes": codes,
        "error_code_policy": {
            str(code): {
                "severity": str(meta.get("severity", "")).strip(),
                "category": str(meta.get("category", "")).strip(),
            }
            for code, meta in policy.items() if isinstance(meta, dict)
        },
    }


def _diff(kind: str, locked: dict[str, Any], current: dict[str, Any]
         ) -> tuple[list[str], list[str]]:
    issues = [f"{kind} removed: {k}" for k in locked if k not in current]
    issues += [f"{kind} changed: {k} {v} -> {current[k]}"
               for k, v in locked.items()
               if k in current and current[k] != v]
    notes = [f"new {kind} added: {k}" for k in current if k not in locked]
    return issues, notes


def compare_contracts(lock: dict[str, Any], curr: dict[str, Any]
                     ) -> tuple[list[str], list[str]]:
    lock_classes  = dict(lock.get("exception_codes", {}))
    curr_classes  = dict(curr.get("exception_codes", {}))
    lock_policy   = dict(lock.get("error_code_policy", {}))
    curr_policy   = dict(curr.get("error_code_policy", {}))

    issues, notes = _diff("exception class", lock_classes, curr_classes)
    more_issues, more_notes = _diff("stable error code", lock_policy,
                                    curr_policy)
    issues += more_issues
    notes  += more_notes
    issues += [f"exception code has no policy entry: {name} {code}"
               for name, code in curr_classes.items()
               if code not in curr_policy]
    return issues, notes


def _override_active() -> bool:
    token = os.environ.get(OVERRIDE_ENV, "").strip().lower()
    return token in {"1", "true", "yes"} or APPROVAL_FILE.exists()


def _print_list(title: str, items: list[str]) -> None:
    if not items: return
    print(title)
    for item in items: print(f" - {item}")


def main() -> int:
    lock = json.loads(LOCK_FILE.read_text(encoding="utf-8"))
    issues, notes = compare_contracts(lock, current_contract())

    if not issues:
        print("Error code gate passed.")
        _print_list("Detected additions:", notes)
        return 0
    if _override_active():
        _print_list("Error code gate override active; continuing "
                    "despite breaking changes:", issues)
        return 0
    _print_list("Error code gate failed:", issues)
    _print_list("Non-breaking additions detected:", notes)
    print(f"Set {OVERRIDE_ENV}=1 or add {APPROVAL_FILE.name} to override.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
