"""
Role classification from employee titles and free-text department labels.

Keywords are substring matches on the lowercased label, checked BOH first,
then EXEC; anything else is FOH. Beyond plain "boh", the BOH list also
matches kitchen, chef, cook, dish and prep labels. "gm" is matched as a
whole word only, so labels that merely contain the letters (e.g.
"Dogma Lounge") stay FOH.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Set, Tuple

from tippool.models import Role, ShiftRecord

# (employee display name, department label) -> role
Classifier = Callable[[str, str], Role]

_EXEC_TITLES = ("CEO", "COO", "Chief Operations Officer")
_C_SUITE = re.compile(r"\bC[A-Z]{2}\b")

_BOH_KEYWORDS: Tuple[str, ...] = (
    "boh",
    "back of house",
    "back-of-house",
    "kitchen",
    "chef",
    "cook",
    "dish",
    "prep",
)
_EXEC_KEYWORDS: Tuple[str, ...] = (
    "exec",
    "manager",
    "management",
)
_GM = re.compile(r"\bgm\b")


def normalize_label(label: str) -> str:
    return " ".join((label or "").strip().lower().split())


def classify_title(employee: str) -> Role | None:
    if not employee:
        return None
    if any(title in employee for title in _EXEC_TITLES) or _C_SUITE.search(employee):
        return Role.EXEC
    return None


def classify_department(department: str) -> Role:
    label = normalize_label(department)
    if not label:
        return Role.FOH
    for keyword in _BOH_KEYWORDS:
        if keyword in label:
            return Role.BOH
    for keyword in _EXEC_KEYWORDS:
        if keyword in label:
            return Role.EXEC
    if _GM.search(label):
        return Role.EXEC
    return Role.FOH


def classify(employee: str, department: str) -> Role:
    """Executive titles win over the department; unknown departments are FOH."""
    return classify_title(employee) or classify_department(department)


def analyze_departments(shifts: Iterable[ShiftRecord], classifier: Classifier = classify) -> Dict[str, object]:
    """
    Distinct employees per department label and per role class.

    Meant for an operator to sanity-check the classifier against a new
    export before running an allocation.
    """
    by_department: Dict[str, Set[str]] = defaultdict(set)
    by_role: Dict[Role, Set[str]] = defaultdict(set)
    department_roles: Dict[str, Role] = {}
    for shift in shifts:
        by_department[shift.department].add(shift.employee_id)
        role = classifier(shift.employee_id, shift.department)
        by_role[role].add(shift.employee_id)
        department_roles.setdefault(shift.department, classify_department(shift.department))

    departments: List[Dict[str, object]] = []
    for department in sorted(by_department):
        departments.append({
            "department": department,
            "employees": len(by_department[department]),
            "role": department_roles[department].value,
        })
    return {
        "departments": departments,
        "role_counts": {role.value: len(by_role.get(role, ())) for role in Role},
    }
