"""YAML encoding of split plans for editing by hand."""

import yaml

from branchsplit.errors import PlanParseError
from branchsplit.models import BranchGroup, SplitPlan


PLAN_KEY = "branches"

PLAN_HEADER = """\
# branchsplit plan
#
# Each entry under 'branches' becomes one new branch created from the base
# branch. 'name' is the branch name and 'files' lists the paths whose
# content is copied from the source branch.
#
#   - Delete an entry to skip that branch.
#   - Delete paths from 'files' to leave them out.
#   - Rename or reorder entries freely.
#   - An entry with no files is skipped.
#
# Lines starting with '#' are ignored.
"""


def encode_plan(plan: SplitPlan, header: bool = True) -> str:
    """Render a plan as editable YAML."""
    data = {
        PLAN_KEY: [
            {"name": group.name, "files": list(group.files)}
            for group in plan.groups
        ]
    }
    body = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return f"{PLAN_HEADER}\n{body}" if header else body


def _scalar(value, what: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise PlanParseError(f"{what} must be a string, got {value!r}")
    return str(value)


def _decode_group(index: int, entry) -> BranchGroup:
    where = f"{PLAN_KEY}[{index}]"
    if not isinstance(entry, dict):
        raise PlanParseError(f"{where} must be a mapping with 'name' and 'files'")
    if entry.get("name") is None:
        raise PlanParseError(f"{where} is missing 'name'")

    name = _scalar(entry["name"], f"{where}.name")

    files = entry.get("files")
    if files is None:
        files = []
    if not isinstance(files, list):
        raise PlanParseError(f"{where}.files must be a list")

    return BranchGroup(
        name=name,
        files=[_scalar(f, f"{where}.files[{i}]") for i, f in enumerate(files)],
    )


def decode_plan(text: str) -> SplitPlan:
    """Parse plan YAML back into a plan."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PlanParseError(f"Plan is not valid YAML: {e}")

    # Everything deleted, comments included
    if data is None:
        return SplitPlan()

    if not isinstance(data, dict) or PLAN_KEY not in data:
        raise PlanParseError(f"Plan must be a mapping with a '{PLAN_KEY}' list")

    entries = data[PLAN_KEY]
    if entries is None:
        return SplitPlan()
    if not isinstance(entries, list):
        raise PlanParseError(f"'{PLAN_KEY}' must be a list")

    return SplitPlan(groups=[_decode_group(i, e) for i, e in enumerate(entries)])
