"""Partition changed files into fixed-size branch groups."""

from branchsplit.models import DEFAULT_PREFIX, BranchGroup, SplitPlan


def group_name(prefix: str, index: int) -> str:
    """Name of the group at 1-based ``index``."""
    return f"{prefix}_{index}"


def partition(files: list[str], size: int, prefix: str = DEFAULT_PREFIX) -> SplitPlan:
    """
    Chunk ``files`` into groups of at most ``size`` files, in order.

    Group ``i`` (0-based) holds ``files[i * size:(i + 1) * size]`` and is
    named ``<prefix>_<i + 1>``. ``size`` must be at least 1.
    """
    groups = [
        BranchGroup(name=group_name(prefix, i + 1), files=list(files[start:start + size]))
        for i, start in enumerate(range(0, len(files), size))
    ]
    return SplitPlan(groups=groups)
