"""branchsplit - split one large diff into several small branches.

Partition the files changed between two branches into groups, let the
author edit the grouping, then create one branch and commit per group.
"""

__version__ = "0.1.0"

from branchsplit.engine import SplitEngine, create_engine
from branchsplit.models import BranchGroup, SplitConfig, SplitPlan, SplitResult

__all__ = [
    "__version__",
    "SplitEngine",
    "create_engine",
    "BranchGroup",
    "SplitConfig",
    "SplitPlan",
    "SplitResult",
]
