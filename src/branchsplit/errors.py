"""Exception types for branchsplit."""


class BranchSplitError(Exception):
    """Base class for all branchsplit failures."""

    pass


class ConfigError(BranchSplitError):
    """Invalid run configuration."""

    pass


class GitError(BranchSplitError):
    """Git operation failed."""

    pass


class BranchNotFoundError(GitError):
    """A named branch could not be resolved."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(f"Branch not found: {name}")


class PlanParseError(BranchSplitError):
    """Edited plan text is not a well-formed plan."""

    pass


class EditorError(BranchSplitError):
    """Editing the plan failed."""

    pass


class MaterializeError(BranchSplitError):
    """Creating a split branch failed."""

    pass
