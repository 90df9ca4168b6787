"""Pipeline outcomes that stop a deployment."""


class DeployError(Exception):
    """Fatal failure of a pipeline stage. Completed stages are left in place."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message

    def __str__(self):
        return f"[{self.stage}] {self.message}"


class CollectionError(ValueError):
    """Parameter collection ran out of attempts or input."""


class DeploymentCancelled(Exception):
    """The operator declined to continue."""
