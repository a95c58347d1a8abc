"""Error types shared by the transit engine and the API layer."""


class TransitError(Exception):
    """Base class for engine errors."""


class NotFound(TransitError):
    """An unknown stop, route or vehicle identifier was requested."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class ConfigInvalid(TransitError):
    """A network document violates the model invariants and was rejected."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        summary = "; ".join(self.problems[:5])
        if len(self.problems) > 5:
            summary += f" (+{len(self.problems) - 5} more)"
        super().__init__(f"network configuration rejected: {summary}")


class PlanTimeout(TransitError):
    """Trip composition ran out of its time budget or was cancelled."""
