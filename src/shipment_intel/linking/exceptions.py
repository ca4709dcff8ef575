"""
Linking exceptions.

Terminal non-matches (no identifiers, no matching shipment, low confidence)
and conflicts are reported as LinkOutcome values, never raised. The only
exception the linking service produces is CollaboratorFailure, and it is
caught inside the service.
"""


class LinkingError(Exception):
    """Base exception for linking errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class CollaboratorFailure(LinkingError):
    """
    A side-effect collaborator failed after the primary link decision.

    Milestone recording, workflow transitions, status upgrades and field
    propagation raise this; the primary link result still stands.
    """

    def __init__(self, collaborator: str, message: str, details: dict = None):
        self.collaborator = collaborator
        super().__init__(message, details)

    def __str__(self):
        return f"{self.collaborator}: {super().__str__()}"
