"""
Error types raised by the services
HTTP mapping lives in main.py
"""

GENERATION_FAILED_MESSAGE = "An error occurred while generating the brief. Please try again."


class BriefDeskError(Exception):
    """Base class for service errors."""


class GenerationError(BriefDeskError):
    """Brief generation failed (network, empty response or malformed JSON)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
        self.user_message = GENERATION_FAILED_MESSAGE


class GenerationInProgress(BriefDeskError):
    """A brief generation is already running for this wizard."""


class AuthRequired(BriefDeskError):
    """The action needs a logged-in user."""


class WizardStateError(BriefDeskError):
    """The wizard action is not allowed in the current step."""


class ProjectStateError(BriefDeskError):
    """The project is not in a status that allows the action."""
