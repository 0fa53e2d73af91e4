from pydantic import BaseModel, Field


class WizardEvent(BaseModel):
    """Emitted by the controller's stream() loop for progress reporting.

    The CLI logs these; a web front end can forward them as-is.
    """

    step: str    # e.g. "generate_image", "next_page", "complete"
    progress: float = Field(ge=0.0, le=1.0)
    message: str
    payload: dict | None = None
