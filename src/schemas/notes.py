"""Schemas for release-notes generation requests and extracted results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_PR_TITLE = "Untitled PR"
DEFAULT_PR_ID = "Unknown"

DEVELOPER_FALLBACK = "No developer notes generated"
MARKETING_FALLBACK = "No marketing notes generated"
CONTRIBUTORS_FALLBACK = "No contributors identified"
RELATED_ISSUES_FALLBACK = "No related issues identified"


class GenerateNotesRequest(BaseModel):
    """Body of a generation request.

    `diff` is optional at the schema level so an absent diff reaches the relay
    and is rejected there with the domain error rather than a 422.
    """

    diff: str | None = None
    title: str = Field(default=DEFAULT_PR_TITLE, alias="prTitle")
    id: str = Field(default=DEFAULT_PR_ID, alias="prId")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, v: object) -> object:
        return DEFAULT_PR_TITLE if v in (None, "") else v

    @field_validator("id", mode="before")
    @classmethod
    def _default_id(cls, v: object) -> object:
        return DEFAULT_PR_ID if v in (None, "") else str(v)


class GenerationErrorResponse(BaseModel):
    """Structured error returned before a stream is opened."""

    error: str
    details: str | None = None


class ExtractedNotes(BaseModel):
    """The four sections recovered from a completed generation."""

    developer: str = DEVELOPER_FALLBACK
    marketing: str = MARKETING_FALLBACK
    contributors: str = CONTRIBUTORS_FALLBACK
    related_issues: str = Field(
        default=RELATED_ISSUES_FALLBACK, alias="relatedIssues"
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_storage(self) -> str:
        """JSON payload stored under `notes-<id>`."""
        return self.model_dump_json(by_alias=True)


class PullRequestItem(BaseModel):
    """A pull request record supplied by the page of PRs being summarized."""

    id: str
    description: str
    diff: str
    url: str = ""

    def to_generation_request(self) -> GenerateNotesRequest:
        return GenerateNotesRequest(diff=self.diff, title=self.description, id=self.id)
