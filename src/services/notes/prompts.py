"""Prompt text for release-notes generation."""

from __future__ import annotations

from schemas.notes import GenerateNotesRequest


NOTES_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates release notes from git diffs."
)

NOTES_INSTRUCTIONS = """Write release notes for the pull request below.

Respond with exactly these four sections, in this order, each starting with
its label on a new line:

DEVELOPER_NOTES: A concise technical summary for developers (what changed and
why, notable implementation details, breaking changes).
MARKETING_NOTES: A short, user-facing description of the benefit, free of
jargon.
CONTRIBUTORS: Authors or reviewers you can identify from the diff, comma
separated. Leave empty if none are visible.
RELATED_ISSUES: Issue or ticket references found in the diff (e.g. #123).
Leave empty if none are visible.

Do not add any other headings or text outside these sections."""


def build_notes_prompt(request: GenerateNotesRequest) -> str:
    """Render the user prompt for one pull request."""
    return (
        f"{NOTES_INSTRUCTIONS}\n\n"
        f"Pull request #{request.id}: {request.title}\n\n"
        f"Diff:\n{request.diff}"
    )
