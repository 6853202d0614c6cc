"""Tests for the release-notes command line tool."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

import cli
from schemas.notes_streaming import DoneFrame, TokenFrame
from services.notes.client import ReleaseNotesClient


TOKENS = (
    "DEVELOPER_NOTES: Fixed bug. ",
    "MARKETING_NOTES: Faster app. ",
    "CONTRIBUTORS: alice ",
    "RELATED_ISSUES: #42",
)


@pytest.fixture
def cache_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}"


@pytest.fixture
def fake_relay(monkeypatch: pytest.MonkeyPatch) -> None:
    body = ("".join(TokenFrame(t).to_sse() for t in TOKENS) + DoneFrame().to_sse()).encode()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    def build_client(base_url: str) -> ReleaseNotesClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)
        return ReleaseNotesClient(http_client=http)

    monkeypatch.setattr(cli, "ReleaseNotesClient", build_client)


def test_generate_show_list_clear(
    tmp_path: Path,
    cache_url: str,
    fake_relay: None,
    capsys: pytest.CaptureFixture[str],
) -> None:
    diff_file = tmp_path / "change.diff"
    diff_file.write_text("diff --git a/x b/x\n+fix\n", encoding="utf-8")
    base = ["--cache-url", cache_url, "--api-url", "http://relay.test"]

    assert cli.main([*base, "generate", "--diff-file", str(diff_file), "--id", "42"]) == 0
    generated = capsys.readouterr().out
    # Live output followed by the extracted sections
    assert generated.startswith("".join(TOKENS))
    assert "Developer Notes:\nFixed bug." in generated
    assert "Related Issues:\n#42" in generated

    assert cli.main([*base, "show", "--id", "42"]) == 0
    assert "Contributors:\nalice" in capsys.readouterr().out

    assert cli.main([*base, "list"]) == 0
    assert capsys.readouterr().out.split() == ["notes-42"]

    assert cli.main([*base, "clear", "--id", "42"]) == 0
    assert cli.main([*base, "show", "--id", "42"]) == 1


def test_show_missing_entry_returns_nonzero(cache_url: str) -> None:
    assert cli.main(["--cache-url", cache_url, "show", "--id", "404"]) == 1


def test_generate_requires_diff_file(cache_url: str) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--cache-url", cache_url, "generate"])
