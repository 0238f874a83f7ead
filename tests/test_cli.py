"""Tests for the Typer command-line interface."""

import json

import httpx
from typer.testing import CliRunner

from wind_feed import cli

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Test feed</title>
  <item>
    <title>Offshore wind farm planning approval near Cork</title>
    <link>https://news.example/articles/1</link>
    <pubDate>Sat, 17 Oct 2026 09:30:00 GMT</pubDate>
    <description>Approval granted</description>
  </item>
  <item>
    <title>Onshore scheme in Donegal</title>
    <link>https://news.example/articles/2</link>
    <pubDate>Fri, 16 Oct 2026 09:30:00 GMT</pubDate>
    <description>Objections lodged</description>
  </item>
</channel></rss>
"""

runner = CliRunner()


def _write_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""
feeds:
  google_news_feeds:
    - https://feeds.example/wind
cache:
  backend: file
  directory: {tmp_path / "cache"}
enrich:
  images_enabled: false
  ai_enabled: false
logging:
  console: false
""",
        encoding="utf-8",
    )
    return path


def _mock_client(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == "https://feeds.example/wind":
            return httpx.Response(200, text=RSS)
        return httpx.Response(404)

    monkeypatch.setattr(cli, "build_client", lambda cfg: httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_articles_command_refreshes_and_filters(tmp_path, monkeypatch):
    _mock_client(monkeypatch)
    monkeypatch.delenv("CRON_SECRET", raising=False)
    config = _write_config(tmp_path)

    result = runner.invoke(cli.app, ["articles", "--config", str(config), "--province", "Ulster"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["count"] == 1
    assert payload["totalArticles"] == 2
    assert payload["articles"][0]["url"] == "https://news.example/articles/2"
    assert payload["cached"] is False


def test_refresh_then_clear_cache(tmp_path, monkeypatch):
    _mock_client(monkeypatch)
    config = _write_config(tmp_path)

    refreshed = runner.invoke(cli.app, ["refresh", "--config", str(config)])
    assert refreshed.exit_code == 0, refreshed.output
    assert "merged=2" in refreshed.stdout
    assert list((tmp_path / "cache").glob("*.json"))

    cleared = runner.invoke(cli.app, ["clear-cache", "--config", str(config)])
    assert cleared.exit_code == 0
    assert not list((tmp_path / "cache").glob("*.json"))


def test_forced_refresh_with_wrong_secret_exits(tmp_path, monkeypatch):
    _mock_client(monkeypatch)
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    config = _write_config(tmp_path)

    result = runner.invoke(cli.app, ["articles", "--config", str(config), "--force", "--secret", "wrong"])

    assert result.exit_code == 1
