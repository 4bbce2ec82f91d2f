"""Tests for the facetscope CLI."""

import json
from datetime import datetime, timezone

import pytest

from facetscope.cli import main
from facetscope.database.sqlite_client import session_context


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "facetscope.config.yaml"
    path.write_text(f'database:\n  sqlite_path: "{tmp_path / "explore.db"}"\n', encoding="utf-8")
    return path


@pytest.fixture
def seeded(config_path, tmp_path, make_builder, capsys):
    assert main(["--config", str(config_path), "init-db"]) == 0
    with session_context(str(tmp_path / "explore.db")) as session:
        builder = make_builder(session)
        builder.event(
            "ev-1", "Coding Night", datetime(2024, 3, 5, 18, tzinfo=timezone.utc),
            tags=[("event_type", "online"), ("focus", "coding")],
        )
        builder.event("ev-2", "Draft", datetime(2024, 3, 6, 18, tzinfo=timezone.utc), published=False)
        session.commit()
    capsys.readouterr()
    return config_path


def test_init_db_creates_database(config_path, tmp_path, capsys):
    assert main(["--config", str(config_path), "init-db"]) == 0
    assert (tmp_path / "explore.db").exists()
    assert "Initialized database" in capsys.readouterr().out


def test_rebuild_then_explore(seeded, capsys):
    assert main(["--config", str(seeded), "rebuild-index", "--entity", "events"]) == 0
    assert "events: 2 index entries" in capsys.readouterr().out

    code = main([
        "--config", str(seeded),
        "explore", "events",
        "--query", "filter[type]=online",
        "--now", "2024-03-04T10:00:00Z",
    ])
    payload = json.loads(capsys.readouterr().out)

    assert code == 0
    assert payload["entity_type"] == "events"
    assert payload["is_logged_in"] is False
    assert payload["result"]["total_matching_count"] == 1
    assert [item["id"] for item in payload["result"]["items"]] == ["ev-1"]
    assert {o["slug"]: o["count"] for o in payload["facets"]["focus"]}["coding"] == 1


def test_explore_with_profile_id_is_logged_in(seeded, capsys):
    main(["--config", str(seeded), "rebuild-index"])
    capsys.readouterr()

    assert main(["--config", str(seeded), "explore", "events", "--profile-id", "p-1", "--now", "2024-03-04T10:00:00Z"]) == 0
    assert json.loads(capsys.readouterr().out)["is_logged_in"] is True


def test_invalid_filter_exits_with_client_error(seeded, capsys):
    code = main(["--config", str(seeded), "explore", "events", "--query", "filter[type]=webinar"])
    captured = capsys.readouterr()

    assert code == 2
    assert json.loads(captured.err.strip().splitlines()[-1])["status_code"] == 400
    assert captured.out == ""


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["--config", str(tmp_path / "nope.yaml"), "init-db"])
