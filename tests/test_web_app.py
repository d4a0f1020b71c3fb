"""Tests for the FastAPI web application."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from docdedup.web.app import _ensure_db_parent, _resolve_db_path, app


client = TestClient(app)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    (root / "a.md").write_text("same body", encoding="utf-8")
    (root / "b.md").write_text("same body", encoding="utf-8")
    (root / "c.md").write_text("other body", encoding="utf-8")
    return root


class TestHelperFunctions:
    """Tests for helper functions."""

    def test_resolve_db_path_with_none(self) -> None:
        assert isinstance(_resolve_db_path(None), Path)

    def test_resolve_db_path_with_path(self, tmp_path: Path) -> None:
        db_path = tmp_path / "custom.db"
        assert _resolve_db_path(db_path) == db_path

    def test_ensure_db_parent_creates_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "subdir" / "test.db"
        _ensure_db_parent(db_path)
        assert db_path.parent.exists()


class TestScanEndpoint:
    """Tests for POST /scan."""

    def test_exact_scan(self, vault: Path, tmp_path: Path) -> None:
        response = client.post(
            "/scan", json={"root": str(vault), "db": str(tmp_path / "cache.db")}
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["groups"]) == 1
        group = data["groups"][0]
        assert group["match_type"] == "exact"
        assert [m["path"] for m in group["members"]] == ["a.md", "b.md"]
        assert data["stats"]["scanned"] == 3

    def test_near_scan(self, tmp_path: Path) -> None:
        root = tmp_path / "notes"
        root.mkdir()
        (root / "a.md").write_text("project kickoff agenda and action items")
        (root / "b.md").write_text("project kickoff agenda and action items!")
        response = client.post(
            "/scan",
            json={"root": str(root), "mode": "near", "db": str(tmp_path / "cache.db")},
        )

        assert response.status_code == 200
        group = response.json()["groups"][0]
        assert group["group_key"] == "near-001"
        assert group["similarity_score"] >= 80

    def test_missing_root(self, tmp_path: Path) -> None:
        response = client.post(
            "/scan", json={"root": str(tmp_path / "missing"), "db": str(tmp_path / "c.db")}
        )
        assert response.status_code == 404

    def test_invalid_threshold(self, vault: Path, tmp_path: Path) -> None:
        response = client.post(
            "/scan",
            json={"root": str(vault), "threshold": 150, "db": str(tmp_path / "c.db")},
        )
        assert response.status_code == 422

    def test_invalid_mode(self, vault: Path, tmp_path: Path) -> None:
        response = client.post(
            "/scan", json={"root": str(vault), "mode": "fuzzy", "db": str(tmp_path / "c.db")}
        )
        assert response.status_code == 422


class TestStatsEndpoint:
    def test_without_database(self, vault: Path, tmp_path: Path) -> None:
        response = client.get(
            "/stats", params={"root": str(vault), "db": str(tmp_path / "none.db")}
        )
        assert response.status_code == 200
        assert response.json() == {"cache_size": 0, "total_documents": 0, "memo_size": 0}

    def test_after_scan(self, vault: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "cache.db"
        client.post("/scan", json={"root": str(vault), "db": str(db_path)})

        response = client.get("/stats", params={"root": str(vault), "db": str(db_path)})

        assert response.json() == {"cache_size": 3, "total_documents": 3, "memo_size": 0}


class TestClearCacheEndpoint:
    def test_database_not_found(self, tmp_path: Path) -> None:
        response = client.post("/cache/clear", json={"db": str(tmp_path / "none.db")})
        assert response.status_code == 404

    def test_clear(self, vault: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "cache.db"
        client.post("/scan", json={"root": str(vault), "db": str(db_path)})

        response = client.post("/cache/clear", json={"db": str(db_path)})

        assert response.json() == {"status": "ok", "removed": 3}


class TestResolveEndpoint:
    def test_tag(self, vault: Path) -> None:
        response = client.post(
            "/resolve",
            json={"root": str(vault), "paths": ["a.md", "b.md"], "keep": "a.md"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "match_type": "exact", "changed": ["b.md"]}
        assert (vault / "b.md").read_text().startswith("#duplicate\n\n")

    def test_trash(self, vault: Path) -> None:
        response = client.post(
            "/resolve",
            json={"root": str(vault), "paths": ["a.md", "b.md"], "keep": "b.md", "action": "trash"},
        )

        assert response.json()["changed"] == ["a.md"]
        assert not (vault / "a.md").exists()
        assert (vault / ".trash" / "a.md").exists()

    def test_keep_not_in_paths(self, vault: Path) -> None:
        response = client.post(
            "/resolve", json={"root": str(vault), "paths": ["a.md", "b.md"], "keep": "c.md"}
        )
        assert response.status_code == 400

    def test_needs_two_existing_files(self, vault: Path) -> None:
        response = client.post(
            "/resolve", json={"root": str(vault), "paths": ["a.md", "zz.md"], "keep": "a.md"}
        )
        assert response.status_code == 400

    def test_reports_requested_match_type(self, vault: Path) -> None:
        response = client.post(
            "/resolve",
            json={
                "root": str(vault),
                "paths": ["a.md", "c.md"],
                "keep": "a.md",
                "match_type": "near",
            },
        )

        assert response.status_code == 200
        assert response.json()["match_type"] == "near"
        assert response.json()["changed"] == ["c.md"]

    def test_rejects_unknown_match_type(self, vault: Path) -> None:
        response = client.post(
            "/resolve",
            json={"root": str(vault), "paths": ["a.md", "b.md"], "keep": "a.md", "match_type": "fuzzy"},
        )
        assert response.status_code == 422
