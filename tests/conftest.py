"""Shared fixtures: sample comment corpora and an in-memory psycopg stand-in."""

import copy
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from formletter.config import ClusteringSettings, Config, ConfigModel
from formletter.ingestion import Comment

FORM_LETTER = (
    "The proposed rule would significantly reduce access to affordable care for rural "
    "families who depend on community health centers and local pharmacies. Please withdraw "
    "this harmful proposal immediately. Thank you, sincerely, concerned citizen"
)

SUPPORT_LETTER = (
    "I strongly support the new transparency requirements because patients deserve clear "
    "pricing information before receiving medical services at any hospital nationwide"
)

FORM_TAIL = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot",
             "golf", "hotel", "india", "juliet", "kilo", "lima"]
SUPPORT_TAIL = ["north", "south", "east", "west", "up", "down",
                "left", "right", "inner", "outer", "upper", "lower"]


def extend(text: str, words: Sequence[str]) -> str:
    """Append words to a text."""
    return " ".join([text, *words]) if words else text


def make_comments(texts: Sequence[str], prefix: str = "c") -> List[Comment]:
    """Comments with sequential ids."""
    return [Comment(id=f"{prefix}{i}", content=text) for i, text in enumerate(texts)]


def nested_family(base: str, tail: Sequence[str], count: int) -> List[str]:
    """Texts that each extend the previous one by a word."""
    return [extend(base, tail[:m]) for m in range(count)]


@pytest.fixture
def settings() -> ClusteringSettings:
    return ClusteringSettings()


@pytest.fixture
def campaign_comments() -> List[Comment]:
    """Two form-letter campaigns plus a few independent comments."""
    texts = (
        [extend(FORM_LETTER, FORM_TAIL[:m]) for m in (0, 1, 2, 1, 0, 2)]
        + [extend(SUPPORT_LETTER, SUPPORT_TAIL[:m]) for m in (0, 1, 0, 1, 2)]
        + [
            "Medicaid cuts will close our clinic in Harlan County.",
            "Please extend the comment period by ninety days.",
            "",
        ]
    )
    return make_comments(texts)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(tmp_path / "config.yaml", config_model=ConfigModel(workspace_root=str(tmp_path / "ws")))


# =============================================================================
# In-memory database
# =============================================================================


class FakeDatabaseError(Exception):
    """Raised by the fake database for constraint violations and injected failures."""


class FakeDatabase:
    """In-memory tables mimicking the clustering schema.

    Understands exactly the statements issued by ``ClusterStore`` and
    ``CommentLoader``; anything else raises so new queries get noticed.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "comments": [],
            "comment_clusters": [],
            "comment_cluster_membership": [],
            "clustering_status": [],
        }
        self.sequences = {"comment_clusters": 0, "clustering_status": 0}
        self.executed: List[str] = []
        self.commits = 0
        self.fail_on: Optional[str] = None

    def add_comment(self, document_id: str, comment_id: str, body: str, attachment_text: Optional[str] = None):
        self.tables["comments"].append({
            "document_id": document_id,
            "id": comment_id,
            "body": body,
            "attachment_text": attachment_text,
            "created_at": len(self.tables["comments"]),
        })

    def snapshot(self):
        return copy.deepcopy((self.tables, self.sequences))

    def restore(self, state) -> None:
        self.tables, self.sequences = state

    def next_id(self, table: str) -> int:
        self.sequences[table] += 1
        return self.sequences[table]

    def rows(self, table: str, document_id: str) -> List[Dict[str, Any]]:
        return [row for row in self.tables[table] if row["document_id"] == document_id]

    def delete(self, table: str, document_id: str) -> int:
        before = len(self.tables[table])
        self.tables[table] = [row for row in self.tables[table] if row["document_id"] != document_id]
        return before - len(self.tables[table])

    def cluster_by_id(self, cluster_id: int) -> Dict[str, Any]:
        for row in self.tables["comment_clusters"]:
            if row["id"] == cluster_id:
                return row
        raise FakeDatabaseError(f"foreign key violation: cluster {cluster_id}")


class FakeCursor:
    """Cursor returning dict rows, like psycopg with ``dict_row``."""

    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self._rows: List[Dict[str, Any]] = []
        self.rowcount = -1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def executemany(self, query: str, params_seq) -> None:
        for params in params_seq:
            self.execute(query, params)

    def execute(self, query: str, params: Sequence[Any] = ()) -> None:
        sql = " ".join(query.split())
        params = list(params)
        db = self.db
        db.executed.append(sql)
        if db.fail_on and db.fail_on in sql:
            raise FakeDatabaseError(f"injected failure on: {db.fail_on}")

        self._rows = []
        self.rowcount = -1

        if sql.startswith("SELECT * FROM clustering_status WHERE document_id = %s AND status = 'completed'"):
            runs = [r for r in db.rows("clustering_status", params[0]) if r["status"] == "completed"]
            runs.sort(key=lambda r: (r["completed_at"], r["id"]), reverse=True)
            self._rows = [dict(r) for r in runs[:1]]

        elif sql.startswith("DELETE FROM "):
            table = sql.split()[2]
            if table == "comment_clusters":
                referenced = {
                    r["cluster_id"] for r in db.tables["comment_cluster_membership"]
                    if r["document_id"] == params[0]
                }
                if referenced:
                    raise FakeDatabaseError("foreign key violation: memberships still reference clusters")
            self.rowcount = db.delete(table, params[0])

        elif sql.startswith("INSERT INTO comment_clusters"):
            document_id, cluster_index, representative, size, threshold, method = params
            for row in db.rows("comment_clusters", document_id):
                if row["cluster_index"] == cluster_index or row["representative_comment_id"] == representative:
                    raise FakeDatabaseError("unique violation on comment_clusters")
            row = {
                "id": db.next_id("comment_clusters"),
                "document_id": document_id,
                "cluster_index": cluster_index,
                "representative_comment_id": representative,
                "cluster_size": size,
                "similarity_threshold": threshold,
                "cluster_method": method,
                "created_at": datetime.now(timezone.utc),
            }
            db.tables["comment_clusters"].append(row)
            self._rows = [{"id": row["id"]}]

        elif sql.startswith("INSERT INTO comment_cluster_membership"):
            document_id, comment_id, cluster_id, is_rep, score = params
            db.cluster_by_id(cluster_id)
            for row in db.rows("comment_cluster_membership", document_id):
                if row["comment_id"] == comment_id:
                    raise FakeDatabaseError(f"duplicate key: comment {comment_id}")
            db.tables["comment_cluster_membership"].append({
                "document_id": document_id,
                "comment_id": comment_id,
                "cluster_id": cluster_id,
                "is_representative": is_rep,
                "similarity_score": score,
            })
            self.rowcount = 1

        elif sql.startswith("INSERT INTO clustering_status"):
            (document_id, total, clusters, reps, dups, threshold, min_size, method, completed_at) = params
            row = {
                "id": db.next_id("clustering_status"),
                "document_id": document_id,
                "total_comments": total,
                "total_clusters": clusters,
                "representative_count": reps,
                "duplicates_filtered": dups,
                "similarity_threshold": threshold,
                "min_cluster_size": min_size,
                "cluster_method": method,
                "status": "completed",
                "created_at": datetime.now(timezone.utc),
                "completed_at": completed_at,
            }
            db.tables["clustering_status"].append(row)
            self._rows = [{"id": row["id"]}]

        elif sql.startswith("SELECT comment_id FROM comment_cluster_membership"):
            self._rows = [
                {"comment_id": r["comment_id"]}
                for r in db.rows("comment_cluster_membership", params[0])
                if r["is_representative"]
            ]

        elif sql.startswith("SELECT cc.cluster_size FROM comment_cluster_membership"):
            document_id, comment_id = params
            self._rows = [
                {"cluster_size": db.cluster_by_id(r["cluster_id"])["cluster_size"]}
                for r in db.rows("comment_cluster_membership", document_id)
                if r["comment_id"] == comment_id
            ]

        elif sql.startswith("SELECT m.comment_id, cc.cluster_size"):
            self._rows = [
                {"comment_id": r["comment_id"], "cluster_size": db.cluster_by_id(r["cluster_id"])["cluster_size"]}
                for r in db.rows("comment_cluster_membership", params[0])
            ]

        elif sql.startswith("SELECT is_representative FROM comment_cluster_membership"):
            document_id, comment_id = params
            self._rows = [
                {"is_representative": True}
                for r in db.rows("comment_cluster_membership", document_id)
                if r["comment_id"] == comment_id and r["is_representative"]
            ]

        elif sql.startswith("SELECT * FROM comment_cluster_membership"):
            document_id, comment_id = params
            self._rows = [
                dict(r) for r in db.rows("comment_cluster_membership", document_id)
                if r["comment_id"] == comment_id
            ]

        elif sql.startswith("SELECT * FROM comment_clusters"):
            rows = sorted(db.rows("comment_clusters", params[0]), key=lambda r: (-r["cluster_size"], r["cluster_index"]))
            self._rows = [dict(r) for r in rows]

        elif sql.startswith("SELECT cluster_size, COUNT(*) AS cluster_count"):
            counts: Dict[int, int] = {}
            for r in db.rows("comment_clusters", params[0]):
                counts[r["cluster_size"]] = counts.get(r["cluster_size"], 0) + 1
            self._rows = [{"cluster_size": size, "cluster_count": n} for size, n in counts.items()]

        elif sql.startswith("SELECT MAX(cluster_size) AS largest"):
            sizes = [r["cluster_size"] for r in db.rows("comment_clusters", params[0])]
            self._rows = [{"largest": max(sizes) if sizes else None}]

        elif sql.startswith("SELECT COUNT(*) AS count FROM comments"):
            self._rows = [{"count": len(db.rows("comments", params[0]))}]

        elif sql.startswith("SELECT c.id, c.body, c.attachment_text FROM comments c"):
            rows = db.rows("comments", params[0])
            if "is_representative = TRUE" in sql:
                reps = {
                    r["comment_id"] for r in db.rows("comment_cluster_membership", params[0])
                    if r["is_representative"]
                }
                rows = [r for r in rows if r["id"] in reps]
            rows = sorted(rows, key=lambda r: (r["created_at"], r["id"]))
            if "LIMIT %s" in sql:
                rows = rows[:params[1]]
            self._rows = [{"id": r["id"], "body": r["body"], "attachment_text": r["attachment_text"]} for r in rows]

        else:
            raise NotImplementedError(f"FakeCursor does not understand: {sql}")


class FakeConnection:
    """Connection exposing the psycopg surface the store uses."""

    def __init__(self, db: Optional[FakeDatabase] = None) -> None:
        self.db = db or FakeDatabase()

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.db)

    @contextmanager
    def transaction(self):
        state = self.db.snapshot()
        try:
            yield self
        except BaseException:
            self.db.restore(state)
            raise

    def commit(self) -> None:
        self.db.commits += 1

    def rollback(self) -> None:
        pass


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def conn(fake_db) -> FakeConnection:
    return FakeConnection(fake_db)
