"""Database initialization and schema management."""

from typing import Any, Dict

from psycopg.errors import DatabaseError
from rich.console import Console

from .connection import get_connection

console = Console()


SCHEMA_SQL = """
-- Comments, written by the ingestion step; clustering only reads them
CREATE TABLE IF NOT EXISTS comments (
    document_id TEXT NOT NULL,
    id TEXT NOT NULL,
    body TEXT,
    attachment_text TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (document_id, id)
);

-- Comment clusters
CREATE TABLE IF NOT EXISTS comment_clusters (
    id SERIAL PRIMARY KEY,
    document_id TEXT NOT NULL,
    cluster_index INTEGER NOT NULL,
    representative_comment_id TEXT NOT NULL,
    cluster_size INTEGER NOT NULL CHECK (cluster_size >= 1),
    similarity_threshold DOUBLE PRECISION NOT NULL CHECK (similarity_threshold >= 0 AND similarity_threshold <= 1),
    cluster_method TEXT NOT NULL DEFAULT 'fast-ngram',
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (document_id, cluster_index),
    UNIQUE (document_id, representative_comment_id)
);

-- Cluster membership, one row per clustered comment
CREATE TABLE IF NOT EXISTS comment_cluster_membership (
    document_id TEXT NOT NULL,
    comment_id TEXT NOT NULL,
    cluster_id INTEGER NOT NULL REFERENCES comment_clusters(id) ON DELETE CASCADE,
    is_representative BOOLEAN NOT NULL DEFAULT FALSE,
    similarity_score DOUBLE PRECISION,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (document_id, comment_id)
);

-- Clustering run metadata
CREATE TABLE IF NOT EXISTS clustering_status (
    id SERIAL PRIMARY KEY,
    document_id TEXT NOT NULL,
    total_comments INTEGER NOT NULL,
    total_clusters INTEGER NOT NULL,
    representative_count INTEGER NOT NULL,
    duplicates_filtered INTEGER NOT NULL,
    similarity_threshold DOUBLE PRECISION NOT NULL,
    min_cluster_size INTEGER NOT NULL,
    cluster_method TEXT NOT NULL DEFAULT 'fast-ngram',
    status TEXT NOT NULL DEFAULT 'completed' CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    completed_at TIMESTAMPTZ
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_comment_clusters_document ON comment_clusters(document_id);
CREATE INDEX IF NOT EXISTS idx_cluster_membership_cluster ON comment_cluster_membership(cluster_id);
CREATE INDEX IF NOT EXISTS idx_cluster_membership_representative
    ON comment_cluster_membership(document_id, is_representative);
CREATE INDEX IF NOT EXISTS idx_clustering_status_document ON clustering_status(document_id, status);
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        console.print(f"[red]Database connection failed: {e}[/red]")
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
            console.print("Database schema initialized successfully")
    except DatabaseError as e:
        console.print(f"[red]Failed to initialize database schema: {e}[/red]")
        raise
