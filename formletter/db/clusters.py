"""Cluster storage and lookup."""

from datetime import datetime
from typing import Dict, List, Optional, Set

import pendulum
from psycopg import Connection

from ..clustering.models import ClusteringResult, ClusteringSummary
from ..models import ClusteringRun, ClusterMembership, CommentCluster


class ClusterStore:
    """Persist clustering results and answer lookups against them.

    All state is scoped by ``document_id``. A document has at most one
    completed clustering run; saving a new result replaces the old one in the
    same transaction.
    """

    def get_completed_run(self, conn: Connection, document_id: str) -> Optional[ClusteringRun]:
        """Most recent completed run for a document, if any."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM clustering_status
                WHERE document_id = %s AND status = 'completed'
                ORDER BY completed_at DESC, id DESC
                LIMIT 1
                """,
                (document_id,),
            )
            row = cur.fetchone()
        return ClusteringRun(**row) if row else None

    def has_completed_run(self, conn: Connection, document_id: str) -> bool:
        return self.get_completed_run(conn, document_id) is not None

    def _delete_document(self, cur, document_id: str) -> int:
        """Delete all clustering rows for a document. Returns clusters removed."""
        cur.execute(
            "DELETE FROM comment_cluster_membership WHERE document_id = %s",
            (document_id,),
        )
        cur.execute(
            "DELETE FROM comment_clusters WHERE document_id = %s",
            (document_id,),
        )
        removed = cur.rowcount
        cur.execute(
            "DELETE FROM clustering_status WHERE document_id = %s",
            (document_id,),
        )
        return removed

    def clear(self, conn: Connection, document_id: str) -> int:
        """
        Remove a document's clustering state.

        Returns:
            Number of clusters removed
        """
        with conn.transaction():
            with conn.cursor() as cur:
                removed = self._delete_document(cur, document_id)
        conn.commit()
        return removed

    def save_result(
        self,
        conn: Connection,
        document_id: str,
        result: ClusteringResult,
        completed_at: Optional[datetime] = None,
    ) -> ClusteringRun:
        """
        Replace a document's clustering state with a new result.

        Prior rows are deleted and the clusters, memberships and run metadata
        are inserted inside one transaction. Any error rolls the whole block
        back, leaving the previous state in place, and is re-raised.

        Returns:
            The stored run metadata
        """
        if completed_at is None:
            completed_at = pendulum.now("UTC")

        summary = result.summary(completed_at=completed_at)

        with conn.transaction():
            with conn.cursor() as cur:
                self._delete_document(cur, document_id)

                for cluster in result.clusters:
                    cur.execute(
                        """
                        INSERT INTO comment_clusters (
                            document_id, cluster_index, representative_comment_id,
                            cluster_size, similarity_threshold, cluster_method
                        ) VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING id
                        """,
                        (
                            document_id,
                            cluster.cluster_index,
                            cluster.representative_id,
                            cluster.size,
                            result.similarity_threshold,
                            result.cluster_method,
                        ),
                    )
                    cluster_id = cur.fetchone()["id"]

                    cur.executemany(
                        """
                        INSERT INTO comment_cluster_membership (
                            document_id, comment_id, cluster_id,
                            is_representative, similarity_score
                        ) VALUES (%s, %s, %s, %s, %s)
                        """,
                        [
                            (
                                document_id,
                                member.comment.id,
                                cluster_id,
                                member.comment.id == cluster.representative_id,
                                member.similarity,
                            )
                            for member in cluster.members
                        ],
                    )

                cur.execute(
                    """
                    INSERT INTO clustering_status (
                        document_id, total_comments, total_clusters,
                        representative_count, duplicates_filtered,
                        similarity_threshold, min_cluster_size, cluster_method,
                        status, completed_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'completed', %s)
                    RETURNING id
                    """,
                    (
                        document_id,
                        summary.total_comments,
                        summary.total_clusters,
                        summary.representative_count,
                        summary.duplicates_filtered,
                        summary.similarity_threshold,
                        summary.min_cluster_size,
                        summary.cluster_method,
                        completed_at,
                    ),
                )
                run_id = cur.fetchone()["id"]

        conn.commit()

        return ClusteringRun(
            id=run_id,
            document_id=document_id,
            total_comments=summary.total_comments,
            total_clusters=summary.total_clusters,
            representative_count=summary.representative_count,
            duplicates_filtered=summary.duplicates_filtered,
            similarity_threshold=summary.similarity_threshold,
            min_cluster_size=summary.min_cluster_size,
            cluster_method=summary.cluster_method,
            status="completed",
            completed_at=completed_at,
        )

    def get_representative_ids(self, conn: Connection, document_id: str) -> Optional[Set[str]]:
        """Stored representative ids, or None when no completed run exists."""
        if not self.has_completed_run(conn, document_id):
            return None

        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT comment_id FROM comment_cluster_membership
                WHERE document_id = %s AND is_representative = TRUE
                """,
                (document_id,),
            )
            return {row["comment_id"] for row in cur.fetchall()}

    def get_cluster_size(self, conn: Connection, document_id: str, comment_id: str) -> int:
        """Size of a comment's cluster; 1 for comments that were never clustered."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT cc.cluster_size
                FROM comment_cluster_membership m
                JOIN comment_clusters cc ON m.cluster_id = cc.id
                WHERE m.document_id = %s AND m.comment_id = %s
                """,
                (document_id, comment_id),
            )
            row = cur.fetchone()
        return row["cluster_size"] if row else 1

    def get_cluster_sizes(self, conn: Connection, document_id: str) -> Dict[str, int]:
        """Cluster size of every clustered comment of a document."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT m.comment_id, cc.cluster_size
                FROM comment_cluster_membership m
                JOIN comment_clusters cc ON m.cluster_id = cc.id
                WHERE m.document_id = %s
                """,
                (document_id,),
            )
            return {row["comment_id"]: row["cluster_size"] for row in cur.fetchall()}

    def get_membership(self, conn: Connection, document_id: str, comment_id: str) -> Optional[ClusterMembership]:
        """Stored membership row of a comment, if it was clustered."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM comment_cluster_membership
                WHERE document_id = %s AND comment_id = %s
                """,
                (document_id, comment_id),
            )
            row = cur.fetchone()
        return ClusterMembership(**row) if row else None

    def is_representative(self, conn: Connection, document_id: str, comment_id: str) -> bool:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT is_representative FROM comment_cluster_membership
                WHERE document_id = %s AND comment_id = %s AND is_representative = TRUE
                """,
                (document_id, comment_id),
            )
            return cur.fetchone() is not None

    def get_clusters(self, conn: Connection, document_id: str) -> List[CommentCluster]:
        """Stored clusters, largest first."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM comment_clusters
                WHERE document_id = %s
                ORDER BY cluster_size DESC, cluster_index
                """,
                (document_id,),
            )
            return [CommentCluster(**row) for row in cur.fetchall()]

    def get_size_distribution(self, conn: Connection, document_id: str) -> Dict[int, int]:
        """Mapping of cluster size to number of clusters with that size."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT cluster_size, COUNT(*) AS cluster_count
                FROM comment_clusters
                WHERE document_id = %s
                GROUP BY cluster_size
                """,
                (document_id,),
            )
            return {row["cluster_size"]: row["cluster_count"] for row in cur.fetchall()}

    def get_statistics(self, conn: Connection, document_id: str) -> Optional[ClusteringSummary]:
        """Summary of the completed run, or None when there is none."""
        run = self.get_completed_run(conn, document_id)
        if run is None:
            return None

        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT MAX(cluster_size) AS largest
                FROM comment_clusters
                WHERE document_id = %s
                """,
                (document_id,),
            )
            row = cur.fetchone()

        return ClusteringSummary(
            total_comments=run.total_comments,
            total_clusters=run.total_clusters,
            representative_count=run.representative_count,
            duplicates_filtered=run.duplicates_filtered,
            largest_cluster_size=(row["largest"] if row and row["largest"] is not None else 0),
            similarity_threshold=run.similarity_threshold,
            min_cluster_size=run.min_cluster_size,
            cluster_method=run.cluster_method,
            completed_at=run.completed_at,
        )
