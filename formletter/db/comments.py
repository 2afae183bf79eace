"""Read comments for clustering."""

from typing import List, Optional

from psycopg import Connection

from ..ingestion.models import Comment


class CommentLoader:
    """Load a document's comments from the comments table."""

    def load_comments(
        self,
        conn: Connection,
        document_id: str,
        limit: Optional[int] = None,
        representatives_only: bool = False,
    ) -> List[Comment]:
        """
        Load comments in ingestion order.

        Args:
            conn: Database connection
            document_id: Document whose comments to load
            limit: Maximum number of comments
            representatives_only: Only comments stored as cluster representatives

        Returns:
            Comments with body and attachment text joined into ``content``
        """
        query = """
            SELECT c.id, c.body, c.attachment_text
            FROM comments c
        """
        if representatives_only:
            query += """
            JOIN comment_cluster_membership m
                ON m.document_id = c.document_id
                AND m.comment_id = c.id
                AND m.is_representative = TRUE
            """
        query += " WHERE c.document_id = %s ORDER BY c.created_at, c.id"

        params: list = [document_id]
        if limit:
            query += " LIMIT %s"
            params.append(limit)

        with conn.cursor() as cur:
            cur.execute(query, params)
            rows = cur.fetchall()

        return [
            Comment.from_parts(row["id"], row["body"], row["attachment_text"], document_id=document_id)
            for row in rows
        ]

    def count_comments(self, conn: Connection, document_id: str) -> int:
        """Number of comments stored for a document."""
        with conn.cursor() as cur:
            cur.execute(
                "SELECT COUNT(*) AS count FROM comments WHERE document_id = %s",
                (document_id,),
            )
            return cur.fetchone()["count"]
