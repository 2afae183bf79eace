"""Read comments from local JSONL or CSV exports."""

import csv
import json
from pathlib import Path
from typing import Dict, List, Optional

from .models import Comment


def _row_to_comment(row: Dict, document_id: Optional[str]) -> Comment:
    """Convert a parsed row to a Comment."""
    comment_id = row.get("id")
    if comment_id is None or str(comment_id).strip() == "":
        raise ValueError(f"Comment row without id: {row}")

    if "content" in row and row["content"] is not None:
        return Comment(id=str(comment_id), content=str(row["content"]), document_id=document_id)

    return Comment.from_parts(
        str(comment_id),
        row.get("body") or row.get("comment"),
        row.get("attachment_text"),
        document_id=document_id,
    )


def read_comments_file(path: Path, document_id: Optional[str] = None) -> List[Comment]:
    """
    Read comments from a .jsonl or .csv file.

    Each record needs an ``id`` and either ``content`` or ``body`` (with an
    optional ``attachment_text``). Input order is preserved.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On an unsupported extension, malformed JSON, or duplicate ids
    """
    if not path.exists():
        raise FileNotFoundError(f"Comments file not found: {path}")

    suffix = path.suffix.lower()
    comments: List[Comment] = []

    if suffix in (".jsonl", ".ndjson"):
        with open(path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    row = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON on line {line_no} of {path}: {e}")
                comments.append(_row_to_comment(row, document_id))
    elif suffix == ".csv":
        with open(path, encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                comments.append(_row_to_comment(row, document_id))
    else:
        raise ValueError(f"Unsupported comments file type: {path.suffix} (expected .jsonl or .csv)")

    seen = set()
    for comment in comments:
        if comment.id in seen:
            raise ValueError(f"Duplicate comment id in {path}: {comment.id}")
        seen.add(comment.id)

    return comments
