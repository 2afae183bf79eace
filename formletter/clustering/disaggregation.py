"""Small-cluster disaggregation and representative selection."""

from typing import List, Sequence, Tuple

from .models import ClusterDraft, ClusterMember, FinalCluster


def disaggregate_small_clusters(
    drafts: Sequence[ClusterDraft],
    min_cluster_size: int = 4,
) -> Tuple[List[List[ClusterMember]], int]:
    """
    Split clusters below the minimum size into singletons.

    Small clusters are more often coincidental overlap between independent
    authors than a campaign, so each of their members is kept as its own
    cluster. Larger clusters pass through unchanged. Output order follows the
    input, with a dissolved cluster's members in place of the cluster.

    Args:
        drafts: Clusters from the online pass
        min_cluster_size: Smallest size that stays a cluster

    Returns:
        Tuple of (member lists, number of multi-member clusters dissolved)
    """
    if min_cluster_size < 1:
        raise ValueError(f"min_cluster_size must be >= 1, got {min_cluster_size}")

    groups: List[List[ClusterMember]] = []
    dissolved = 0

    for draft in drafts:
        if draft.size >= min_cluster_size:
            groups.append(list(draft.members))
            continue

        for member in draft.members:
            groups.append([ClusterMember(comment=member.comment, similarity=1.0)])
        if draft.size > 1:
            dissolved += 1

    return groups, dissolved


def select_representative(members: Sequence[ClusterMember]) -> ClusterMember:
    """Member with the longest content; the earliest one wins a tie."""
    if not members:
        raise ValueError("Cannot select a representative from an empty cluster")
    return max(members, key=lambda member: member.comment.length)


def build_final_clusters(groups: Sequence[Sequence[ClusterMember]]) -> List[FinalCluster]:
    """Number the clusters and pick each one's representative."""
    clusters = []
    for cluster_index, members in enumerate(groups):
        representative = select_representative(members)
        clusters.append(
            FinalCluster(
                cluster_index=cluster_index,
                members=list(members),
                anchor_id=members[0].comment.id,
                representative_id=representative.comment.id,
            )
        )
    return clusters
