"""Cluster catalogue endpoint."""

from fastapi import APIRouter, Depends

from repoverse.repositories import ClusterRepository

from ..dependencies import get_cluster_repository
from ..schemas import ClusterListResponse

router = APIRouter(prefix="/clusters", tags=["clusters"])


@router.get("", response_model=ClusterListResponse)
def list_clusters(clusters: ClusterRepository = Depends(get_cluster_repository)):
    active = [cluster.to_dict() for cluster in clusters.list_active()]
    return ClusterListResponse(clusters=active, total=len(active))
