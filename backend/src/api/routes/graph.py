from fastapi import APIRouter, Depends, Query
from typing import Annotated, Optional

from ...models.graph import GraphData, LayoutOptions, LayoutResult
from ...models.topic import Topic
from ..middleware import get_user_id
from ...services.graph_builder import GraphService
from ...services.store import NoteStore, get_note_store

router = APIRouter()


def get_graph_service(store: Annotated[NoteStore, Depends(get_note_store)]) -> GraphService:
    return GraphService(store)


UserId = Annotated[str, Depends(get_user_id)]
Graphs = Annotated[GraphService, Depends(get_graph_service)]


@router.get("/api/graph", response_model=GraphData)
async def get_graph_data(user_id: UserId, graph_service: Graphs) -> GraphData:
    """Whole graph: topic roots with every note placed once per topic."""
    return graph_service.full_graph(user_id)


@router.get("/api/graph/topics", response_model=list[Topic])
async def get_graph_topics(user_id: UserId, graph_service: Graphs):
    """Topics available as graph roots."""
    return graph_service.graph_topics(user_id)


@router.get("/api/graph/layout", response_model=LayoutResult)
async def get_graph_layout(
    user_id: UserId,
    graph_service: Graphs,
    topic_id: Optional[str] = Query(None, description="Lay out one topic instead of everything"),
    node_spacing: Optional[float] = Query(None, gt=0),
    level_spacing: Optional[float] = Query(None, gt=0),
) -> LayoutResult:
    """Graph with x/y coordinates for every reachable node."""
    defaults = graph_service.default_layout_options()
    options = LayoutOptions(
        node_spacing=node_spacing if node_spacing is not None else defaults.node_spacing,
        level_spacing=level_spacing if level_spacing is not None else defaults.level_spacing,
    )
    return graph_service.layout(user_id, topic_id=topic_id, options=options)


@router.get("/api/graph/{topic_id}", response_model=GraphData)
async def get_topic_graph(topic_id: str, user_id: UserId, graph_service: Graphs) -> GraphData:
    """One topic's graph, including prerequisites that live in other topics."""
    return graph_service.topic_graph(user_id, topic_id)
