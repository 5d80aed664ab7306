"""Service layer: persistence, graph derivation, layout and edit rules."""

from .cascade import DeletionCascade, splice_prerequisites
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .errors import (
    ConflictError,
    GraphError,
    InvalidReferenceError,
    NotFoundError,
    UpstreamFailureError,
)
from .graph_builder import GraphService, build_full_graph, build_topic_graph
from .layout import layout_graph
from .link_rules import LinkEditor, splice_next, with_prerequisite
from .seed import init_and_seed, seed_demo_graph
from .store import NoteStore, get_note_store, normalize_prerequisites

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "GraphError",
    "NotFoundError",
    "InvalidReferenceError",
    "ConflictError",
    "UpstreamFailureError",
    "NoteStore",
    "get_note_store",
    "normalize_prerequisites",
    "GraphService",
    "build_full_graph",
    "build_topic_graph",
    "layout_graph",
    "DeletionCascade",
    "splice_prerequisites",
    "LinkEditor",
    "with_prerequisite",
    "splice_next",
    "init_and_seed",
    "seed_demo_graph",
]
