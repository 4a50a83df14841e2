"""Graph domain: extractor, sorter, comparator, redundant edges, snapshot store, visualizer."""

# tierguard:domain=graph

from tierguard.graph.comparator import (
    GraphComparison,
    LevelChange,
    ProjectChange,
    compare_graphs,
    comparison_to_dict,
    render_comparison,
)
from tierguard.graph.extractor import (
    ProjectInfo,
    build_raw_graph,
    discover_projects,
    extract_build_dependencies,
    generate_graph,
)
from tierguard.graph.package_validator import (
    ManifestCheck,
    ManifestReport,
    validate_package_manifests,
)
from tierguard.graph.redundant import (
    RedundantDependency,
    find_all_redundant,
    find_redundant_deps,
    transitive_closure,
)
from tierguard.graph.sorter import (
    CycleError,
    GraphEntry,
    LeveledGraph,
    compute_layers,
    find_cycle,
    level_count,
    sort_graph,
)
from tierguard.graph.store import (
    DEFAULT_GRAPH_PATH,
    SnapshotError,
    load_snapshot,
    save_snapshot,
)
from tierguard.graph.visualizer import generate_dot, generate_html, write_visualization

__all__ = [
    "DEFAULT_GRAPH_PATH",
    "CycleError",
    "GraphComparison",
    "GraphEntry",
    "LevelChange",
    "LeveledGraph",
    "ManifestCheck",
    "ManifestReport",
    "ProjectChange",
    "ProjectInfo",
    "RedundantDependency",
    "SnapshotError",
    "build_raw_graph",
    "compare_graphs",
    "comparison_to_dict",
    "compute_layers",
    "discover_projects",
    "extract_build_dependencies",
    "find_all_redundant",
    "find_cycle",
    "find_redundant_deps",
    "generate_dot",
    "generate_graph",
    "generate_html",
    "level_count",
    "load_snapshot",
    "render_comparison",
    "save_snapshot",
    "sort_graph",
    "transitive_closure",
    "validate_package_manifests",
    "write_visualization",
]
