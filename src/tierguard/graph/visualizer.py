# tierguard:domain=graph
"""Graph visualizer: Graphviz DOT and a self-contained HTML viewer for the leveled graph."""

from __future__ import annotations

import html
import json
from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from tierguard.graph.sorter import LeveledGraph

# Output files, relative to the workspace root.
VISUALIZE_DIR = "tmp/tierguard"
DOT_FILE = "architecture.dot"
HTML_FILE = "architecture.html"

DEFAULT_TITLE = "Architecture"

LEVEL_COLORS: dict[int, str] = {
    0: "#E8F5E9",  # foundation
    1: "#E3F2FD",
    2: "#FFF3E0",
    3: "#FCE4EC",
}
FALLBACK_COLOR = "#F5F5F5"

_VIZ_JS = "https://cdn.jsdelivr.net/npm/viz.js@2.1.2/viz.js"
_VIZ_RENDER_JS = "https://cdn.jsdelivr.net/npm/viz.js@2.1.2/full.render.js"


def short_name(name: str) -> str:
    """Drop the package scope: ``@acme/core-util`` -> ``core-util``."""
    return name.rsplit("/", 1)[-1]


def level_color(level: int) -> str:
    return LEVEL_COLORS.get(level, FALLBACK_COLOR)


def generate_dot(graph: LeveledGraph, title: str = DEFAULT_TITLE) -> str:
    """Render *graph* as a top-to-bottom DOT digraph, one rank per level."""
    lines = [
        "digraph Architecture {",
        "  rankdir=TB;",
        '  node [shape=box, style=filled, fontname="Arial"];',
        '  edge [fontname="Arial"];',
        "",
    ]

    by_level: dict[int, list[str]] = defaultdict(list)
    for name in sorted(graph):
        entry = graph[name]
        by_level[entry.level].append(name)
        label = short_name(name)
        lines.append(
            f'  "{label}" [fillcolor="{level_color(entry.level)}", '
            f'label="{label}\\n(L{entry.level})"];'
        )
    lines.append("")

    for level in sorted(by_level):
        members = " ".join(f'"{short_name(name)}";' for name in by_level[level])
        lines.append(f"  {{ rank=same; {members} }}")
    lines.append("")

    for name in sorted(graph):
        for dep in graph[name].depends_on:
            lines.append(f'  "{short_name(name)}" -> "{short_name(dep)}";')

    lines.extend(
        [
            "",
            '  labelloc="t";',
            f'  label="{title}";',
            "  fontsize=20;",
            "}",
        ]
    )
    return "\n".join(lines) + "\n"


def generate_html(dot: str, graph: LeveledGraph, title: str = DEFAULT_TITLE) -> str:
    """Wrap *dot* in an HTML page that renders it client-side with viz.js."""
    levels = sorted({entry.level for entry in graph.values()})
    legend = "\n".join(
        f'      <div class="legend-item"><span class="legend-box" '
        f'style="background: {level_color(level)};"></span>Level {level}</div>'
        for level in levels
    )
    safe_title = html.escape(title)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{safe_title}</title>
  <script src="{_VIZ_JS}"></script>
  <script src="{_VIZ_RENDER_JS}"></script>
  <style>
    body {{ margin: 0; padding: 20px; font-family: Arial, sans-serif; background: #f5f5f5; }}
    h1 {{ text-align: center; color: #333; }}
    #graph, .legend {{ background: white; padding: 20px; border-radius: 8px; }}
    #graph {{ text-align: center; }}
    .legend {{ margin: 20px auto; max-width: 600px; }}
    .legend-box {{ display: inline-block; width: 20px; height: 20px;
                   border: 1px solid #ccc; margin-right: 10px; vertical-align: middle; }}
  </style>
</head>
<body>
  <h1>{safe_title}</h1>
  <div class="legend">
{legend}
    <div class="legend-item"><em>Level 0 packages have no dependencies;
    higher levels depend only on lower ones.</em></div>
  </div>
  <div id="graph"></div>
  <script>
    const dot = {json.dumps(dot)};
    new Viz().renderSVGElement(dot)
      .then(el => document.getElementById('graph').appendChild(el))
      .catch(err => {{ document.getElementById('graph').innerText = String(err); }});
  </script>
</body>
</html>
"""


def write_visualization(
    graph: LeveledGraph,
    workspace_root: Path,
    title: str = DEFAULT_TITLE,
) -> tuple[Path, Path]:
    """Write the DOT and HTML renderings; return ``(dot_path, html_path)``."""
    out_dir = workspace_root / VISUALIZE_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    dot = generate_dot(graph, title)
    dot_path = out_dir / DOT_FILE
    html_path = out_dir / HTML_FILE
    dot_path.write_text(dot, encoding="utf-8")
    html_path.write_text(generate_html(dot, graph, title), encoding="utf-8")
    return dot_path, html_path
