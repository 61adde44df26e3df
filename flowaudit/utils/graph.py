# utils/graph.py
from typing import Any, Dict, Iterator, List, Tuple

import networkx as nx


def iter_connection_targets(
    connections: Dict[str, Any],
) -> Iterator[Tuple[str, str, int, Any]]:
    """
    Walk an n8n-style 'connections' mapping in document order:

      connections[src][stream] = [
         [ {"node": "B", "type": "main", "index": 0}, {...} ],   # output 0 fan-out
         [ {"node": "D", "type": "main", "index": 0} ],          # output 1
      ]

    Yields (source, stream, output_index, target) where target is the raw
    slot entry (normally a dict with a "node" key). Empty/null slots yield nothing.
    """
    for src, outs in connections.items():
        if not isinstance(outs, dict):
            continue
        for stream, slots in outs.items():
            if not isinstance(slots, list):
                continue
            for out_idx, slot in enumerate(slots):
                if not slot:
                    continue
                for target in slot:
                    yield str(src), str(stream), out_idx, target


def build_graph(workflow: Dict[str, Any], reference_key: str = "id") -> nx.MultiDiGraph:
    """
    Build a directed multigraph keyed by node reference (id or name).

    Endpoints that do not resolve to a node are still added, flagged with
    `dangling=True`, so callers can inspect the broken references.
    """
    G = nx.MultiDiGraph()
    for n in workflow.get("nodes", []) or []:
        if not isinstance(n, dict):
            continue
        ref = n.get(reference_key)
        if ref in (None, ""):
            continue
        G.add_node(str(ref), **{k: v for k, v in n.items() if k in ("id", "name", "type")})

    conns = workflow.get("connections") or {}
    for src, stream, out_idx, target in iter_connection_targets(conns):
        if not isinstance(target, dict) or target.get("node") in (None, ""):
            continue
        dst = str(target["node"])
        for endpoint in (src, dst):
            if endpoint not in G:
                G.add_node(endpoint, dangling=True)
        G.add_edge(src, dst, stream=stream, output=out_idx, index=target.get("index", 0))
    return G


def isolated_nodes(G: nx.MultiDiGraph) -> List[str]:
    """Nodes with neither incoming nor outgoing connections."""
    return sorted(str(n) for n in nx.isolates(G) if not G.nodes[n].get("dangling"))


def graph_stats(G: nx.MultiDiGraph) -> Dict[str, Any]:
    return {
        "edge_count": G.number_of_edges(),
        "isolated_nodes": isolated_nodes(G),
        "max_fan_out": max((d for _, d in G.out_degree()), default=0),
    }
