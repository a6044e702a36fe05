"""Default configuration values."""

from __future__ import annotations

import tomlkit

CONFIG_FILENAME = ".thesisgraph.toml"

DEFAULT_CONFIG = {
    "store": {
        "path": ".thesisgraph/theses.db",
        "busy_timeout": 5000,
    },
    "relations": {
        "kinds": ["therefore", "because", "but", "contradicts"],
    },
    "graph": {
        "wrap_width": 40,
        "relation_nodes": "related",
        "show_references": "all",
    },
}


def default_config_document() -> tomlkit.TOMLDocument:
    """Build a commented TOML document holding the defaults."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("thesisgraph configuration"))
    doc.add(tomlkit.nl())

    store = tomlkit.table()
    store.add("path", DEFAULT_CONFIG["store"]["path"])
    store["path"].comment("relative to this file")
    store.add("busy_timeout", DEFAULT_CONFIG["store"]["busy_timeout"])
    store["busy_timeout"].comment("milliseconds a writer waits for the lock")
    doc.add("store", store)

    relations = tomlkit.table()
    kinds = tomlkit.array()
    kinds.extend(DEFAULT_CONFIG["relations"]["kinds"])
    relations.add("kinds", kinds)
    doc.add("relations", relations)

    graph = tomlkit.table()
    graph.add("wrap_width", DEFAULT_CONFIG["graph"]["wrap_width"])
    graph.add("relation_nodes", DEFAULT_CONFIG["graph"]["relation_nodes"])
    graph["relation_nodes"].comment("none, related or all")
    graph.add("show_references", DEFAULT_CONFIG["graph"]["show_references"])
    graph["show_references"].comment("none, mentioned or all")
    doc.add("graph", graph)
    return doc
