"""Memory stores, one set per scope root.

Layout:
    <scope root>/
    ├── permanent/<id>.md     # decisions, learnings, gotchas, artifacts, hubs
    ├── temporary/<id>.md     # thinking documents (thought-YYYYMMDD-HHMMSSmmm)
    ├── archive/<id>.md       # archived memories, outside graph and index
    ├── graph.json            # {version, nodes, edges}
    ├── index.json            # {version, lastUpdated, memories}
    ├── embeddings.json       # {version, memories: {id: {embedding, hash, timestamp}}}
    └── thought.json          # active thinking document

The .md files are the source of truth; the JSON files are derived views.
"""
