"""Repository layer for the node store.

Repositories encapsulate data access logic and provide a clean interface
for the resolution and search services.
"""

from noderesolve.repositories.node_repo import NodeRepository

__all__ = [
    "NodeRepository",
]
