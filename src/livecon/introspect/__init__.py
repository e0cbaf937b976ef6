"""Live object graph walking and member autocomplete.

Entry point::

    from livecon.introspect import Introspector

    Introspector().complete("#Player.Na", scene_root)   # ['Name', 'Name2']
"""

from ._complete import Introspector, enumerate_members, format_suggestions, is_hidden_member
from ._graph import NODE_REFERENCE_RE, ObjectGraph, last_node_reference, split_path
from ._protocols import ChildProvider, LiveObjectGraph, MemberProvider

__all__ = [
    "Introspector",
    "ObjectGraph",
    "LiveObjectGraph",
    "ChildProvider",
    "MemberProvider",
    "NODE_REFERENCE_RE",
    "enumerate_members",
    "format_suggestions",
    "is_hidden_member",
    "last_node_reference",
    "split_path",
]
