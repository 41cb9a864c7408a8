"""
ID mapping between member identifiers and consecutive integer node ids.

relgraph's own ``Graph`` is keyed by the caller's string identifiers, but
libraries such as NetworkIt require node ids ``0 .. n-1``. ``IDMapper`` keeps
both directions of that translation when a graph is exported.
"""

from typing import Any, Dict, List


class IDMapper:
    """
    Bidirectional mapping between original and internal node IDs.

    Attributes
    ----------
    original_to_internal : Dict[Any, int]
        Maps original IDs to internal IDs (0, 1, 2, ...)
    internal_to_original : Dict[int, Any]
        Maps internal IDs back to original IDs

    Examples
    --------
    >>> mapper = IDMapper()
    >>> mapper.add_mapping("m-alice", 0)
    >>> mapper.get_internal("m-alice")
    0
    >>> mapper.get_original(0)
    'm-alice'
    """

    def __init__(self) -> None:
        self.original_to_internal: Dict[Any, int] = {}
        self.internal_to_original: Dict[int, Any] = {}

    def get_internal(self, original_id: Any) -> int:
        """
        Get the internal ID for an original ID.

        Raises
        ------
        KeyError
            If original_id is not mapped
        """
        try:
            return self.original_to_internal[original_id]
        except KeyError:
            raise KeyError(f"Original ID '{original_id}' not found in mapping")

    def get_original(self, internal_id: int) -> Any:
        """
        Get the original ID for an internal ID.

        Raises
        ------
        KeyError
            If internal_id is not mapped
        TypeError
            If internal_id is not an integer
        """
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")

        try:
            return self.internal_to_original[internal_id]
        except KeyError:
            raise KeyError(f"Internal ID {internal_id} not found in mapping")

    def get_original_batch(self, internal_ids: List[int]) -> List[Any]:
        """Translate a list of internal IDs in one call."""
        return [self.get_original(internal_id) for internal_id in internal_ids]

    def add_mapping(self, original_id: Any, internal_id: int) -> None:
        """
        Register a new original/internal ID pair.

        Raises
        ------
        TypeError
            If internal_id is not an integer or original_id is unhashable
        ValueError
            If internal_id is negative or either side is already mapped
            to something else
        """
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")
        if internal_id < 0:
            raise ValueError(f"Internal ID must be non-negative, got {internal_id}")

        try:
            hash(original_id)
        except TypeError:
            raise TypeError(f"Original ID must be hashable, got {type(original_id)}")

        existing_internal = self.original_to_internal.get(original_id)
        if existing_internal is not None and existing_internal != internal_id:
            raise ValueError(
                f"Original ID '{original_id}' already mapped to internal ID {existing_internal}"
            )
        existing_original = self.internal_to_original.get(internal_id)
        if internal_id in self.internal_to_original and existing_original != original_id:
            raise ValueError(
                f"Internal ID {internal_id} already mapped to original ID '{existing_original}'"
            )

        self.original_to_internal[original_id] = internal_id
        self.internal_to_original[internal_id] = original_id

    @classmethod
    def from_ids(cls, original_ids: List[Any]) -> 'IDMapper':
        """
        Build a mapper assigning consecutive internal IDs in list order.

        Examples
        --------
        >>> mapper = IDMapper.from_ids(["a", "b", "c"])
        >>> mapper.get_internal("c")
        2
        """
        mapper = cls()
        for internal_id, original_id in enumerate(original_ids):
            mapper.add_mapping(original_id, internal_id)
        return mapper

    def size(self) -> int:
        """Number of mapped IDs."""
        return len(self.original_to_internal)

    def has_original(self, original_id: Any) -> bool:
        return original_id in self.original_to_internal

    def has_internal(self, internal_id: int) -> bool:
        return internal_id in self.internal_to_original

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, item: Any) -> bool:
        return item in self.original_to_internal

    def __repr__(self) -> str:
        return f"IDMapper(size={self.size()})"
