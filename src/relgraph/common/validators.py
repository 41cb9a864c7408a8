"""
Input access and validation utilities for the relgraph library.

The graph builder deliberately accepts whatever it is given: a tie naming an
unknown member simply creates a dangling adjacency entry. The validators in
this module are for the layer that assembles member and tie lists before
handing them to the core, so that such contract gaps surface as
``ValidationError`` instead of silently skewing the analysis.
"""

from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple

import polars as pl

from .exceptions import DataFormatError, ValidationError


def extract_entity_id(entity: Any) -> str:
    """
    Return the identifier of a member record.

    Members may be given as plain identifier strings, as mappings with an
    ``"id"`` key, or as objects exposing an ``id`` attribute.

    Examples
    --------
    >>> extract_entity_id("m1")
    'm1'
    >>> extract_entity_id({"id": "m2", "name": "Bob"})
    'm2'
    """
    if isinstance(entity, str):
        return entity
    if isinstance(entity, Mapping):
        return entity["id"]
    return entity.id


def extract_entity_name(entity: Any) -> Optional[str]:
    """Return the display name of a member record, if it carries one."""
    if isinstance(entity, str):
        return None
    if isinstance(entity, Mapping):
        return entity.get("name")
    return getattr(entity, "name", None)


def extract_tie(tie: Any) -> Tuple[str, str, float]:
    """
    Return ``(source_id, target_id, strength)`` for a tie record.

    Ties may be mappings with ``source_id``, ``target_id`` and ``strength``
    keys or objects exposing those attributes. Any other fields (type,
    direction flags, timestamps) are ignored.
    """
    if isinstance(tie, Mapping):
        return tie["source_id"], tie["target_id"], tie["strength"]
    return tie.source_id, tie.target_id, tie.strength


def validate_graph_inputs(entities: Iterable[Any], ties: Iterable[Any]) -> None:
    """
    Check that member and tie lists form a consistent graph description.

    Parameters
    ----------
    entities : Iterable[Any]
        Member records (see ``extract_entity_id``)
    ties : Iterable[Any]
        Tie records (see ``extract_tie``)

    Raises
    ------
    ValidationError
        If a member id is duplicated, a tie names an id that is not in the
        member list, or a tie strength is not a positive number

    Examples
    --------
    >>> validate_graph_inputs(["a", "b"], [{"source_id": "a", "target_id": "b", "strength": 3}])
    >>> validate_graph_inputs(["a"], [{"source_id": "a", "target_id": "z", "strength": 1}])  # doctest: +SKIP
    ValidationError: Invalid target_id: Tie references unknown member
    """
    known_ids: Set[str] = set()
    duplicates: List[str] = []

    for entity in entities:
        entity_id = extract_entity_id(entity)
        if entity_id in known_ids:
            duplicates.append(entity_id)
        known_ids.add(entity_id)

    if duplicates:
        raise ValidationError(
            f"Found {len(duplicates)} duplicate member ids",
            field="id",
            details={"duplicates": duplicates[:10]}
        )

    for index, tie in enumerate(ties):
        source_id, target_id, strength = extract_tie(tie)

        for field, endpoint in (("source_id", source_id), ("target_id", target_id)):
            if endpoint not in known_ids:
                raise ValidationError(
                    "Tie references unknown member",
                    field=field,
                    value=endpoint,
                    tie_index=index
                )

        if isinstance(strength, bool) or not isinstance(strength, Real):
            raise ValidationError(
                "Tie strength must be numeric",
                field="strength",
                value=strength,
                expected="positive number",
                tie_index=index
            )
        if strength <= 0:
            raise ValidationError(
                "Tie strength must be positive",
                field="strength",
                value=strength,
                expected="positive number",
                tie_index=index
            )


def validate_ties_dataframe(
    df: pl.DataFrame,
    source_col: str = "source_id",
    target_col: str = "target_id",
    strength_col: str = "strength"
) -> None:
    """
    Validate a tie DataFrame before graph construction.

    An empty frame is accepted (it yields an edgeless graph) as long as the
    required columns exist.

    Parameters
    ----------
    df : pl.DataFrame
        Tie DataFrame to validate
    source_col : str, default "source_id"
        Name of the source member column
    target_col : str, default "target_id"
        Name of the target member column
    strength_col : str, default "strength"
        Name of the tie strength column

    Raises
    ------
    DataFormatError
        If required columns are missing
    ValidationError
        If endpoints contain nulls or strengths are non-numeric, null or negative
    """
    required_cols = [source_col, target_col, strength_col]
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise DataFormatError(
            f"Missing required columns: {missing_cols}",
            columns=df.columns,
            field="columns"
        )

    if df.is_empty():
        return

    for col in (source_col, target_col):
        null_count = df[col].null_count()
        if null_count > 0:
            raise ValidationError(
                f"Column contains {null_count} null values",
                field=col,
                details={"null_count": null_count, "total_rows": len(df)}
            )

    strength_series = df[strength_col]
    if not strength_series.dtype.is_numeric():
        raise ValidationError(
            f"Strength column must be numeric, got {strength_series.dtype}",
            field=strength_col,
            details={"dtype": str(strength_series.dtype)}
        )

    null_count = strength_series.null_count()
    if null_count > 0:
        raise ValidationError(
            f"Column contains {null_count} null values",
            field=strength_col,
            details={"null_count": null_count, "total_rows": len(df)}
        )

    min_strength = strength_series.min()
    if min_strength < 0:
        negative_count = int((strength_series < 0).sum())
        raise ValidationError(
            f"Strength column contains {negative_count} negative values. "
            f"Minimum strength: {min_strength}",
            field=strength_col,
            details={"min_strength": min_strength, "negative_count": negative_count}
        )
