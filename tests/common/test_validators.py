"""
Tests for input access and validation functions.

Covers valid inputs (should pass) and invalid inputs (should raise
ValidationError or DataFormatError).
"""

from types import SimpleNamespace

import pytest
import polars as pl

from relgraph.common.exceptions import DataFormatError, ValidationError
from relgraph.common.validators import (
    extract_entity_id,
    extract_entity_name,
    extract_tie,
    validate_graph_inputs,
    validate_ties_dataframe
)


class TestRecordAccess:
    """Test the entity and tie accessors."""

    def test_entity_id_forms(self):
        assert extract_entity_id("m1") == "m1"
        assert extract_entity_id({"id": "m2"}) == "m2"
        assert extract_entity_id(SimpleNamespace(id="m3")) == "m3"

    def test_entity_name_forms(self):
        assert extract_entity_name("m1") is None
        assert extract_entity_name({"id": "m2", "name": "Bob"}) == "Bob"
        assert extract_entity_name({"id": "m2"}) is None
        assert extract_entity_name(SimpleNamespace(id="m3", name="Cy")) == "Cy"
        assert extract_entity_name(SimpleNamespace(id="m4")) is None

    def test_tie_forms(self):
        as_mapping = {"source_id": "a", "target_id": "b", "strength": 3, "type": "friend"}
        as_object = SimpleNamespace(source_id="a", target_id="b", strength=3, bidirectional=False)
        assert extract_tie(as_mapping) == ("a", "b", 3)
        assert extract_tie(as_object) == ("a", "b", 3)


class TestValidateGraphInputs:
    """Test the collaborator-side referential checks."""

    def setup_method(self):
        self.entities = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

    def test_valid_input(self):
        ties = [
            {"source_id": "a", "target_id": "b", "strength": 5},
            {"source_id": "b", "target_id": "c", "strength": 1.5},
        ]
        validate_graph_inputs(self.entities, ties)

    def test_empty_input(self):
        validate_graph_inputs([], [])

    def test_duplicate_ids(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_graph_inputs(["a", "b", "a"], [])
        assert exc_info.value.field == "id"
        assert exc_info.value.details["duplicates"] == ["a"]

    def test_unknown_source(self):
        ties = [{"source_id": "z", "target_id": "a", "strength": 1}]
        with pytest.raises(ValidationError) as exc_info:
            validate_graph_inputs(self.entities, ties)
        assert exc_info.value.field == "source_id"
        assert exc_info.value.value == "z"

    def test_unknown_target(self):
        ties = [{"source_id": "a", "target_id": "z", "strength": 1}]
        with pytest.raises(ValidationError) as exc_info:
            validate_graph_inputs(self.entities, ties)
        assert exc_info.value.field == "target_id"
        assert exc_info.value.tie_index == 0
        assert exc_info.value.details["tie_index"] == 0

    @pytest.mark.parametrize("strength", [0, -2, "3", None, True])
    def test_invalid_strength(self, strength):
        ties = [{"source_id": "a", "target_id": "b", "strength": strength}]
        with pytest.raises(ValidationError) as exc_info:
            validate_graph_inputs(self.entities, ties)
        assert exc_info.value.field == "strength"
        assert exc_info.value.tie_index == 0


class TestValidateTiesDataframe:
    """Test validation of tie tables."""

    def test_valid_frame(self):
        df = pl.DataFrame({
            "source_id": ["a", "b"],
            "target_id": ["b", "c"],
            "strength": [1.0, 4.0]
        })
        validate_ties_dataframe(df)

    def test_empty_frame_with_columns(self):
        df = pl.DataFrame(
            {"source_id": [], "target_id": [], "strength": []},
            schema={"source_id": pl.Utf8, "target_id": pl.Utf8, "strength": pl.Float64}
        )
        validate_ties_dataframe(df)

    def test_missing_columns(self):
        df = pl.DataFrame({"source_id": ["a"], "target_id": ["b"]})
        with pytest.raises(DataFormatError, match="Missing required columns"):
            validate_ties_dataframe(df)

    def test_custom_column_names(self):
        df = pl.DataFrame({"from": ["a"], "to": ["b"], "w": [2]})
        validate_ties_dataframe(df, source_col="from", target_col="to", strength_col="w")

    def test_null_endpoint(self):
        df = pl.DataFrame({
            "source_id": ["a", None],
            "target_id": ["b", "c"],
            "strength": [1, 2]
        })
        with pytest.raises(ValidationError) as exc_info:
            validate_ties_dataframe(df)
        assert exc_info.value.field == "source_id"

    def test_non_numeric_strength(self):
        df = pl.DataFrame({"source_id": ["a"], "target_id": ["b"], "strength": ["high"]})
        with pytest.raises(ValidationError, match="numeric"):
            validate_ties_dataframe(df)

    def test_null_strength(self):
        df = pl.DataFrame({
            "source_id": ["a", "b"],
            "target_id": ["b", "c"],
            "strength": [1.0, None]
        })
        with pytest.raises(ValidationError, match="null"):
            validate_ties_dataframe(df)

    def test_negative_strength(self):
        df = pl.DataFrame({
            "source_id": ["a", "b"],
            "target_id": ["b", "c"],
            "strength": [1.0, -2.0]
        })
        with pytest.raises(ValidationError, match="negative"):
            validate_ties_dataframe(df)
