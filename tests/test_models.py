"""Tests for domain models."""

import pytest

from headermatch.domain import (
    CONFIRMED_MAPPING_REASONING,
    ColumnMapping,
    ColumnMatchingResult,
    MatchingStatistics,
    MatchRequest,
    ModelConfiguration,
    OperationMode,
    ProviderConfiguration,
)


class TestColumnMapping:
    """Test ColumnMapping."""

    def test_valid_mapping(self):
        """Test that a mapping with both columns is valid."""
        mapping = ColumnMapping(target_column="Quantity", source_column="Qty")
        assert mapping.is_valid()

    def test_blank_columns_are_invalid(self):
        """Test that blank or whitespace columns are invalid."""
        assert not ColumnMapping(target_column="  ", source_column="Qty").is_valid()
        assert not ColumnMapping(target_column="Quantity", source_column="").is_valid()

    def test_valid_override(self):
        """Test the tri-state valid override."""
        assert ColumnMapping(target_column="A", source_column="B", valid=True).is_valid()
        assert ColumnMapping(target_column="A", source_column="B", valid=None).is_valid()
        assert not ColumnMapping(target_column="A", source_column="B", valid=False).is_valid()

    def test_matches_source_header_ignores_case_and_padding(self):
        """Test case-insensitive, trimmed source header matching."""
        mapping = ColumnMapping(target_column="Customer ID", source_column=" Cust_ID ")
        assert mapping.matches_source_header("cust_id")
        assert mapping.matches_source_header("CUST_ID  ")
        assert not mapping.matches_source_header("Cust")
        assert not mapping.matches_source_header(None)

    def test_target_column_for(self):
        """Test looking up the target column for a header."""
        mapping = ColumnMapping(target_column="Customer ID", source_column="Cust_ID")
        assert mapping.target_column_for("CUST_ID") == "Customer ID"
        assert mapping.target_column_for("Other") is None

    def test_is_equivalent(self):
        """Test equivalence ignores case on both columns."""
        a = ColumnMapping(target_column="Quantity", source_column="Qty")
        b = ColumnMapping(target_column="quantity", source_column="QTY", context="units")
        c = ColumnMapping(target_column="Quantity", source_column="Amount")
        assert a.is_equivalent(b)
        assert not a.is_equivalent(c)
        assert not a.is_equivalent(None)

    def test_prompt_line(self):
        """Test the prompt rendering with and without context."""
        plain = ColumnMapping(target_column="Quantity", source_column="Qty")
        with_context = ColumnMapping(
            target_column="Quantity", source_column="Qty", context="units ordered"
        )
        assert plain.to_prompt_line() == '"Qty" → "Quantity"'
        assert with_context.to_prompt_line() == '"Qty" → "Quantity" (units ordered)'

    def test_accepts_camel_case_and_legacy_context(self):
        """Test JSON field names and the mappingContext alias."""
        mapping = ColumnMapping.model_validate(
            {"targetColumn": "Quantity", "sourceColumn": "Qty", "mappingContext": "units"}
        )
        assert mapping.target_column == "Quantity"
        assert mapping.source_column == "Qty"
        assert mapping.context == "units"


class TestColumnMatchingResult:
    """Test ColumnMatchingResult."""

    def test_complete_result_is_valid(self):
        """Test a fully populated result."""
        result = ColumnMatchingResult(
            source_header="Qty",
            matched_target_header="Quantity",
            confidence_percentage=90,
            reasoning="abbreviation",
        )
        assert result.is_valid()

    @pytest.mark.parametrize("confidence", [None, -1, 100.5])
    def test_confidence_out_of_range_is_invalid(self, confidence):
        """Test that missing or out-of-range confidence is invalid."""
        result = ColumnMatchingResult(
            source_header="Qty",
            matched_target_header="Quantity",
            confidence_percentage=confidence,
            reasoning="abbreviation",
        )
        assert not result.is_valid()

    def test_missing_target_or_reasoning_is_invalid(self):
        """Test that blank target or reasoning is invalid."""
        assert not ColumnMatchingResult(
            source_header="Qty", confidence_percentage=50, reasoning="x"
        ).is_valid()
        assert not ColumnMatchingResult(
            source_header="Qty", matched_target_header="Quantity", confidence_percentage=50
        ).is_valid()

    def test_confirmed(self):
        """Test the result built from a confirmed mapping."""
        mapping = ColumnMapping(target_column="Customer ID", source_column="cust_id")
        result = ColumnMatchingResult.confirmed("CUST_ID", mapping)
        assert result.source_header == "CUST_ID"
        assert result.matched_target_header == "Customer ID"
        assert result.confidence_percentage == 100
        assert result.used_existing_mapping is True
        assert result.reasoning == CONFIRMED_MAPPING_REASONING
        assert result.is_valid()

    def test_failed_and_no_match(self):
        """Test the zero-confidence helpers."""
        failed = ColumnMatchingResult.failed("Qty", "Processing failed: boom")
        assert failed.confidence_percentage == 0
        assert failed.matched_target_header == ""
        assert not failed.is_valid()

        assert ColumnMatchingResult.no_match("Qty").reasoning == "No match found"
        assert (
            ColumnMatchingResult.no_match("Qty", "timeout").reasoning
            == "No match found (timeout)"
        )

    def test_serializes_with_camel_case(self):
        """Test JSON output uses camelCase field names."""
        result = ColumnMatchingResult.no_match("Qty")
        data = result.model_dump(by_alias=True)
        assert data["sourceHeader"] == "Qty"
        assert data["matchedTargetHeader"] == ""
        assert data["confidencePercentage"] == 0
        assert data["usedExistingMapping"] is False


class TestModelConfiguration:
    """Test ModelConfiguration."""

    def test_defaults(self):
        """Test default sampling parameters."""
        config = ModelConfiguration(model_id="gpt-4")
        assert config.temperature == 0.3
        assert config.max_tokens == 4000
        assert config.top_p == 1.0
        assert config.top_k == 50
        assert config.is_valid()

    def test_none_selects_default(self):
        """Test that None for an optional parameter means the default."""
        config = ModelConfiguration(
            model_id="gpt-4", temperature=None, max_tokens=None, top_p=None, top_k=None
        )
        assert config.temperature == 0.3
        assert config.max_tokens == 4000
        assert config.top_p == 1.0
        assert config.top_k == 50

    @pytest.mark.parametrize(
        "overrides",
        [
            {"temperature": 2.5},
            {"temperature": -0.1},
            {"max_tokens": 0},
            {"max_tokens": 100001},
            {"top_p": 1.1},
            {"top_k": 0},
            {"model_id": "  "},
        ],
    )
    def test_out_of_range_is_invalid(self, overrides):
        """Test that out-of-range values construct but fail validation."""
        values = {"model_id": "gpt-4", **overrides}
        assert not ModelConfiguration(**values).is_valid()

    def test_bounds_are_inclusive(self):
        """Test the edges of each range."""
        config = ModelConfiguration(
            model_id="gpt-4", temperature=2.0, max_tokens=100000, top_p=0.0, top_k=1
        )
        assert config.is_valid()


class TestProviderConfiguration:
    """Test ProviderConfiguration."""

    def test_name_defaults_to_id(self):
        """Test that the provider name defaults to the provider ID."""
        config = ProviderConfiguration(provider_id="openai")
        assert config.provider_name == "openai"
        assert config.is_valid()

    def test_get_parameter_with_type(self):
        """Test typed parameter lookup."""
        config = ProviderConfiguration(
            provider_id="openai", parameters={"apiKey": "sk-test", "timeoutSeconds": 30}
        )
        assert config.get_parameter("apiKey") == "sk-test"
        assert config.get_parameter("apiKey", str) == "sk-test"
        assert config.get_parameter("timeoutSeconds", str) is None
        assert config.get_parameter("missing") is None
        assert config.has_parameter("timeoutSeconds")
        assert not config.has_parameter("missing")

    def test_fingerprint_changes_with_parameters(self):
        """Test that the fingerprint is stable and parameter sensitive."""
        a = ProviderConfiguration(provider_id="openai", parameters={"apiKey": "one", "x": 1})
        b = ProviderConfiguration(provider_id="openai", parameters={"x": 1, "apiKey": "one"})
        c = ProviderConfiguration(provider_id="openai", parameters={"apiKey": "two", "x": 1})
        assert a.fingerprint() == b.fingerprint()
        assert a.fingerprint() != c.fingerprint()

    def test_redacted_parameters(self):
        """Test that secrets are masked for logging."""
        config = ProviderConfiguration(
            provider_id="aws-bedrock",
            parameters={
                "accessKeyId": "AKIA",
                "secretAccessKey": "shh",
                "sessionToken": "tok",
                "region": "us-east-1",
            },
        )
        redacted = config.redacted_parameters()
        assert redacted["accessKeyId"] == "***"
        assert redacted["secretAccessKey"] == "***"
        assert redacted["sessionToken"] == "***"
        assert redacted["region"] == "us-east-1"


class TestMatchingStatistics:
    """Test MatchingStatistics aggregation."""

    def test_empty_results(self):
        """Test statistics over no results."""
        stats = MatchingStatistics.from_results([])
        assert stats.matched_headers_count == 0
        assert stats.average_confidence == 0.0
        assert stats.existing_mappings_used_count == 0
        assert stats.existing_mapping_utilization_rate == 0.0

    def test_mixed_results(self):
        """Test averages and utilization over mixed results."""
        mapping = ColumnMapping(target_column="Customer ID", source_column="Cust_ID")
        results = [
            ColumnMatchingResult.confirmed("Cust_ID", mapping),
            ColumnMatchingResult(
                source_header="Qty",
                matched_target_header="Quantity",
                confidence_percentage=80,
                reasoning="abbreviation",
            ),
            ColumnMatchingResult.no_match("Foo"),
            ColumnMatchingResult(source_header="Bar", reasoning="no confidence"),
        ]
        stats = MatchingStatistics.from_results(results)
        assert stats.matched_headers_count == 4
        # Bar has no confidence and is left out of the average
        assert stats.average_confidence == pytest.approx(60.0)
        assert stats.existing_mappings_used_count == 1
        assert stats.existing_mapping_utilization_rate == pytest.approx(25.0)


class TestOperationMode:
    """Test OperationMode lookup."""

    def test_from_value(self):
        """Test lenient lookup."""
        assert OperationMode.from_value(" column_matching ") is OperationMode.COLUMN_MATCHING
        assert OperationMode.from_value("other") is None
        assert OperationMode.from_value(None) is None


class TestMatchRequest:
    """Test MatchRequest parsing."""

    def test_parses_camel_case_payload(self):
        """Test a full request body in JSON field names."""
        request = MatchRequest.model_validate(
            {
                "sourceHeaders": ["Qty"],
                "targetHeaders": ["Quantity"],
                "existingMappings": [{"targetColumn": "Quantity", "sourceColumn": "Qty"}],
                "industryContext": "retail",
                "modelConfiguration": {"modelId": "gpt-4", "maxTokens": 500},
                "providerConfiguration": {"providerId": "openai"},
            }
        )
        assert request.source_headers == ["Qty"]
        assert request.existing_mappings[0].target_column == "Quantity"
        assert request.model.max_tokens == 500
        assert request.provider.provider_name == "openai"
