"""
Unit tests for tool parameter schemas.
"""

import pytest
from pydantic import Field

from edwin.core.schema import (
    Auto,
    Exact,
    ParameterSchema,
    ToolParameters,
    parse_amount,
)
from edwin.plugins.aave import SupplyParameters, SupplyParametersSchema
from edwin.plugins.meteora import QuoteLiquidityParametersSchema
from edwin.utils.errors import ParameterValidationError


class BalanceParameters(ToolParameters):
    wallet_address: str = Field(min_length=1)
    chain_name: str | None = None


class TestParameterSchema:
    """Test ParameterSchema validation."""

    def setup_method(self):
        self.schema = ParameterSchema(BalanceParameters)

    def test_name_defaults_to_model_name(self):
        assert self.schema.name == "BalanceParameters"
        assert self.schema.type is BalanceParameters

    def test_json_schema_uses_wire_names(self):
        schema = self.schema.schema

        assert schema["type"] == "object"
        assert set(schema["properties"]) == {"walletAddress", "chainName"}
        assert schema["required"] == ["walletAddress"]
        assert schema["additionalProperties"] is False

    def test_json_schema_is_a_copy(self):
        self.schema.schema["type"] = "array"
        assert self.schema.schema["type"] == "object"

    def test_validate_accepts_wire_and_python_names(self):
        by_alias = self.schema.validate({"walletAddress": "0xabc", "chainName": "base"})
        by_name = self.schema.validate({"wallet_address": "0xabc"})

        assert by_alias.wallet_address == "0xabc"
        assert by_alias.chain_name == "base"
        assert by_name.wallet_address == "0xabc"
        assert by_name.chain_name is None

    def test_check_reports_missing_field(self):
        result = self.schema.check({})

        assert not result.is_valid
        assert result.value is None
        assert [str(v) for v in result.violations] == ["walletAddress: Required"]

    def test_check_reports_unknown_field(self):
        result = self.schema.check({"walletAddress": "0xabc", "memo": "hi"})

        assert not result.is_valid
        assert result.violations[0].field == "memo"
        assert result.violations[0].message == "Unknown parameter"
        assert result.violations[0].value == "hi"

    def test_check_non_object_input(self):
        result = self.schema.check("0xabc")

        assert not result.is_valid
        assert result.violations[0].field == "(parameters)"

    def test_check_passes_model_instances_through(self):
        params = BalanceParameters(wallet_address="0xabc")
        assert self.schema.check(params).value is params

    def test_validate_enumerates_every_violation(self):
        with pytest.raises(ParameterValidationError) as exc_info:
            SupplyParametersSchema.validate({"amount": -1})

        fields = {v.field for v in exc_info.value.violations}
        assert fields == {"chain", "asset", "amount"}
        assert "Invalid parameters for SupplyParameters" in exc_info.value.message
        assert exc_info.value.context["fields"]

    def test_validate_returns_typed_model(self):
        params = SupplyParametersSchema.validate({"chain": "base", "asset": "usdc", "amount": 10})

        assert isinstance(params, SupplyParameters)
        assert params.amount == 10.0

    def test_to_dict(self):
        result = self.schema.check({"walletAddress": "0xabc"})
        data = result.to_dict()

        assert data["is_valid"] is True
        assert data["value"] == {"walletAddress": "0xabc", "chainName": None}
        assert data["violations"] == []


class TestAmounts:
    """Test exact and inferred amounts."""

    def test_parse_amount(self):
        assert parse_amount(1.5) == Exact(1.5)
        assert parse_amount("auto") == Auto()
        assert parse_amount("AUTO") == Auto()

    def test_auto_on_one_side_is_accepted(self):
        params = QuoteLiquidityParametersSchema.validate(
            {"poolAddress": "pool", "amount": "auto", "amountB": 25}
        )

        assert parse_amount(params.amount) == Auto()
        assert parse_amount(params.amount_b) == Exact(25.0)

    def test_auto_on_both_sides_is_rejected(self):
        with pytest.raises(ParameterValidationError, match="cannot both be"):
            QuoteLiquidityParametersSchema.validate(
                {"poolAddress": "pool", "amount": "auto", "amountB": "auto"}
            )

    def test_non_positive_amount_is_rejected(self):
        result = QuoteLiquidityParametersSchema.check({"poolAddress": "pool", "amount": 0, "amountB": "auto"})
        assert not result.is_valid
