"""Tests for THORChain quote pricing."""

from dataclasses import replace
from decimal import Decimal

import pytest

from swapquote.contracts.thorchain import AssetSpread, Pool
from swapquote.errors import BelowMinimumError, PricingUnavailableError
from swapquote.swap_engine.exchange_info import PER_ASSET_SPREAD_DEFAULT
from swapquote.swap_engine.pricing import (
    SwapCalcParams,
    affiliate_fee_from_basis,
    calc_network_fee,
    calc_swap_from,
    calc_swap_to,
    find_pool,
    floor_network_fee,
    get_volatility_spread,
    make_rune_pool,
    min_exchange_amount,
)

ONE_BTC = "100000000"


@pytest.fixture
def params(btc_wallet, eth_wallet, btc_pool, eth_pool) -> SwapCalcParams:
    """BTC -> ETH with no percentage fees and a 0.0024 ETH ($7.20) outbound fee."""
    return SwapCalcParams(
        from_wallet=btc_wallet,
        from_currency_code="BTC",
        to_wallet=eth_wallet,
        to_currency_code="ETH",
        native_amount=ONE_BTC,
        source_pool=btc_pool,
        dest_pool=eth_pool,
        volatility_spread=Decimal(0),
        affiliate_fee=Decimal(0),
        network_fee=Decimal("0.0024"),
    )


class TestCalcSwapFrom:
    """Tests for quoting the destination amount."""

    @pytest.mark.asyncio
    async def test_scenario_output(self, params):
        """Test 100 BTC through the fixture pools yields the double swap output minus fee."""
        result = await calc_swap_from(replace(params, native_amount="10000000000"))

        expected = Decimal("48.06777034464256") - Decimal("0.0024")
        assert abs(result.to_exchange_amount - expected) < Decimal("1e-6")
        assert result.from_native_amount == "10000000000"
        assert result.limit == str(int(result.to_exchange_amount * 100000000))
        assert result.to_native_amount == str(int(result.to_exchange_amount * 10**18))

    @pytest.mark.asyncio
    async def test_fee_order(self, params):
        """Test spread, then affiliate, then network fee are taken from the output."""
        plain = await calc_swap_from(params)
        with_fees = await calc_swap_from(
            replace(params, volatility_spread=Decimal("0.01"), affiliate_fee=Decimal("0.005"))
        )

        pool_output = plain.to_exchange_amount + plain.network_fee
        expected = pool_output * Decimal("0.99") * Decimal("0.995") - Decimal("0.0024")
        assert abs(with_fees.to_exchange_amount - expected) < Decimal("1e-15")

    @pytest.mark.asyncio
    async def test_monotonic_in_input(self, params):
        """Test more input never produces less output."""
        outputs = []
        for amount in ["5000000", "10000000", "100000000", "1000000000", "10000000000", "50000000000"]:
            result = await calc_swap_from(replace(params, native_amount=amount))
            outputs.append(result.to_exchange_amount)

        assert outputs == sorted(outputs)

    @pytest.mark.asyncio
    async def test_below_usd_minimum(self, params, btc_wallet, btc_pool):
        """Test the error payload is the minimum converted to native units."""
        with pytest.raises(BelowMinimumError) as exc_info:
            await calc_swap_from(replace(params, native_amount="1000"))

        minimum = min_exchange_amount(btc_pool)
        expected = await btc_wallet.denomination_to_native(format(minimum, "f"), "BTC")
        assert exc_info.value.native_amount == expected == "50000"
        assert exc_info.value.direction == "from"
        assert exc_info.value.currency_code == "BTC"

    @pytest.mark.asyncio
    async def test_declared_minimum_wins_when_larger(self, params):
        """Test a provider minimum above the USD minimum is reported."""
        with pytest.raises(BelowMinimumError) as exc_info:
            await calc_swap_from(replace(params, native_amount="60000", min_amount=Decimal("0.001")))

        assert exc_info.value.native_amount == "100000"

    @pytest.mark.asyncio
    async def test_network_fee_floored_at_one_usd(self, params):
        """Test a fee worth under $1 is raised to $1 of the destination asset."""
        result = await calc_swap_from(replace(params, network_fee=Decimal("0.0001")))
        assert result.network_fee == Decimal(1) / Decimal(3000)

    @pytest.mark.asyncio
    async def test_fee_exceeding_output_raises_to_side(self, params):
        """Test a swap whose output cannot cover the floored fee is below the minimum."""
        tiny = replace(params, native_amount="1000", network_fee=Decimal("0.0001"), min_usd_swap=Decimal(0))

        with pytest.raises(BelowMinimumError) as exc_info:
            await calc_swap_from(tiny)

        assert exc_info.value.direction == "to"
        assert exc_info.value.currency_code == "ETH"
        assert exc_info.value.native_amount == "333333333333333"

    @pytest.mark.asyncio
    async def test_single_leg_to_rune(self, params, btc_pool, pools, rune_wallet):
        """Test RUNE destinations swap through the source pool only."""
        rune_params = replace(
            params,
            to_wallet=rune_wallet,
            to_currency_code="RUNE",
            dest_pool=make_rune_pool(pools),
            network_fee=Decimal("0.02"),
            to_base=True,
        )
        result = await calc_swap_from(rune_params)

        # 1 BTC into a 10,000 BTC / 20,000 RUNE pool
        pool_output = Decimal(1e8 * 1e12 * 2e12 / (1e8 + 1e12) ** 2) / Decimal(1e8)
        assert abs(result.to_exchange_amount - (pool_output - Decimal("0.02"))) < Decimal("1e-8")


class TestCalcSwapTo:
    """Tests for quoting the source amount."""

    @pytest.mark.asyncio
    async def test_round_trip_without_affiliate(self, params):
        """Test quoting the output of a from-quote recovers the input."""
        spread = replace(params, volatility_spread=Decimal("0.015"))
        forward = await calc_swap_from(spread)

        backward = await calc_swap_to(replace(spread, native_amount=forward.to_native_amount))

        assert int(backward.from_native_amount) == pytest.approx(int(ONE_BTC), rel=1e-6)
        assert backward.to_native_amount == forward.to_native_amount

    @pytest.mark.asyncio
    async def test_affiliate_grosses_up_input(self, params):
        """Test the affiliate fee inflates the required input."""
        want = "10000000000000000000"  # 10 ETH
        plain = await calc_swap_to(replace(params, native_amount=want))
        with_affiliate = await calc_swap_to(replace(params, native_amount=want, affiliate_fee=Decimal("0.005")))

        assert with_affiliate.from_exchange_amount == pytest.approx(
            plain.from_exchange_amount / Decimal("0.995"), rel=Decimal("1e-20")
        )

    @pytest.mark.asyncio
    async def test_limit_is_requested_amount(self, params):
        result = await calc_swap_to(replace(params, native_amount="10000000000000000000"))
        assert result.limit == "1000000000"

    @pytest.mark.asyncio
    async def test_below_minimum_reports_destination_equivalent(self, params, btc_wallet, eth_wallet):
        """Test the error carries what the minimum input would produce, not the request."""
        high_minimum = replace(params, min_usd_swap=Decimal("100000000"))  # $100M, about 1,667 BTC

        with pytest.raises(BelowMinimumError) as exc_info:
            await calc_swap_to(replace(high_minimum, native_amount="1000000000000000"))  # 0.001 ETH

        minimum = min_exchange_amount(params.source_pool, min_usd_swap=Decimal("100000000"))
        native_min = await btc_wallet.denomination_to_native(format(minimum, "f"), "BTC")
        at_minimum = await calc_swap_from(replace(high_minimum, native_amount=native_min), dont_check_limits=True)
        expected = await eth_wallet.denomination_to_native(format(at_minimum.to_exchange_amount, "f"), "ETH")

        assert exc_info.value.direction == "to"
        assert exc_info.value.currency_code == "ETH"
        assert exc_info.value.native_amount == expected
        assert exc_info.value.native_amount != "1000000000000000"

    @pytest.mark.asyncio
    async def test_beyond_pool_capacity(self, params):
        """Test asking for more than the pool can pay out is unpriceable."""
        with pytest.raises(PricingUnavailableError):
            await calc_swap_to(replace(params, native_amount="2000000000000000000000"))  # 2,000 ETH


class TestNetworkFee:
    """Tests for outbound fee translation."""

    def test_gas_asset(self, pools):
        assert calc_network_fee("ETH", "ETH", "ETH", Decimal("240000"), pools) == Decimal("0.0024")

    def test_utxo_chain(self, pools):
        assert calc_network_fee("BTC", "BTC", "BTC", Decimal("1500"), pools) == Decimal("0.000015")

    def test_rune_is_fixed(self, pools):
        """Test RUNE outbound uses the fixed 0.02 RUNE fee."""
        assert calc_network_fee("THOR", "RUNE", "RUNE", Decimal("999999"), pools) == Decimal("0.02")

    def test_token_converted_through_pool_prices(self, pools):
        """Test 0.0024 ETH at 4 RUNE/ETH over 0.2 RUNE/USDC."""
        assert calc_network_fee("ETH", "ETH", "USDC", Decimal("240000"), pools) == Decimal("0.048")

    def test_missing_token_pool(self, btc_pool, eth_pool):
        with pytest.raises(PricingUnavailableError) as exc_info:
            calc_network_fee("ETH", "ETH", "USDC", Decimal("240000"), [btc_pool, eth_pool])
        assert exc_info.value.chain == "ETH"
        assert exc_info.value.asset == "USDC"

    def test_missing_gas_pool(self, usdc_pool):
        with pytest.raises(PricingUnavailableError):
            calc_network_fee("ETH", "ETH", "USDC", Decimal("240000"), [usdc_pool])

    def test_floor_keeps_large_fee(self, eth_pool):
        assert floor_network_fee(Decimal("0.01"), eth_pool) == Decimal("0.01")


class TestPools:
    """Tests for pool lookup."""

    def test_find_pool_ignores_contract_suffix(self, pools, usdc_pool):
        assert find_pool(pools, "ETH", "USDC") is usdc_pool

    def test_unavailable_pool_not_found(self, btc_pool):
        staged = btc_pool.model_copy(update={"status": "staged"})
        assert find_pool([staged], "BTC", "BTC") is None

    def test_empty_pool_not_found(self, btc_pool):
        empty = btc_pool.model_copy(update={"asset_depth": Decimal(0)})
        assert find_pool([empty], "BTC", "BTC") is None

    def test_rune_pool_priced_from_btc(self, pools):
        rune = make_rune_pool(pools)
        assert rune.asset == "THOR.RUNE"
        assert rune.asset_price == Decimal(1)
        assert rune.asset_price_usd == Decimal("30000")

    def test_rune_pool_needs_btc(self, eth_pool):
        with pytest.raises(PricingUnavailableError):
            make_rune_pool([eth_pool])


class TestVolatilitySpread:
    """Tests for spread selection."""

    def _spread(self, from_plugin, from_code, to_plugin, to_code, rules=PER_ASSET_SPREAD_DEFAULT):
        return get_volatility_spread(
            from_plugin, None, from_code, to_plugin, None, to_code,
            Decimal("0.0075"), Decimal("0.005"), rules,
        )

    def test_per_asset_rule(self):
        assert self._spread("bitcoin", "BTC", "ethereum", "ETH") == Decimal("0.015")
        assert self._spread("litecoin", "LTC", "ethereum", "ETH") == Decimal("0.01")

    def test_like_kind(self):
        assert self._spread("ethereum", "ETH", "avalanche", "WETH") == Decimal("0.005")

    def test_default(self):
        assert self._spread("ethereum", "ETH", "ethereum", "USDC") == Decimal("0.0075")

    def test_first_matching_rule_wins(self):
        rules = [
            AssetSpread(dest_currency_code="USDC", volatility_spread=Decimal("0.002")),
            AssetSpread(source_plugin_id="ethereum", volatility_spread=Decimal("0.02")),
        ]
        assert self._spread("ethereum", "ETH", "ethereum", "USDC", rules) == Decimal("0.002")
        assert self._spread("ethereum", "ETH", "bitcoin", "BTC", rules) == Decimal("0.02")

    def test_affiliate_fee_from_basis(self):
        assert affiliate_fee_from_basis(50) == Decimal("0.005")
