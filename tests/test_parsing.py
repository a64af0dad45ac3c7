"""Tests for trade export parsing and format detection.

**Feature: trade-ledger**
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from tradeledger.ledger import merge_trades
from tradeledger.models import Side
from tradeledger.parsing import detect_and_parse, parse_trades
from tradeledger.parsing.block import parse_block_format
from tradeledger.parsing.normalize import clean_lines
from tradeledger.parsing.table import parse_headerless_table, parse_table_format
from tradeledger.parsing.vertical import parse_vertical_format


LEGACY_INPUT = """SOL/USDT Spot Limit Sell 720.700000 USDT 144.14 USDT 5.0000 SOL
0.720700000000 USDT
2026-01-16 22:34:02 16943102 69540352
SOL/USDT Spot Limit Buy 317.457390 USDT 144.05 USDT 2.2038 SOL
0.317457390000 USDT
2026-01-16 22:33:20 16942414 56325120"""

TABLE_INPUT = (
    "Spot Pairs\tOrder Type\tDirection\tfeeCoin\tExecFeeV2\tFilled Value\tFilled Price"
    "\tFilled Quantity\tFees\tTransaction ID\tOrder No.\tTimestamp (UTC)\n"
    "SOLUSDT\tLIMIT\tSELL\tUSDT\t0.7207\t720.7\t144.14\t5\t0.7207\t2.21E+18\t69540352\t1/16/2026 19:34\n"
    "SOLUSDT\tLIMIT\tBUY\tSOL\t0.02\t2837.2\t141.86\t20\t0.02\t2.21E+18\t70246656\t1/15/2026 18:40"
)

HEADERLESS_INPUT = (
    'SOLUSDT\tUSDT\t0.7207\t{"USDT":"0.7207"}\tLIMIT\tSELL\t720.7\t144.14\t144.14\t5\t720.7\tFILLED\t69540352\n'
    'SOLUSDT\tSOL\t0.02\t{"SOL":"0.02"}\tLIMIT\tBUY\t2837.2\t141.86\t141.86\t20\t2837.2\tFILLED\t70246656'
)

BLOCK_INPUT = """SOL/USDT Spot Limit Buy 1,436.600000 USDT
143.66/143.66 USDT
10.0000 / 10.0000 SOL
--
1,436.600000 USDT
Filled
2026-01-17 17:39:10 16831744
SOL/USDT Spot Limit Sell 720.700000 USDT
144.14/144.14 USDT
5.0000 / 5.0000 SOL
--
720.700000 USDT
Filled
2026-01-16 22:34:00 69540352"""

SHORT_BLOCK_INPUT = """SOL/USDT\tSpot\tLimit\tBuy\t1,459.600000 USDT
145.96/145.96 USDT
10.0000 / 10.0000 SOL
--
1,459.600000 USDT
Filled
2026-01-12 20:52:07 88640000"""

VERTICAL_INPUT = """SOL/USDT
Spot
Limit
Buy
1,436.600000 USDT
143.66
10.0000  SOL
Trade
0.01  SOL

2026-01-18 01:36:31
17832426
--
--"""


class TestLegacyFormat:
    """
    **Feature: trade-ledger, Property 1: Single-Line Export Parsing**

    *For any* single-line export, each trade line yields one record and its
    fee and time lines are attached to it.
    """

    def test_sell_with_fee_and_time(self):
        result = parse_trades(LEGACY_INPUT)

        assert result.errors == []
        assert len(result.trades) == 2

        sell = result.trades[0]
        assert sell.side == Side.SELL
        assert sell.symbol == "SOL/USDT"
        assert sell.price == Decimal("144.14")
        assert sell.base_amount == Decimal("5")
        assert sell.quote_amount == Decimal("720.7")
        assert sell.fee_amount == Decimal("0.7207")
        assert sell.fee_asset == "USDT"
        assert sell.time == "2026-01-16 22:34:02"
        assert sell.order_id == "16943102"
        assert sell.trade_id == "69540352"
        assert len(sell.raw_lines) == 3

    def test_single_trade_with_continuations(self):
        text = "\n".join(LEGACY_INPUT.splitlines()[:3])

        result = parse_trades(text)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.side == Side.SELL
        assert trade.price == Decimal("144.14")
        assert trade.base_amount == Decimal("5")
        assert trade.quote_amount == Decimal("720.7")

    def test_trade_without_continuations(self):
        result = parse_trades("BTC/USDT Spot Market Buy 100 USDT 50,000 USDT 0.002 BTC")

        assert result.errors == []
        trade = result.trades[0]
        assert trade.price == Decimal("50000")
        assert trade.fee_amount is None
        assert trade.time is None

    def test_unrecognized_lines_reported_and_skipped(self):
        text = "this is not a trade\n" + LEGACY_INPUT.splitlines()[0]

        result = parse_trades(text)

        assert len(result.trades) == 1
        assert len(result.errors) == 1
        assert "this is not a trade" in result.errors[0]

    def test_all_lines_failing_still_returns_result(self):
        result = parse_trades("hello\nworld")

        assert result.trades == []
        assert len(result.errors) == 2


class TestHeaderedTable:
    """
    **Feature: trade-ledger, Property 2: Headered Table Parsing**

    *For any* table with a recognized header, each complete row becomes one
    trade and rows with problems become errors.
    """

    def test_rows_become_trades(self):
        result = parse_trades(TABLE_INPUT)

        assert result.errors == []
        assert len(result.trades) == 2

        sell, buy = result.trades
        assert sell.symbol == "SOL/USDT"
        assert sell.base_asset == "SOL"
        assert sell.quote_asset == "USDT"
        assert sell.side == Side.SELL
        assert sell.order_type == "LIMIT"
        assert sell.price == Decimal("144.14")
        assert sell.base_amount == Decimal("5")
        assert sell.quote_amount == Decimal("720.7")
        assert sell.fee_amount == Decimal("0.7207")
        assert sell.fee_asset == "USDT"
        assert sell.time == "2026-01-16 19:34:00"
        assert sell.order_id == "69540352"
        assert sell.trade_id == "2.21E+18"

        assert buy.side == Side.BUY
        assert buy.fee_asset == "SOL"
        assert buy.fee_amount == Decimal("0.02")

    def test_header_found_after_preamble(self):
        result = parse_trades("Exported trade history\n" + TABLE_INPUT)

        assert len(result.trades) == 2

    def test_short_row_is_error(self):
        header = TABLE_INPUT.splitlines()[0]
        result = parse_table_format([header, "SOLUSDT\tLIMIT\tBUY"])

        assert result.trades == []
        assert len(result.errors) == 1
        assert "Not enough columns" in result.errors[0]

    def test_unknown_side_is_error(self):
        header, row, _ = TABLE_INPUT.splitlines()
        result = parse_table_format([header, row.replace("SELL", "HOLD")])

        assert result.trades == []
        assert "side" in result.errors[0]

    def test_bad_timestamp_keeps_record(self):
        header, row, _ = TABLE_INPUT.splitlines()
        result = parse_table_format([header, row.replace("1/16/2026 19:34", "yesterday")])

        assert result.errors == []
        assert result.trades[0].time is None

    def test_fee_falls_back_to_second_spelling(self):
        header = (
            "Spot Pairs\tOrder Type\tDirection\tfeeCoin\tExecFeeV2\tFilled Value"
            "\tFilled Price\tFilled Quantity\tOrder No."
        )
        row = "ETHUSDT\tMARKET\tBUY\tUSDT\t1.5\t3000\t3000\t1\t42"
        result = parse_table_format([header, row])

        trade = result.trades[0]
        assert trade.fee_amount == Decimal("1.5")
        assert trade.time is None
        assert trade.trade_id is None


class TestHeaderlessTable:
    """
    **Feature: trade-ledger, Property 3: Headerless Table Parsing**

    *For any* positional row, the layout is chosen by the shape of the last
    column and unexecuted orders are excluded without errors.
    """

    def test_variant_a_rows(self):
        result = parse_trades(HEADERLESS_INPUT)

        assert result.errors == []
        assert len(result.trades) == 2
        sell = result.trades[0]
        assert sell.side == Side.SELL
        assert sell.order_type == "LIMIT"
        assert sell.price == Decimal("144.14")
        assert sell.base_amount == Decimal("5")
        assert sell.quote_amount == Decimal("720.7")
        assert sell.fee_amount == Decimal("0.7207")
        assert sell.fee_asset == "USDT"
        assert sell.order_id == "69540352"
        assert sell.time is None

    def test_variant_a_unfilled_rows_are_excluded(self):
        lines = clean_lines(HEADERLESS_INPUT.replace("FILLED\t70246656", "CANCELED\t70246656"))

        result = parse_headerless_table(lines)

        assert len(result.trades) == 1
        assert result.errors == []

    def test_variant_b_rows(self):
        row = (
            "SOLUSDT\tLIMIT\tBUY\tSOL\t0.02\t2837.2\t141.86\t20\t0.03"
            "\t2.21E+18\t70246656\t1/15/2026 18:40"
        )

        result = parse_trades(row)

        assert result.errors == []
        trade = result.trades[0]
        assert trade.side == Side.BUY
        assert trade.fee_amount == Decimal("0.03")
        assert trade.fee_asset == "SOL"
        assert trade.base_amount == Decimal("20")
        assert trade.time == "2026-01-15 18:40:00"
        assert trade.order_id == "70246656"
        assert trade.trade_id == "2.21E+18"

    def test_short_rows_are_ignored(self):
        result = parse_headerless_table(["SOLUSDT\tUSDT\t0.1"])

        assert result.trades == []
        assert result.errors == []

    def test_unknown_side_is_error(self):
        lines = clean_lines(HEADERLESS_INPUT.replace("\tSELL\t", "\tHOLD\t"))

        result = parse_headerless_table(lines)

        assert len(result.trades) == 1
        assert len(result.errors) == 1


class TestBlockFormat:
    """
    **Feature: trade-ledger, Property 4: Block Reconstruction**

    *For any* block export, continuation lines fill in the anchor's record
    and blocks with a non-Filled status are dropped.
    """

    def test_full_blocks(self):
        result = parse_trades(BLOCK_INPUT)

        assert result.errors == []
        assert len(result.trades) == 2

        buy = result.trades[0]
        assert buy.side == Side.BUY
        assert buy.price == Decimal("143.66")
        assert buy.price_asset == "USDT"
        assert buy.base_amount == Decimal("10")
        assert buy.base_asset == "SOL"
        assert buy.quote_amount == Decimal("1436.6")
        assert buy.time == "2026-01-17 17:39:10"
        assert buy.order_id == "16831744"
        assert len(buy.raw_lines) == 7

    def test_short_block_with_tabs(self):
        result = parse_trades(SHORT_BLOCK_INPUT)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.price == Decimal("145.96")
        assert trade.base_amount == Decimal("10")
        assert trade.quote_amount == Decimal("1459.6")
        assert trade.time == "2026-01-12 20:52:07"

    def test_short_anchor_without_continuations_defaults_to_zero(self):
        result = parse_block_format(["SOL/USDT Spot Limit Buy 100 USDT"])

        trade = result.trades[0]
        assert trade.side == Side.BUY
        assert trade.price == Decimal("0")
        assert trade.base_amount == Decimal("0")
        assert trade.base_asset == "SOL"
        assert trade.quote_amount == Decimal("100")

    def test_unfilled_block_is_dropped_silently(self):
        text = BLOCK_INPUT.replace("Filled", "Cancelled", 1)

        result = parse_trades(text)

        assert result.errors == []
        assert len(result.trades) == 1
        assert result.trades[0].side == Side.SELL

    def test_status_match_is_case_sensitive(self):
        for status in ("FILLED", "filled"):
            lines = clean_lines(SHORT_BLOCK_INPUT.replace("Filled", status))

            result = parse_block_format(lines)

            assert result.trades == []
            assert result.errors == []

    def test_malformed_anchor_is_error(self):
        lines = ["SOL/USDT Spot Buy"] + clean_lines(SHORT_BLOCK_INPUT)

        result = parse_block_format(lines)

        assert len(result.trades) == 1
        assert len(result.errors) == 1
        assert "SOL/USDT Spot Buy" in result.errors[0]


class TestVerticalFormat:
    """
    **Feature: trade-ledger, Property 5: Vertical Record Parsing**

    *For any* one-field-per-line export, each symbol line starts a record
    and an unknown side costs one error.
    """

    def test_record_with_fee_time_and_order(self):
        result = parse_trades(VERTICAL_INPUT)

        assert result.errors == []
        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.symbol == "SOL/USDT"
        assert trade.market_type == "Spot"
        assert trade.order_type == "Limit"
        assert trade.side == Side.BUY
        assert trade.quote_amount == Decimal("1436.6")
        assert trade.price == Decimal("143.66")
        assert trade.base_amount == Decimal("10")
        assert trade.fee_amount == Decimal("0.01")
        assert trade.fee_asset == "SOL"
        assert trade.time == "2026-01-18 01:36:31"
        assert trade.order_id == "17832426"

    def test_consecutive_records_without_fee(self):
        lines = [
            "ETH/USDT", "Spot", "Market", "sell", "300 USDT", "3000", "0.1 ETH",
            "2026-01-02 10:00:00", "555", "--",
            "BTC/USDT", "Spot", "Limit", "BUY", "100 USDT", "50000", "0.002 BTC",
        ]

        result = parse_vertical_format(lines)

        assert result.errors == []
        assert len(result.trades) == 2
        assert result.trades[0].side == Side.SELL
        assert result.trades[0].time == "2026-01-02 10:00:00"
        assert result.trades[0].order_id == "555"
        assert result.trades[1].side == Side.BUY
        assert result.trades[1].base_asset == "BTC"
        assert result.trades[1].time is None

    def test_unknown_side_is_error(self):
        lines = ["BTC/USDT", "Spot", "Limit", "Hold", "100 USDT", "50000", "0.002 BTC"]

        result = parse_vertical_format(lines)

        assert result.trades == []
        assert result.errors == ['Could not recognize trade side: "Hold"']

    def test_scan_resumes_after_unknown_side(self):
        lines = [
            "BTC/USDT", "Spot", "Limit", "Hold",
            "ETH/USDT", "Spot", "Market", "Sell", "300 USDT", "3000", "0.1 ETH",
        ]

        result = parse_vertical_format(lines)

        assert result.errors == ['Could not recognize trade side: "Hold"']
        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.symbol == "ETH/USDT"
        assert trade.side == Side.SELL
        assert trade.quote_amount == Decimal("300")
        assert trade.price == Decimal("3000")
        assert trade.base_amount == Decimal("0.1")

    def test_missing_quote_line_skips_group(self):
        result = parse_vertical_format(["BTC/USDT", "Spot", "Limit", "Buy"])

        assert result.trades == []
        assert result.errors == []


class TestFormatDetection:
    """
    **Feature: trade-ledger, Property 6: Priority-Ordered Detection**

    *For any* input, strategies are tried in fixed order and the first one
    producing trades wins.
    """

    def test_each_sample_picks_its_format(self):
        samples = {
            TABLE_INPUT: "headered-table",
            HEADERLESS_INPUT: "headerless-table",
            BLOCK_INPUT: "block",
            VERTICAL_INPUT: "vertical",
            LEGACY_INPUT: "legacy",
        }
        for text, expected in samples.items():
            name, result = detect_and_parse(clean_lines(text))
            assert name == expected
            assert result.trades

    def test_empty_input(self):
        result = parse_trades("  \n\n ")

        assert result.trades == []
        assert result.errors == []

    @given(
        text=st.text(
            alphabet=st.sampled_from(list("abcSOL/USDT0123456789.,-\t {}\"\n")),
            max_size=200,
        )
    )
    @settings(max_examples=200)
    def test_parsing_never_raises(self, text: str):
        """
        *For any* text, parsing returns a result instead of raising.
        """
        result = parse_trades(text)

        assert isinstance(result.trades, list)
        assert isinstance(result.errors, list)


class TestReimportIdempotence:
    """
    **Feature: trade-ledger, Property 7: Re-submission Does Not Duplicate**

    *For any* supported input, parsing it twice and merging both results
    yields as many trades as a single parse.
    """

    def test_double_parse_merge(self):
        for text in (LEGACY_INPUT, TABLE_INPUT, HEADERLESS_INPUT, BLOCK_INPUT, VERTICAL_INPUT):
            first = parse_trades(text).trades
            second = parse_trades(text).trades

            ledger = merge_trades(merge_trades([], first), second)

            assert len(ledger) == len(first)
