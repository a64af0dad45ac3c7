"""Helpers shared by the CLI command modules."""

from decimal import Decimal, InvalidOperation

import click

from tradeledger.config import get_db_path
from tradeledger.db.store import DataStore
from tradeledger.exceptions import SessionNotFoundError


class DecimalType(click.ParamType):
    """Click parameter parsed as an exact Decimal."""

    name = "decimal"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).replace(",", ""))
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid number", param, ctx)


DECIMAL = DecimalType()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"]


def get_data_store(config: dict) -> DataStore:
    return DataStore(get_db_path(config))


def get_user_id(config: dict) -> str:
    return config["ledger"]["user_id"]


def resolve_session(store: DataStore, config: dict, session_id: str | None) -> str:
    """Pick the session to work on, checking that named sessions exist.

    The configured default session needs no row in the sessions table.
    """
    default_session = config["ledger"]["default_session"]
    if not session_id or session_id == default_session:
        return default_session
    try:
        return store.require_session(get_user_id(config), session_id).id
    except SessionNotFoundError as e:
        raise click.ClickException(str(e)) from e


def format_amount(value: Decimal | None, places: int = 4) -> str:
    if value is None:
        return "-"
    return f"{value:,.{places}f}"


def format_signed(value: Decimal, places: int = 4) -> str:
    """Green/red rich markup with an explicit sign."""
    color = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else ""
    return f"[{color}]{sign}{value:,.{places}f}[/{color}]"
