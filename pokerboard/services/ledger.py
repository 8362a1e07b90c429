"""Chip ledger arithmetic over loaded PlayerSession rows.

These helpers never touch the database; callers load ``transactions`` on
each PlayerSession (``selectinload``) before using them, and add the rows
built by ``new_transaction`` to their own session.

Cash-out accounting follows both ways a player can leave the table:
partial or full ``cashout`` calls write CASH_OUT rows and shrink the stack,
while ``leave`` parks the final chip count in ``current_stack`` and flips
the status. A cashed-out player's money taken off the table is therefore
the CASH_OUT rows plus whatever is left in ``current_stack``.
"""

from __future__ import annotations

from collections.abc import Iterable

from pokerboard.middleware.prometheus import record_ledger_transaction
from pokerboard.middleware.sentry import add_breadcrumb
from pokerboard.models import (
    BUY_IN_TYPES,
    PlayerSession,
    PlayerStatus,
    Transaction,
    TransactionType,
)

# Tolerance used when comparing money totals
BALANCE_TOLERANCE = 0.01


def total_buy_in(player: PlayerSession) -> float:
    """Money the player put on the table (BUY_IN + REBUY rows)."""
    amounts = [t.amount for t in player.transactions if t.type in BUY_IN_TYPES]
    if not amounts:
        return player.initial_buy_in
    return sum(amounts)


def cashed_out_amount(player: PlayerSession) -> float:
    """Money the player has taken off the table so far."""
    taken = sum(t.amount for t in player.transactions if t.type == TransactionType.CASH_OUT)
    if player.status == PlayerStatus.CASHED_OUT:
        taken += player.current_stack
    return taken


def profit_loss(player: PlayerSession) -> float:
    return cashed_out_amount(player) - total_buy_in(player)


def active_players(participants: Iterable[PlayerSession]) -> list[PlayerSession]:
    return [p for p in participants if p.status == PlayerStatus.ACTIVE]


def session_totals(participants: Iterable[PlayerSession]) -> tuple[float, float]:
    """Return ``(total_buy_ins, total_cash_out)`` across all participants."""
    total_in = 0.0
    total_out = 0.0
    for player in participants:
        total_in += total_buy_in(player)
        total_out += cashed_out_amount(player)
    return total_in, total_out


def required_cash_out(participants: Iterable[PlayerSession]) -> float:
    """Amount the remaining chips must be worth for the table to balance."""
    total_in, total_out = session_totals(participants)
    return total_in - total_out


def is_balanced(expected: float, actual: float) -> bool:
    return abs(expected - actual) <= BALANCE_TOLERANCE


def new_transaction(
    player: PlayerSession,
    transaction_type: TransactionType,
    amount: float,
) -> Transaction:
    """Build the ledger row for a chip move on a flushed PlayerSession."""
    record_ledger_transaction(transaction_type.value, amount)
    add_breadcrumb(
        f"{transaction_type.value} {amount}",
        data={"player_session_id": player.id, "session_id": player.session_id},
    )
    return Transaction(
        amount=amount,
        type=transaction_type,
        user_id=player.user_id,
        session_id=player.session_id,
        player_session_id=player.id,
    )
