"""Settlement calculation for a finished game.

Pure functions over per-player profit/loss figures:

1. A discount percentage trims every result toward zero, so winners keep
   a bit less and losers owe a bit less.
2. The session cost (venue, food) is carried by the winners only, in
   proportion to their discounted profit.
3. The table balances when total winnings equal total losses within a
   cent.

Usage:
    result = calculate_settlement(
        [PlayerResult("u1", "Ali", 300), PlayerResult("u2", "Veli", -300)],
        session_cost=100,
        discount=10,
    )
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from pokerboard.models import GameSession, PlayerStatus, SessionStatus
from pokerboard.services.ledger import BALANCE_TOLERANCE, profit_loss
from pokerboard.utils.formatting import round_half_up


@dataclass
class PlayerResult:
    """Raw outcome of one cashed-out player."""

    user_id: str
    name: str
    profit_loss: float


@dataclass
class SettlementLine:
    """Settled figures of one player."""

    user_id: str
    name: str
    profit_loss: float
    adjusted_profit_loss: float
    discount_amount: float
    cost_share: float
    final_profit: float


@dataclass
class SettlementSummary:
    """Whole-table settlement."""

    lines: list[SettlementLine] = field(default_factory=list)
    session_cost: float = 0.0
    discount: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    total_discount: float = 0.0

    @property
    def imbalance(self) -> float:
        return self.total_profit - self.total_loss

    @property
    def is_balanced(self) -> bool:
        return abs(self.imbalance) < BALANCE_TOLERANCE


def apply_discount(profit_loss_value: float, discount: float) -> tuple[float, float]:
    """Return ``(adjusted, discount_amount)`` for one result.

    Both figures are whole amounts; a break-even result stays at zero.
    """
    if profit_loss_value == 0:
        return profit_loss_value, 0
    discount_amount = 0
    if discount > 0:
        discount_amount = round_half_up(abs(profit_loss_value) * discount / 100)
    if profit_loss_value > 0:
        return round_half_up(profit_loss_value - discount_amount), discount_amount
    return round_half_up(profit_loss_value + discount_amount), discount_amount


def calculate_settlement(
    players: Sequence[PlayerResult],
    session_cost: float | None = None,
    discount: float | None = None,
) -> SettlementSummary:
    """Compute discounts, cost shares and final amounts for every player."""
    cost = session_cost or 0.0
    discount = discount or 0.0
    summary = SettlementSummary(session_cost=cost, discount=discount)

    adjusted: list[tuple[PlayerResult, float, float]] = []
    for player in players:
        value, discount_amount = apply_discount(player.profit_loss, discount)
        adjusted.append((player, value, discount_amount))
        summary.total_discount += discount_amount
        if player.profit_loss > 0:
            summary.total_profit += player.profit_loss
        elif player.profit_loss < 0:
            summary.total_loss += abs(player.profit_loss)

    total_winnings = sum(value for _, value, _ in adjusted if value > 0)

    for player, value, discount_amount in adjusted:
        if value > 0 and total_winnings > 0:
            cost_share = round_half_up(cost * value / total_winnings)
            final_profit = round_half_up(value - cost_share)
        else:
            cost_share = 0
            final_profit = round_half_up(value)
        summary.lines.append(
            SettlementLine(
                user_id=player.user_id,
                name=player.name,
                profit_loss=player.profit_loss,
                adjusted_profit_loss=value,
                discount_amount=discount_amount,
                cost_share=cost_share,
                final_profit=final_profit,
            )
        )

    return summary


def player_results(game_session: GameSession) -> list[PlayerResult]:
    """Profit/loss of every cashed-out participant.

    Needs ``participants`` with their ``user`` and ``transactions`` loaded.
    """
    return [
        PlayerResult(
            user_id=p.user_id,
            name=p.user.name,
            profit_loss=profit_loss(p),
        )
        for p in game_session.participants
        if p.status == PlayerStatus.CASHED_OUT
    ]


def can_settle(game_session: GameSession) -> bool:
    """A completed session whose players have all cashed out."""
    participants = game_session.participants
    return (
        game_session.status == SessionStatus.COMPLETED
        and len(participants) > 0
        and all(p.status == PlayerStatus.CASHED_OUT for p in participants)
    )
