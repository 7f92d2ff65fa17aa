"""
Shuffled draw/discard card supply.
"""

import random
from typing import Dict, Generic, Hashable, Iterable, List, Optional, TypeVar

from .errors import DoubleDiscard, NotCheckedOut, SupplyExhausted, UnknownCard

T = TypeVar("T", bound=Hashable)

# Per-card location. Cards that are neither remaining nor discarded are out
# with some holder; the supply does not know which.
_REMAINING = "remaining"
_DISCARDED = "discarded"
_OUT = "out"


class CardSupply(Generic[T]):
    """
    A pool of cards that are drawn, held elsewhere, discarded and reshuffled.

    Every card ever added stays known for the lifetime of the supply and is
    always in exactly one place: the remaining pile, the discard pile, or out
    with a holder. The remaining pile is only refilled by reshuffling the whole
    discard pile when a draw finds it empty, so a card can never be drawn again
    before it has been discarded.

    Cards are addressed by value, so they must be hashable and equal copies are
    interchangeable.
    """

    def __init__(self, cards: Optional[Iterable[T]] = None, seed: Optional[int] = None):
        self._cards: List[T] = []
        self._remaining: List[int] = []
        self._discarded: List[int] = []
        self._location: List[str] = []
        self._index: Dict[T, List[int]] = {}
        self._rng = random.Random(seed)
        if cards is not None:
            self.extend(cards)

    def add(self, card: T) -> None:
        """Add a new card. It starts in the discard pile."""
        idx = len(self._cards)
        self._cards.append(card)
        self._location.append(_DISCARDED)
        self._discarded.append(idx)
        self._index.setdefault(card, []).append(idx)

    def extend(self, cards: Iterable[T]) -> None:
        for card in cards:
            self.add(card)

    def draw(self, n_cards: int) -> List[T]:
        """
        Draw `n_cards` cards, reshuffling the discard pile whenever the
        remaining pile runs out.

        Raises:
            SupplyExhausted: if remaining and discarded together hold fewer
                than `n_cards` cards. Nothing is drawn in that case.
        """
        available = len(self._remaining) + len(self._discarded)
        if n_cards > available:
            raise SupplyExhausted(
                f"Cannot draw {n_cards} cards, only {available} of {len(self._cards)} are not out"
            )

        drawn = []
        for _ in range(n_cards):
            if not self._remaining:
                self._reshuffle()
            idx = self._remaining.pop()
            self._location[idx] = _OUT
            drawn.append(self._cards[idx])
        return drawn

    def draw_one(self) -> T:
        return self.draw(1)[0]

    def discard(self, cards: Iterable[T]) -> None:
        """
        Return cards that were previously drawn.

        Raises:
            UnknownCard: the card was never added to this supply
            NotCheckedOut: the card is still in the remaining pile
            DoubleDiscard: the card is already in the discard pile
        """
        for card in cards:
            idx = self._locate_out(card)
            self._location[idx] = _DISCARDED
            self._discarded.append(idx)

    def reset(self) -> None:
        """Treat every card as discarded, including those held elsewhere."""
        self._remaining = []
        self._discarded = list(range(len(self._cards)))
        self._location = [_DISCARDED] * len(self._cards)

    @property
    def cards(self) -> List[T]:
        return list(self._cards)

    @property
    def remaining_count(self) -> int:
        return len(self._remaining)

    @property
    def discarded_count(self) -> int:
        return len(self._discarded)

    @property
    def checked_out_count(self) -> int:
        return len(self._cards) - len(self._remaining) - len(self._discarded)

    def __len__(self) -> int:
        return len(self._cards)

    def _reshuffle(self) -> None:
        self._remaining = self._discarded
        self._discarded = []
        self._rng.shuffle(self._remaining)
        for idx in self._remaining:
            self._location[idx] = _REMAINING

    def _locate_out(self, card: T) -> int:
        # Equal copies are interchangeable, so prefer whichever one is out.
        positions = self._index.get(card)
        if not positions:
            raise UnknownCard(f"Tried to discard a card not in the supply: {card}")
        for idx in positions:
            if self._location[idx] == _OUT:
                return idx
        if any(self._location[idx] == _DISCARDED for idx in positions):
            raise DoubleDiscard(f"Tried to discard a card twice: {card}")
        raise NotCheckedOut(f"Tried to discard a card that was never drawn: {card}")
