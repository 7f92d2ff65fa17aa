"""
The shared game session: roster, card supplies and the round state machine.
"""

import itertools
import logging
import threading
from bisect import bisect_left
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel

from .channel import ClientChannel
from .deck import CardSupply
from .errors import (
    ALREADY_LOGGED_IN, NOT_LOGGED_IN, InvariantViolation, NoPlayers,
    SendFailed, SessionHalted,
)
from .models import Answer, LoginRejectedReason, Player, Prompt, Round, RoundPhase
from .rules import RuleConfig, default_rules
from .validate import (
    ValidationResult, remove_from_hand, validate_answer_submission,
    validate_judgement,
)
from .ws.events import (
    AnswerAcceptedEvent, AnswerRejectedEvent, ErrorEvent, GameEndedEvent,
    JudgementRejectedEvent, LoginAcceptedEvent, LoginRejectedEvent,
    NewRoundEvent, PlayerJoinedEvent, PlayerLeftEvent, ReadyToJudgeEvent,
    RoundEndedEvent,
)

logger = logging.getLogger(__name__)


def next_czar(player_ids: Iterable[int], previous_czar: Optional[int]) -> int:
    """
    Pick the czar for the next round.

    The player whose id follows the previous czar's gets the role; gaps left
    by players who have gone are skipped, and the choice wraps around to the
    lowest id. With no previous czar the lowest id is chosen.
    """
    ids = sorted(player_ids)
    if not ids:
        raise NoPlayers("There are no players!")
    candidate = 0 if previous_czar is None else previous_czar + 1
    idx = bisect_left(ids, candidate)
    if idx == len(ids):
        return ids[0]
    return ids[idx]


class SessionCoordinator:
    """
    Owns the single game session and serializes every operation on it.

    Client ids are handed out by `connect` and double as player ids once the
    client logs in. Outbound events go through each client's ClientChannel,
    which never blocks, so no operation waits on the network while holding
    the session lock.
    """

    def __init__(
        self,
        prompts: Iterable[Prompt] = (),
        answers: Iterable[Answer] = (),
        rules: RuleConfig = default_rules,
        seed: Optional[int] = None
    ):
        self.rules = rules
        self.prompt_supply: CardSupply[Prompt] = CardSupply(prompts, seed=seed)
        self.answer_supply: CardSupply[Answer] = CardSupply(answers, seed=seed)
        self.players: Dict[int, Player] = {}
        self.round: Optional[Round] = None
        self.clients: Dict[int, ClientChannel] = {}
        self._previous_czar: Optional[int] = None
        self._halted: Optional[InvariantViolation] = None
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def halted(self) -> bool:
        return self._halted is not None

    # Connection lifecycle

    def connect(self, channel: ClientChannel) -> int:
        """Register a new client connection and return its id."""
        with self._lock:
            client_id = next(self._ids)
            self.clients[client_id] = channel
            logger.info(f"User connected: #{client_id}")
            return client_id

    def on_disconnect(self, client_id: int) -> bool:
        """
        Remove a client and everything it held. Runs at most once per client;
        returns False when the client had already left.
        """
        with self._lock:
            channel = self.clients.pop(client_id, None)
            if channel is None:
                return False
            channel.close()

            if self._halted is not None:
                self.players.pop(client_id, None)
                return True

            with self._guard():
                self._remove_player(client_id)
            return True

    # Client requests

    def on_login(self, client_id: int, name: str) -> bool:
        """Add the client to the roster under `name`. Returns True if accepted."""
        with self._mutation():
            if not self._is_connected(client_id):
                logger.info(f"Ignoring login from departed client #{client_id}")
                return False

            if client_id in self.players:
                logger.warning(f"invalid query Login: client #{client_id} is already logged in")
                self._send(client_id, ErrorEvent(code=ALREADY_LOGGED_IN, message="Already logged in"))
                return False

            if self.rules.is_full(len(self.players)):
                logger.info(f"Rejected login of {name!r}: game is full")
                self._send(client_id, LoginRejectedEvent(reason=LoginRejectedReason.GAME_FULL))
                return False

            if any(player.name == name for player in self.players.values()):
                logger.info(f"Rejected login of {name!r}: username is taken")
                self._send(client_id, LoginRejectedEvent(reason=LoginRejectedReason.USERNAME_TAKEN))
                return False

            hand = self.answer_supply.draw(self.rules.hand_size)
            player = Player(id=client_id, name=name, hand=hand)
            self._send(client_id, LoginAcceptedEvent(player_id=client_id))
            self._broadcast(PlayerJoinedEvent(name=name))
            self.players[client_id] = player
            logger.info(f"Player #{client_id} logged in as {name!r}")

            # Only start a round once there are enough players
            if self.rules.has_quorum(len(self.players)):
                if self.round is None:
                    logger.info("Starting new round")
                    self._start_round()
                elif self.round.phase == RoundPhase.ANSWERING:
                    # Nothing to do for a newcomer while the czar is judging
                    self._send(client_id, NewRoundEvent(
                        role=self.round.role_of(client_id),
                        prompt=self.round.prompt,
                        hand=list(player.hand),
                    ))
            return True

    def on_submit_answer(self, player_id: int, cards: List[Answer]) -> ValidationResult:
        with self._mutation():
            player = self._logged_in_player(player_id, "SubmitAnswer")
            if player is None:
                return ValidationResult.error(NOT_LOGGED_IN, "Player is not logged in")

            result = validate_answer_submission(self.round, player, cards)
            if not result:
                logger.warning(f"invalid query SubmitAnswer from player #{player_id}: {result.error_message}")
                self._send(player_id, AnswerRejectedEvent(
                    reason=result.error_code, message=result.error_message
                ))
                return result

            logger.info(f"SubmitAnswer from player #{player_id}: {', '.join(str(card) for card in cards)}")
            player.hand = remove_from_hand(player.hand, cards)
            self.round.answers[player_id] = list(cards)
            self._send(player_id, AnswerAcceptedEvent())
            self._begin_judging_if_complete()
            return result

    def on_submit_judgement(self, player_id: int, winning_player_id: int) -> ValidationResult:
        with self._mutation():
            if self._logged_in_player(player_id, "SubmitJudgement") is None:
                return ValidationResult.error(NOT_LOGGED_IN, "Player is not logged in")

            result = validate_judgement(self.round, player_id, winning_player_id)
            if not result:
                logger.warning(f"invalid query SubmitJudgement from player #{player_id}: {result.error_message}")
                self._send(player_id, JudgementRejectedEvent(
                    reason=result.error_code, message=result.error_message
                ))
                return result

            winner = self.players[winning_player_id]
            winner.score += 1
            winning_answers = list(self.round.answers[winning_player_id])
            scores = {player.name: player.score for player in self.players.values()}
            logger.info(f"Player #{winning_player_id} ({winner.name}) wins the round")

            # Notify end of round, then move straight on to the next one
            self._broadcast(RoundEndedEvent(
                winner=winner.name,
                winning_answers=winning_answers,
                scores=scores,
            ))
            self._start_round()
            return result

    # Read-only queries

    def snapshot(self) -> Dict[str, Any]:
        """Summary of the session without any player's hand contents."""
        with self._lock:
            round_info = None
            if self.round is not None:
                round_info = {
                    "prompt": str(self.round.prompt),
                    "czar": self.round.czar,
                    "phase": self.round.phase.value,
                    "submitted": sorted(self.round.answers),
                }
            return {
                "halted": self._halted is not None,
                "connections": len(self.clients),
                "players": [
                    {
                        "id": player.id,
                        "name": player.name,
                        "score": player.score,
                        "hand_count": len(player.hand),
                    }
                    for player in sorted(self.players.values(), key=lambda p: p.id)
                ],
                "round": round_info,
                "prompts": _supply_counts(self.prompt_supply),
                "answers": _supply_counts(self.answer_supply),
            }

    # Internals. Everything below runs with the lock held.

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock:
            with self._guard():
                yield

    @contextmanager
    def _guard(self) -> Iterator[None]:
        if self._halted is not None:
            raise SessionHalted(self._halted)
        try:
            yield
        except InvariantViolation as e:
            self._halted = e
            logger.exception(f"Invariant violated, refusing further changes to the session: {e}")
            raise SessionHalted(e) from e

    def _is_connected(self, client_id: int) -> bool:
        return client_id in self.clients

    def _logged_in_player(self, player_id: int, query: str) -> Optional[Player]:
        if not self._is_connected(player_id):
            logger.info(f"Dropping {query} from departed client #{player_id}")
            return None
        player = self.players.get(player_id)
        if player is None:
            logger.warning(f"invalid query {query}: client #{player_id} is not logged in")
            self._send(player_id, ErrorEvent(code=NOT_LOGGED_IN, message="Log in first"))
        return player

    def _start_round(self) -> None:
        if not self.players:
            raise NoPlayers("There are no players!")

        # Discard current round
        if self.round is not None:
            self._discard_round(self.round)
            self.round = None

        czar = next_czar(self.players.keys(), self._previous_czar)
        logger.info(f"Players to choose from: {', '.join(str(pid) for pid in sorted(self.players))}")

        round = Round(prompt=self.prompt_supply.draw_one(), czar=czar)
        self._distribute_cards()
        self.round = round
        self._previous_czar = czar
        logger.info(f"Next czar is player #{czar}, prompt {round.prompt}")

        for player_id, player in self.players.items():
            self._send(player_id, NewRoundEvent(
                role=round.role_of(player_id),
                prompt=round.prompt,
                hand=list(player.hand),
            ))

    def _distribute_cards(self) -> None:
        for player in self.players.values():
            shortfall = self.rules.hand_size - len(player.hand)
            if shortfall > 0:
                player.hand.extend(self.answer_supply.draw(shortfall))

    def _discard_round(self, round: Round) -> None:
        self.prompt_supply.discard([round.prompt])
        for cards in round.answers.values():
            self.answer_supply.discard(cards)

    def _begin_judging_if_complete(self) -> None:
        round = self.round
        if round is None or round.phase != RoundPhase.ANSWERING or not round.answers:
            return
        if not round.everyone_answered(len(self.players)):
            return

        round.phase = RoundPhase.JUDGING
        logger.info(f"All players answered, czar #{round.czar} is judging")
        answers = {player_id: list(cards) for player_id, cards in round.answers.items()}
        self._broadcast(ReadyToJudgeEvent(answers=answers))

    def _remove_player(self, client_id: int) -> None:
        player = self.players.pop(client_id, None)
        if player is None:
            logger.info(f"Client #{client_id} disconnected before logging in")
            return

        logger.info(f"Player #{client_id} ({player.name}) disconnected")
        self.answer_supply.discard(player.hand)
        player.hand = []

        round = self.round
        if round is not None:
            submitted = round.answers.pop(client_id, None)
            if submitted is not None:
                self.answer_supply.discard(submitted)

            if round.czar == client_id:
                # Abandon the round; everyone keeps what they submitted
                self.round = None
                self._previous_czar = None
                self.prompt_supply.discard([round.prompt])
                for player_id, cards in round.answers.items():
                    self.players[player_id].hand.extend(cards)
                if self.players:
                    self._start_round()
            elif self.rules.has_quorum(len(self.players)):
                if round.phase == RoundPhase.ANSWERING:
                    self._begin_judging_if_complete()
                elif not round.answers:
                    logger.info("No answers left to judge, starting a new round")
                    self._start_round()

        self._broadcast(PlayerLeftEvent(name=player.name))

        # If not enough players, cancel round
        if not self.rules.has_quorum(len(self.players)):
            self._end_game()

    def _end_game(self) -> None:
        logger.info(f"Only {len(self.players)} player(s) left, ending the game")
        self.round = None
        self._previous_czar = None
        self.answer_supply.reset()
        self.prompt_supply.reset()

        self._broadcast(GameEndedEvent())

        # Hands are part of the reset supplies now
        for player in self.players.values():
            player.hand.clear()

    def _send(self, client_id: int, event: BaseModel) -> bool:
        channel = self.clients.get(client_id)
        if channel is None:
            logger.warning(f"No channel for client #{client_id}, dropping {event.type.value}")
            return False
        try:
            channel.send(event)
        except SendFailed as e:
            logger.warning(f"Error sending {event.type.value} to client #{client_id}: {e}")
            return False
        return True

    def _broadcast(self, event: BaseModel) -> None:
        for player_id in list(self.players):
            self._send(player_id, event)


def _supply_counts(supply: CardSupply) -> Dict[str, int]:
    return {
        "total": len(supply),
        "remaining": supply.remaining_count,
        "discarded": supply.discarded_count,
        "out": supply.checked_out_count,
    }
