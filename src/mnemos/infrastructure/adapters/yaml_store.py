"""
YAML Card Repository: Infrastructure adapter for deck files on disk.

A deck file is a YAML mapping with a `cards` list:

    cards:
      - id: es_001
        deck: spanish
        front: el perro
        back: the dog
        state: REVIEW
        ease_factor: 2.5
        interval_days: 3
        review_count: 4
        next_review: 2026-10-18T09:00:00

Scheduling fields are optional and default to a NEW card.
"""

import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mnemos.domain.constants import STARTING_EASE
from mnemos.domain.exceptions import PersistenceError, StoreUnavailableError
from mnemos.domain.models import Card, CardState, SchedulingRecord
from mnemos.domain.ports import CardRepository

from .memory_store import InMemoryCardRepository

logger = logging.getLogger(__name__)


class CardDocument(BaseModel):
    """On-disk shape of one card."""

    model_config = ConfigDict(extra="allow")

    id: str
    deck: str = "default"
    user: str | None = None
    created: datetime | None = None
    front: str | None = None
    back: str | None = None

    state: CardState = CardState.NEW
    ease_factor: float = Field(default=STARTING_EASE)
    interval_days: float = Field(default=0.0, ge=0)
    review_count: int = Field(default=0, ge=0)
    lapse_count: int = Field(default=0, ge=0)
    last_review: datetime | None = None
    next_review: datetime | None = None

    def to_card(self, tz: tzinfo | None = None) -> Card:
        record = SchedulingRecord(
            state=self.state,
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            review_count=self.review_count,
            lapse_count=self.lapse_count,
            last_review=_localize(self.last_review, tz),
            next_review=_localize(self.next_review, tz),
        )
        data: dict[str, Any] = {"front": self.front, "back": self.back}
        data.update(self.model_extra or {})
        return Card(
            id=self.id,
            deck_id=self.deck,
            record=record,
            user_id=self.user,
            created=_localize(self.created, tz),
            data=data,
        )

    @classmethod
    def from_card(cls, card: Card) -> "CardDocument":
        record = card.record
        extra = {k: v for k, v in card.data.items() if k not in ("front", "back")}
        return cls(
            id=card.id,
            deck=card.deck_id,
            user=card.user_id,
            created=card.created,
            front=card.data.get("front"),
            back=card.data.get("back"),
            state=record.state,
            ease_factor=record.ease_factor,
            interval_days=record.interval_days,
            review_count=record.review_count,
            lapse_count=record.lapse_count,
            last_review=record.last_review,
            next_review=record.next_review,
            **extra,
        )


class DeckFile(BaseModel):
    cards: list[CardDocument] = Field(default_factory=list)


def _localize(moment: datetime | None, tz: tzinfo | None) -> datetime | None:
    # Naive timestamps in a deck file are wall-clock times in the configured zone,
    # or in the system zone when none is configured. Cards always come out aware.
    if moment is None or moment.tzinfo is not None:
        return moment
    if tz is None:
        return moment.astimezone()
    return moment.replace(tzinfo=tz)


def load_deck_file(path: Path, tz: tzinfo | None = None) -> list[Card]:
    """
    Parse a deck file into cards.

    Raises:
        StoreUnavailableError: the file is missing, unreadable, or invalid.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        deck = DeckFile.model_validate(raw)
        return [doc.to_card(tz) for doc in deck.cards]
    except OSError as e:
        raise StoreUnavailableError(f"Cannot read deck file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise StoreUnavailableError(f"Invalid YAML in {path}: {e}") from e
    except (ValidationError, ValueError) as e:
        raise StoreUnavailableError(f"Invalid card data in {path}: {e}") from e


def dump_deck_file(path: Path, cards: list[Card]) -> None:
    """
    Write cards back to a deck file, dropping unset fields.

    The new content goes to a sibling temp file that then replaces the deck,
    so an interrupted write leaves the previous file intact.
    """
    docs = [
        CardDocument.from_card(card).model_dump(mode="json", exclude_none=True)
        for card in cards
    ]
    text = yaml.safe_dump({"cards": docs}, sort_keys=False, allow_unicode=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


class YamlCardRepository(CardRepository):
    """
    Card store backed by a single YAML deck file.

    The file is read on first access; every save rewrites it.
    """

    def __init__(self, path: Path, tz: tzinfo | None = None):
        self.path = path
        self.tz = tz
        self._store: InMemoryCardRepository | None = None

    def _load(self) -> InMemoryCardRepository:
        if self._store is None:
            cards = load_deck_file(self.path, self.tz)
            logger.info(f"Loaded {len(cards)} cards from {self.path}")
            self._store = InMemoryCardRepository(cards, tz=self.tz)
        return self._store

    async def get_cards(self, user_id: str, deck_id: str | None = None) -> list[Card]:
        return await self._load().get_cards(user_id, deck_id)

    async def save_card(self, card: Card) -> None:
        store = self._load()
        await store.save_card(card)
        try:
            dump_deck_file(self.path, store.all())
        except OSError as e:
            raise PersistenceError(f"Cannot write deck file {self.path}: {e}") from e
        except (yaml.YAMLError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize card {card.id}: {e}") from e
