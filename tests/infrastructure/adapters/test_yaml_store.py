from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from mnemos.application.scheduling.policy import apply
from mnemos.domain.exceptions import PersistenceError, StoreUnavailableError
from mnemos.domain.models import CardState, RecallRating
from mnemos.infrastructure.adapters.yaml_store import (
    YamlCardRepository,
    dump_deck_file,
    load_deck_file,
)

DECK = """\
cards:
  - id: es_001
    deck: spanish
    front: el perro
    back: the dog
    tags: [animals]
  - id: es_002
    deck: spanish
    front: el gato
    back: the cat
    state: REVIEW
    ease_factor: 2.3
    interval_days: 3
    review_count: 4
    lapse_count: 1
    last_review: 2026-10-15T09:00:00
    next_review: 2026-10-18T09:00:00
"""


@pytest.fixture
def deck_path(tmp_path):
    path = tmp_path / "deck.yaml"
    path.write_text(DECK)
    return path


def test_load_deck_file(deck_path):
    cards = load_deck_file(deck_path)

    new, review = cards
    assert new.id == "es_001"
    assert new.record.state is CardState.NEW
    assert new.record.next_review is None
    assert new.data["front"] == "el perro"
    assert new.data["tags"] == ["animals"]

    assert review.record.state is CardState.REVIEW
    assert review.record.ease_factor == 2.3
    assert review.record.lapse_count == 1
    assert review.record.next_review == datetime(2026, 10, 18, 9, 0).astimezone()
    assert review.record.next_review.tzinfo is not None


def test_naive_times_take_configured_zone(deck_path):
    tz = ZoneInfo("Europe/Madrid")
    review = load_deck_file(deck_path, tz)[1]
    assert review.record.next_review == datetime(2026, 10, 18, 9, 0, tzinfo=tz)


def test_missing_file(tmp_path):
    with pytest.raises(StoreUnavailableError):
        load_deck_file(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("cards: [unclosed")
    with pytest.raises(StoreUnavailableError):
        load_deck_file(path)


def test_invalid_card_data(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("cards:\n  - id: x\n    ease_factor: 0.5\n    review_count: 0\n")
    with pytest.raises(StoreUnavailableError):
        load_deck_file(path)


def test_reviewed_card_without_next_review_is_invalid(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("cards:\n  - id: x\n    state: REVIEW\n    review_count: 3\n")
    with pytest.raises(StoreUnavailableError):
        load_deck_file(path)


def test_dump_keeps_extra_fields_and_drops_unset(deck_path, tmp_path):
    out = tmp_path / "out.yaml"

    dump_deck_file(out, load_deck_file(deck_path))

    raw = yaml.safe_load(out.read_text())
    first = raw["cards"][0]
    assert first["tags"] == ["animals"]
    assert "next_review" not in first
    assert raw["cards"][1]["next_review"].startswith("2026-10-18T09:00:00")


@pytest.mark.asyncio
async def test_repository_save_rewrites_file(deck_path, now):
    repo = YamlCardRepository(deck_path)
    cards = await repo.get_cards("local", "spanish")
    rated = cards[0].with_record(apply(cards[0].record, RecallRating.GOOD, now.astimezone()))

    await repo.save_card(rated)

    reloaded = {c.id: c for c in load_deck_file(deck_path)}
    assert reloaded["es_001"].record.state is CardState.LEARNING
    assert reloaded["es_001"].record.review_count == 1
    assert reloaded["es_002"].record.state is CardState.REVIEW


@pytest.mark.asyncio
async def test_repository_write_failure(deck_path, monkeypatch, make_card):
    repo = YamlCardRepository(deck_path)
    await repo.get_cards("local")

    def broken(*args, **kwargs):
        raise OSError("read-only file system")

    monkeypatch.setattr("mnemos.infrastructure.adapters.yaml_store.dump_deck_file", broken)

    with pytest.raises(PersistenceError):
        await repo.save_card(make_card("es_001"))


def test_offset_and_naive_timestamps_load_comparable(tmp_path):
    path = tmp_path / "mixed.yaml"
    path.write_text(
        "cards:\n"
        "  - id: utc\n"
        "    state: REVIEW\n"
        "    review_count: 1\n"
        "    next_review: '2026-10-12T09:00:00+00:00'\n"
        "  - id: local\n"
        "    state: REVIEW\n"
        "    review_count: 1\n"
        "    next_review: 2026-10-11T09:00:00\n"
    )

    cards = load_deck_file(path)

    assert all(c.record.next_review.tzinfo is not None for c in cards)
    ordered = sorted(cards, key=lambda c: c.record.next_review)
    assert [c.id for c in ordered] == ["local", "utc"]
    assert cards[0].record.next_review == datetime(2026, 10, 12, 9, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_unserializable_card_data_is_a_persistence_error(deck_path, make_card):
    repo = YamlCardRepository(deck_path)
    await repo.get_cards("local")

    with pytest.raises(PersistenceError):
        await repo.save_card(make_card("es_001", audio=object()))


@pytest.mark.asyncio
async def test_interrupted_write_keeps_previous_deck(deck_path, monkeypatch, make_card):
    before = deck_path.read_text()
    repo = YamlCardRepository(deck_path)
    await repo.get_cards("local")

    def broken_replace(self, target):
        raise OSError("device lost")

    monkeypatch.setattr(Path, "replace", broken_replace)

    with pytest.raises(PersistenceError):
        await repo.save_card(make_card("es_001", state=CardState.REVIEW, due_in_days=1))

    assert deck_path.read_text() == before
    assert not (deck_path.parent / ".deck.yaml.tmp").exists()


def test_dump_leaves_no_temp_file(deck_path):
    dump_deck_file(deck_path, load_deck_file(deck_path))

    assert [p.name for p in deck_path.parent.iterdir()] == ["deck.yaml"]
