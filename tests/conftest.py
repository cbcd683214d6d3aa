import os
from datetime import datetime, timedelta

import pytest

from mnemos.domain.models import Card, CardState, SchedulingRecord

# Mid-morning, so short relearning steps stay within the same calendar day.
NOW = datetime(2026, 10, 18, 9, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Factory for cards with a scheduling record relative to NOW."""

    def _make(
        card_id: str = "c1",
        deck_id: str = "spanish",
        state: CardState = CardState.NEW,
        interval_days: float = 0.0,
        ease_factor: float = 2.5,
        review_count: int | None = None,
        lapse_count: int = 0,
        due_in_days: float | None = None,
        created: datetime | None = None,
        user_id: str | None = None,
        **data,
    ) -> Card:
        next_review = None if due_in_days is None else NOW + timedelta(days=due_in_days)
        if review_count is None:
            review_count = 0 if next_review is None else 3
        last_review = None
        if next_review is not None:
            last_review = next_review - timedelta(days=interval_days)
        record = SchedulingRecord(
            state=state,
            ease_factor=ease_factor,
            interval_days=interval_days,
            review_count=review_count,
            lapse_count=lapse_count,
            last_review=last_review,
            next_review=next_review,
        )
        return Card(
            id=card_id,
            deck_id=deck_id,
            record=record,
            user_id=user_id,
            created=created,
            data=data,
        )

    return _make


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the developer's own config file and MNEMOS_* env out of tests."""
    from mnemos.application import config as config_module

    monkeypatch.setattr(config_module, "CONFIG_FILES", [tmp_path / "no-config.toml"])
    for key in list(os.environ):
        if key.startswith("MNEMOS_"):
            monkeypatch.delenv(key)
