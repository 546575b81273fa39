#!/usr/bin/env python3
"""
JSON-file storage for interval cards.

Cards live in a single JSON array. The path comes from the --store flag,
then INTERVAL_TRAINER_STORE, then ~/.interval_trainer/cards.json.

Usage:
  from cards_store import CardStore

  store = CardStore()
  store.ensure_seeded(sample_card())
  for card in store.cards():
      ...
"""

import json
import logging
import os

from pydantic import ValidationError

from workouts import IntervalCard

log = logging.getLogger("cards")

STORE_ENV = "INTERVAL_TRAINER_STORE"
STORE_FILE = os.path.join("~", ".interval_trainer", "cards.json")


def default_store_path():
    path = os.environ.get(STORE_ENV)
    if path and path.strip():
        return os.path.expanduser(path.strip())
    return os.path.expanduser(STORE_FILE)


class CardStore:
    def __init__(self, path=None):
        self.path = path or default_store_path()

    def _load_raw(self):
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            log.warning(f"Card store {self.path} is corrupt, ignoring it: {e}")
            return []
        if not isinstance(data, list):
            log.warning(f"Card store {self.path} does not hold a list, ignoring it")
            return []
        return data

    def _save(self, cards):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump([c.model_dump(mode="json") for c in cards], f, indent=2)

    def cards(self) -> list[IntervalCard]:
        """All stored cards, newest first. Entries that fail validation are skipped."""
        result = []
        for i, entry in enumerate(self._load_raw() or []):
            try:
                result.append(IntervalCard.model_validate(entry))
            except ValidationError as e:
                log.warning(f"Skipping invalid card #{i} in {self.path}: {e.error_count()} error(s)")
        return result

    def find(self, key) -> IntervalCard | None:
        """Look a card up by id, falling back to an exact title match."""
        cards = self.cards()
        for card in cards:
            if card.id == key:
                return card
        for card in cards:
            if card.title == key:
                return card
        return None

    def ensure_seeded(self, sample: IntervalCard):
        """Write ``sample`` as the only card if the store file doesn't exist yet."""
        if self._load_raw() is not None:
            return False
        self._save([sample])
        log.info(f"Seeded card store with '{sample.title}'")
        return True

    def upsert(self, card: IntervalCard):
        """Replace the card with the same id, or add it at the front."""
        cards = self.cards()
        for i, existing in enumerate(cards):
            if existing.id == card.id:
                cards[i] = card
                break
        else:
            cards.insert(0, card)
        self._save(cards)

    def delete(self, card_id):
        cards = self.cards()
        remaining = [c for c in cards if c.id != card_id]
        if len(remaining) == len(cards):
            return False
        self._save(remaining)
        return True

    def clear_all(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
