"""Shared pytest fixtures for dumptruck tests.

Fixture summary
---------------
make_item       : factory for FeedItem records with sensible defaults.
sample_feed_xml : RSS 2.0 document with four items (one without enclosure).
sample_feed     : sample_feed_xml written to a temporary file.
isolated_config : points DUMPTRUCK_CONFIG at a file that does not exist.

None of the tests need network access; HTTP is mocked with respx.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from dumptruck.ingestion.models import FeedItem

SAMPLE_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Pizza Cast</title>
    <link>https://pizza.example.com</link>
    <description>Weekly talk about pizza</description>
    <language>en-us</language>
    <copyright>Pizza Cast 2021</copyright>
    <category>Food</category>
    <item>
      <title>Episode 1: Cheese Delight</title>
      <link>https://pizza.example.com/1</link>
      <description>Melted cheese on everything</description>
      <guid isPermaLink="false">pizza-1</guid>
      <pubDate>Mon, 01 Mar 2021 10:00:00 +0000</pubDate>
      <enclosure url="https://media.example.com/ep1.mp3" length="1000" type="audio/mpeg"/>
    </item>
    <item>
      <title>Episode 2: Pepperoni</title>
      <link>https://pizza.example.com/2</link>
      <description>Spicy toppings and how to slice them</description>
      <guid isPermaLink="false">pizza-2</guid>
      <pubDate>Mon, 08 Mar 2021 10:00:00 +0000</pubDate>
      <enclosure url="https://media.example.com/ep2.mp3" length="2000" type="audio/mpeg"/>
    </item>
    <item>
      <title>Bonus: Behind the oven</title>
      <link>https://pizza.example.com/bonus</link>
      <description>No audio this week, only notes</description>
      <guid isPermaLink="false">pizza-bonus</guid>
      <pubDate>Wed, 10 Mar 2021 10:00:00 +0000</pubDate>
    </item>
    <item>
      <title>Episode 3: Four Cheese</title>
      <link>https://pizza.example.com/3</link>
      <description>Mozzarella, gorgonzola, parmesan and fontina</description>
      <guid isPermaLink="false">pizza-3</guid>
      <pubDate>Mon, 15 Mar 2021 10:00:00 +0000</pubDate>
      <enclosure url="https://media.example.com/ep3.m4a" length="3000" type="audio/x-m4a"/>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def make_item():
    """Build FeedItem records; keyword arguments override the defaults."""

    def _make(index: int, **overrides: Any) -> FeedItem:
        fields: dict[str, Any] = {
            "index": index,
            "title": f"Episode {index}",
            "description": f"Description {index}",
            "published_at": datetime(2021, 3, index, 10, 0, tzinfo=timezone.utc),
            "guid": f"guid-{index}",
            "enclosure_url": f"https://media.example.com/ep{index}.mp3",
            "enclosure_type": "audio/mpeg",
        }
        fields.update(overrides)
        return FeedItem(**fields)

    return _make


@pytest.fixture
def sample_feed_xml() -> str:
    return SAMPLE_FEED_XML


@pytest.fixture
def sample_feed(tmp_path: Path) -> Path:
    path = tmp_path / "feed.xml"
    path.write_text(SAMPLE_FEED_XML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the user's real settings file."""
    path = tmp_path / "settings" / "config.yaml"
    monkeypatch.setenv("DUMPTRUCK_CONFIG", str(path))
    return path
