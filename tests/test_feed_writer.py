"""Tests for writing selected items into a new feed."""

from __future__ import annotations

import errno
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path

import pytest

from dumptruck.errors import OutputWriteError
from dumptruck.ingestion import load_feed
from dumptruck.output import build_feed, write_feed
from dumptruck.output.feed_writer import GENERATOR


class TestBuildFeed:
    def test_channel_metadata_is_copied(self, sample_feed: Path) -> None:
        source = load_feed(str(sample_feed))
        now = datetime(2021, 4, 1, 12, 0, tzinfo=timezone.utc)

        channel = build_feed(source, source.items[:1], "Pizza Cast-number:1", now=now).getroot().find("channel")

        assert channel.findtext("title") == "Pizza Cast-number:1"
        assert channel.findtext("link") == "https://pizza.example.com"
        assert channel.findtext("description") == "Weekly talk about pizza"
        assert channel.findtext("language") == "en-us"
        assert channel.findtext("copyright") == "Pizza Cast 2021"
        assert channel.findtext("category") == "Food"
        assert channel.findtext("generator") == GENERATOR
        assert channel.findtext("lastBuildDate") == "Thu, 01 Apr 2021 12:00:00 +0000"
        assert len(channel.findall("item")) == 1

    def test_guid_permalink_flag(self, make_item, sample_feed: Path) -> None:
        source = load_feed(str(sample_feed))
        items = [
            make_item(1, guid="https://pizza.example.com/1", link="https://pizza.example.com/1"),
            make_item(2, guid="pizza-2", link="https://pizza.example.com/2"),
        ]

        guids = build_feed(source, items, "t").getroot().findall("channel/item/guid")

        assert guids[0].get("isPermaLink") is None
        assert guids[1].get("isPermaLink") == "false"

    def test_item_without_enclosure_has_no_enclosure_element(self, make_item, sample_feed: Path) -> None:
        source = load_feed(str(sample_feed))
        item_el = build_feed(source, [make_item(1, enclosure_url=None)], "t").getroot().find("channel/item")

        assert item_el.find("enclosure") is None


class TestWriteFeed:
    def test_written_feed_reloads_with_same_items(self, sample_feed: Path, tmp_path: Path) -> None:
        source = load_feed(str(sample_feed))
        selected = [source.items[0], source.items[3]]
        output = tmp_path / "out" / "cheese.xml"

        write_feed(source, selected, "Cheese only", output)
        reloaded = load_feed(str(output))

        assert reloaded.title == "Cheese only"
        assert reloaded.total_items == 2
        for original, copy in zip(selected, reloaded.items):
            assert copy.title == original.title
            assert copy.description == original.description
            assert copy.guid == original.guid
            assert copy.published_at == original.published_at
            assert copy.enclosure_url == original.enclosure_url
            assert copy.enclosure_type == original.enclosure_type
            assert copy.enclosure_length == original.enclosure_length

    def test_empty_selection_is_a_valid_feed(self, sample_feed: Path, tmp_path: Path) -> None:
        source = load_feed(str(sample_feed))
        output = tmp_path / "empty.xml"

        write_feed(source, [], "Nothing", output)

        root = ET.parse(output).getroot()
        assert root.tag == "rss"
        assert root.findall("channel/item") == []
        assert load_feed(str(output)).total_items == 0

    def test_unwritable_location(self, sample_feed: Path, tmp_path: Path) -> None:
        source = load_feed(str(sample_feed))
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(OutputWriteError):
            write_feed(source, source.items, "t", blocker / "feed.xml")

    def test_failed_write_keeps_existing_feed(
        self, sample_feed: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        source = load_feed(str(sample_feed))
        output_dir = tmp_path / "feeds"
        output_dir.mkdir()
        output = output_dir / "cheese.xml"
        output.write_text("<rss>previous good feed</rss>")

        def write_then_fail(self, file, *args, **kwargs):
            file.write(b"<?xml version='1.0' encoding='utf-8'?>\n<rss")
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(ET.ElementTree, "write", write_then_fail)

        with pytest.raises(OutputWriteError, match="No space left"):
            write_feed(source, source.items, "Cheese", output)

        assert output.read_text() == "<rss>previous good feed</rss>"
        assert [p.name for p in output_dir.iterdir()] == ["cheese.xml"]

    def test_rewrite_replaces_existing_feed(self, sample_feed: Path, tmp_path: Path) -> None:
        source = load_feed(str(sample_feed))
        output = tmp_path / "cheese.xml"
        output.write_text("<rss>stale</rss>")

        write_feed(source, source.items[:1], "Fresh", output)

        assert load_feed(str(output)).title == "Fresh"
        assert [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")] == []
