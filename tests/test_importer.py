"""Tests for track search and the song import pipeline."""

import asyncio

import httpx

from jamsync.ingest.importer import SongImporter, build_sections
from jamsync.ingest.lyrics import LyricLine, LyricSection, LyricsClient, LyricsResult
from jamsync.ingest.tablature import TabChord, TablatureClient, TablatureData
from jamsync.ingest.tracks import TrackMetadata, TrackSearchClient
from jamsync.sheet.repository import SongRepository

SYNCED = "[00:01.00]Today is gonna be\n[00:02.00]the day\n[00:09.00]Backbeat the word"

REVISION = {
    "tempo": 87,
    "tracks": [
        {
            "measures": [
                {"keySignature": {"key": -1}, "beats": [{"value": 1, "effects": {"chord": {"name": "Em7"}}}]},
                {"beats": [{"value": 1}]},
                {"beats": [{"value": 1}, {"value": 1, "effects": {"chord": {"name": "Dsus4"}}}]},
            ],
        },
    ],
}


def _track(track_id=1):
    return TrackMetadata(
        track_id=track_id,
        track_name="Wonderwall",
        artist_name="Oasis",
        primary_genre_name="Rock",
        duration_ms=258000,
    )


def _import(feeds, settings, repository, *tracks):
    async def go():
        async with httpx.AsyncClient(transport=feeds.transport()) as client:
            importer = SongImporter(
                repository,
                LyricsClient(client, settings),
                TablatureClient(client, settings),
            )
            return [await importer.import_track(t) for t in tracks]

    return asyncio.run(go())


class TestBuildSections:
    def test_chords_land_on_global_line_index(self):
        lyrics = LyricsResult(
            sections=[
                LyricSection("Part 1", [LyricLine("a b c", 1.0), LyricLine("d e", 2.0)]),
                LyricSection("Part 2", [LyricLine("f g h", 9.0)]),
            ],
            synced=True,
        )
        tab = TablatureData(
            bpm=90,
            key="G",
            chords=[
                TabChord("G", line_index=0, beat_offset=0, measure_length=4),
                TabChord("C", line_index=2, beat_offset=2, measure_length=4),
            ],
        )
        sections = build_sections(lyrics, tab)
        assert [s.order for s in sections] == [0, 1]
        assert [ln.order for ln in sections[0].lines] == [0, 1]
        assert [(c.chord, c.beat_position) for c in sections[0].lines[0].chords] == [("G", 0.0)]
        assert sections[0].lines[1].chords == []
        assert [(c.chord, c.beat_position) for c in sections[1].lines[0].chords] == [("C", 0.5)]
        assert sections[1].lines[0].start_time == 9.0

    def test_without_tablature(self):
        lyrics = LyricsResult(sections=[LyricSection("Part 1", [LyricLine("x")])], synced=False)
        sections = build_sections(lyrics, None)
        assert sections[0].lines[0].chords == []


class TestSongImporter:
    def test_full_import(self, feeds, settings):
        feeds.lyrics_record = {"syncedLyrics": SYNCED}
        feeds.tab_results = [{"id": 27}]
        feeds.revision = REVISION
        repo = SongRepository()

        (result,) = _import(feeds, settings, repo, _track())

        assert result.created
        assert result.has_lyrics and result.has_chords and result.synced
        song = result.song
        assert song.itunes_track_id == 1
        assert song.bpm == 87
        assert song.key == "F"
        assert song.songsterr_id == 27
        assert [s.name for s in song.sections] == ["Part 1", "Part 2"]
        lines = list(song.iter_lines())
        assert [c.chord for c in lines[0].chords] == ["Em7"]
        assert lines[1].chords == []
        assert [(c.chord, c.beat_position) for c in lines[2].chords] == [("Dsus4", 0.5)]

    def test_reimport_returns_existing_song(self, feeds, settings):
        feeds.lyrics_record = {"plainLyrics": "words"}
        repo = SongRepository()

        first, second = _import(feeds, settings, repo, _track(), _track())

        assert first.created and not second.created
        assert second.song.id == first.song.id
        assert len(repo) == 1
        # the second import hits no feed
        assert feeds.paths().count("/api/get") == 1

    def test_no_lyrics_keeps_tempo_and_key(self, feeds, settings):
        feeds.tab_results = [{"id": 27}]
        feeds.revision = REVISION
        (result,) = _import(feeds, settings, SongRepository(), _track())
        assert not result.has_lyrics
        assert result.song.sections == []
        assert result.song.bpm == 87

    def test_no_tablature_keeps_lyrics(self, feeds, settings):
        feeds.lyrics_record = {"syncedLyrics": SYNCED}
        (result,) = _import(feeds, settings, SongRepository(), _track())
        assert result.has_lyrics and not result.has_chords
        assert result.song.bpm == 0
        assert result.song.key == ""
        assert result.song.line_count == 3

    def test_every_feed_down(self, feeds, settings):
        feeds.fail_hosts.update({"lrclib.net", "www.songsterr.com"})
        (result,) = _import(feeds, settings, SongRepository(), _track())
        assert result.created
        assert result.song.title == "Wonderwall"
        assert not result.has_lyrics and not result.has_chords


class TestTrackSearch:
    def _search(self, feeds, settings, query, **kwargs):
        async def go():
            async with httpx.AsyncClient(transport=feeds.transport()) as client:
                return await TrackSearchClient(client, settings).search(query, **kwargs)

        return asyncio.run(go())

    def test_keeps_songs_only(self, feeds, settings, make_itunes_result):
        feeds.tracks = [
            make_itunes_result(1),
            make_itunes_result(2, kind="music-video"),
            {"wrapperType": "collection", "collectionId": 9},
        ]
        tracks = self._search(feeds, settings, "wonderwall")
        assert [t.track_id for t in tracks] == [1]
        assert tracks[0].artwork_url == "https://img.test/100.jpg"
        assert tracks[0].duration_ms == 258000
        params = feeds.requests[0][2]
        assert params["term"] == "wonderwall"
        assert params["limit"] == "15"

    def test_blank_query_skips_request(self, feeds, settings):
        assert self._search(feeds, settings, "   ") == []
        assert feeds.requests == []

    def test_failure_is_empty(self, feeds, settings):
        feeds.fail_hosts.add("itunes.apple.com")
        assert self._search(feeds, settings, "oasis") == []
