#!/usr/bin/env python3
"""Search for a track, import its lyrics and chords, and save the sheet as JSON.

Usage:
    python scripts/import_song.py "wonderwall oasis" -o data/wonderwall.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import httpx

from jamsync.config import get_settings
from jamsync.ingest import LyricsClient, SongImporter, TablatureClient, TrackSearchClient
from jamsync.sheet import SongRepository, save_song

logger = logging.getLogger("import_song")


async def run(query: str, output: Path) -> int:
    settings = get_settings()
    async with httpx.AsyncClient() as client:
        tracks = await TrackSearchClient(client, settings).search(query, limit=1)
        if not tracks:
            logger.error("No track found for %r", query)
            return 1
        importer = SongImporter(
            SongRepository(),
            LyricsClient(client, settings),
            TablatureClient(client, settings),
        )
        result = await importer.import_track(tracks[0])

    song = result.song
    save_song(song, output)
    print(f"{song.artist} - {song.title}")
    print(f"  key={song.key or '?'} bpm={song.bpm or '?'}")
    print(f"  lines={song.line_count} synced={result.synced} chords={result.has_chords}")
    print(f"  saved to {output}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Import a song sheet from the public feeds")
    parser.add_argument("query", help="Free-text track search, e.g. 'yesterday beatles'")
    parser.add_argument("-o", "--output", type=Path, default=Path("song.json"))
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(run(args.query, args.output)))


if __name__ == "__main__":
    main()
