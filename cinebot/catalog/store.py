"""Read-only movie catalog loaded from cached JSON metadata."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

from .models import Movie, movie_from_record

MIN_PARTIAL_TITLE_LENGTH = 4


class MovieCatalog:
    """Lookup of catalog items by id and title.

    Either construct it with movies directly or point it at a metadata file;
    the file is read lazily on first use.
    """

    def __init__(self, movies: Iterable[Movie] | None = None, *, metadata_path: Path | None = None) -> None:
        self.metadata_path = Path(metadata_path) if metadata_path else None
        self._movies: dict[int, Movie] | None = None
        self._logger = logging.getLogger("cinebot.catalog")
        if movies is not None:
            self._movies = {movie.id: movie for movie in movies}

    def _load(self) -> dict[int, Movie]:
        if self._movies is not None:
            return self._movies

        if self.metadata_path is None or not self.metadata_path.exists():
            self._movies = {}
            return self._movies

        with self.metadata_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)

        records = data.get("movies") if isinstance(data, dict) else data
        if not isinstance(records, list):
            self._logger.warning("Catalog metadata at %s has no movie list", self.metadata_path)
            self._movies = {}
            return self._movies

        movies: dict[int, Movie] = {}
        for record in records:
            try:
                movie = movie_from_record(record)
            except (TypeError, ValueError) as exc:
                self._logger.debug("Skipping catalog record: %s", exc)
                continue
            movies.setdefault(movie.id, movie)

        self._logger.info("Loaded %d movies from %s", len(movies), self.metadata_path)
        self._movies = movies
        return self._movies

    def get_items_by_ids(self, ids: Sequence[int]) -> list[Movie]:
        """Return movies for ``ids`` in the given order, skipping unknown ids."""

        movies = self._load()
        return [movies[movie_id] for movie_id in ids if movie_id in movies]

    def get(self, movie_id: int) -> Movie | None:
        return self._load().get(movie_id)

    def find_by_title(self, title: str) -> Movie | None:
        """Exact case-insensitive title match, else the first title containing it as whole words.

        The partial match needs at least ``MIN_PARTIAL_TITLE_LENGTH`` characters.
        """

        needle = title.strip().casefold()
        if not needle:
            return None
        movies = self._load().values()
        for movie in movies:
            if movie.title.casefold() == needle:
                return movie
        if len(needle) < MIN_PARTIAL_TITLE_LENGTH:
            return None
        pattern = re.compile(rf"(?<!\w){re.escape(needle)}(?!\w)")
        for movie in movies:
            if pattern.search(movie.title.casefold()):
                return movie
        return None

    def __len__(self) -> int:
        return len(self._load())

    def __iter__(self):
        return iter(list(self._load().values()))
