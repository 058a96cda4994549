from cinebot.catalog.models import Movie, ScoredMovie
from cinebot.memory.models import UserPreferences
from cinebot.retrieval.ranker import passes_filters, query_terms, rank, score


def make_movie(movie_id: int, **fields) -> Movie:
    fields.setdefault("title", f"Movie {movie_id}")
    return Movie(id=movie_id, **fields)


def test_query_terms_drop_short_words_and_stopwords():
    assert query_terms("I want the funny comedy, funny!") == ["funny", "comedy"]


def test_year_bucket_filter():
    item = make_movie(1, release_year=1995)

    nineties = UserPreferences(time_period="90s")
    two_thousands = UserPreferences(time_period="2000s")

    assert passes_filters(item, nineties)
    assert not passes_filters(item, two_thousands)


def test_old_and_new_bucket_edges():
    assert passes_filters(make_movie(1, release_year=2000), UserPreferences(time_period="old"))
    assert not passes_filters(make_movie(2, release_year=2001), UserPreferences(time_period="old"))
    assert passes_filters(make_movie(3, release_year=2010), UserPreferences(time_period="new"))
    assert not passes_filters(make_movie(4, release_year=2009), UserPreferences(time_period="new"))


def test_unknown_period_and_missing_values_impose_no_filter():
    assert passes_filters(make_movie(1, release_year=1950), UserPreferences(time_period="someday"))
    assert passes_filters(make_movie(2), UserPreferences(time_period="90s", desired_runtime=90, language_preference="fr"))


def test_language_and_runtime_filters():
    prefs = UserPreferences(language_preference="EN", desired_runtime=100)

    assert passes_filters(make_movie(1, original_language="en", runtime_minutes=130), prefs)
    assert not passes_filters(make_movie(2, original_language="fr", runtime_minutes=100), prefs)
    assert not passes_filters(make_movie(3, original_language="en", runtime_minutes=131), prefs)


def test_avoided_titles_are_dropped():
    prefs = UserPreferences()
    prefs.avoided_movies.add("cabin screams")

    assert not passes_filters(make_movie(1, title="Cabin Screams"), prefs)


def test_composite_score():
    prefs = UserPreferences()
    prefs.genres.add("comedy")
    movie = make_movie(
        1,
        title="Funny Business",
        overview="A funny comedy",
        genres=("Comedy",),
        popularity=3.0,
        release_year=2012,
    )

    # title: funny (3); overview: funny, comedy (2); genre (2); popularity 1.5; recent 1
    assert score(movie, prefs, ["funny", "comedy"]) == 3 + 2 + 2 + 1.5 + 1


def test_rank_dedupes_keeping_first_and_is_stable():
    first = make_movie(1, title="Alpha")
    second = make_movie(2, title="Beta")
    duplicate = make_movie(1, title="Alpha")
    candidates = [ScoredMovie(first, 0.9, "cosine"), ScoredMovie(second, 0.8, "cosine"), ScoredMovie(duplicate, 0.7, "cosine")]

    ranked = rank(candidates, UserPreferences(), [])

    assert [movie.id for movie in ranked] == [1, 2]


def test_rank_is_deterministic(movies):
    prefs = UserPreferences(time_period="new")
    prefs.genres.add("comedy")
    terms = query_terms("funny comedy laugh")

    first = rank(movies, prefs, terms)
    second = rank(list(movies), prefs, terms)

    assert [movie.id for movie in first] == [movie.id for movie in second]
    assert all(movie.release_year >= 2010 for movie in first)
