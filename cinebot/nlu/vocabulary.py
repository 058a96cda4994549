"""Keyword and synonym tables used by extraction, composition and the tools.

Latin keywords match whole words (plurals included); Cyrillic keywords are
stems matched as word prefixes, so "комеди" covers every inflection.
"""

from __future__ import annotations

GENRE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "comedy": ("comedy", "comedies", "sitcom", "комеди"),
    "drama": ("drama", "драм"),
    "action": ("action", "боевик", "экшн"),
    "horror": ("horror", "ужас", "хоррор"),
    "romance": ("romance", "romcom", "rom-com", "мелодрам", "романтическ"),
    "thriller": ("thriller", "триллер"),
    "science fiction": ("sci-fi", "scifi", "science fiction", "space opera", "фантастик", "научная фантастика"),
    "fantasy": ("fantasy", "фэнтези", "фентези"),
    "animation": ("animation", "animated", "cartoon", "anime", "мультфильм", "мульт", "анимац", "аниме"),
    "adventure": ("adventure", "приключен"),
    "crime": ("crime", "gangster", "heist", "криминал", "гангстер"),
    "mystery": ("mystery", "mysteries", "detective", "whodunit", "детектив"),
    "documentary": ("documentary", "documentaries", "документальн"),
    "family": ("family", "kids", "семейн", "детск"),
    "war": ("war", "war movie", "war film", "военн", "о войне"),
    "western": ("western", "вестерн"),
    "music": ("musical", "music", "мюзикл", "музыкальн"),
    "history": ("historical", "history", "исторически"),
}

MOOD_KEYWORDS: dict[str, tuple[str, ...]] = {
    "funny": ("funny", "hilarious", "laugh", "lighthearted", "light-hearted", "смешн", "весел", "угар"),
    "relaxing": ("relax", "relaxing", "relaxed", "calm", "chill", "cozy", "cosy", "спокойн", "расслаб", "уютн"),
    "exciting": ("exciting", "thrilling", "adrenaline", "edge of my seat", "захватыва", "динамичн"),
    "emotional": ("emotional", "sad", "cry", "touching", "tearjerker", "грустн", "трогательн", "эмоциональн"),
    "inspiring": ("inspiring", "inspirational", "inspired", "uplifting", "motivating", "motivational", "вдохновля", "мотивир"),
    "mysterious": ("mysterious", "puzzling", "mind-bending", "загадочн", "запутанн"),
    "romantic": ("romantic", "date night", "романтичн"),
    "adventurous": ("adventurous", "epic journey", "авантюрн"),
    "scary": ("scary", "creepy", "frightening", "terrifying", "страшн", "жутк", "пугающ"),
    "thoughtful": ("thoughtful", "philosophical", "thought-provoking", "deep", "задумат", "философ", "глубок"),
    "dark": ("dark", "gritty", "bleak", "мрачн"),
}

GENRE_QUERY_PHRASES: dict[str, str] = {
    "comedy": "comedy funny hilarious humor laugh",
    "drama": "drama emotional serious story award winning",
    "action": "action adventure exciting thriller blockbuster",
    "romance": "romance love relationship romantic heartfelt",
    "horror": "horror scary suspense thriller",
    "science fiction": "science fiction sci-fi futuristic space",
    "sci-fi": "science fiction sci-fi futuristic space",
    "fantasy": "fantasy magical adventure epic",
    "thriller": "thriller suspense mystery intense",
    "animation": "animation animated family cartoon",
    "adventure": "adventure journey exploration epic",
    "crime": "crime gangster heist detective",
    "mystery": "mystery detective investigation puzzle",
    "documentary": "documentary real story true events",
    "family": "family kids friendly heartwarming",
    "war": "war soldiers battle history",
    "western": "western cowboy frontier",
    "music": "music musical songs band",
    "history": "historical period drama true story",
}

MOOD_QUERY_PHRASES: dict[str, str] = {
    "relaxing": "calm peaceful drama relaxing easy watching",
    "exciting": "action adventure thrilling exciting intense",
    "funny": "comedy humorous lighthearted funny laugh",
    "emotional": "drama romantic heartfelt emotional touching",
    "inspiring": "motivational uplifting inspiring drama",
    "mysterious": "mystery thriller suspense mysterious",
    "romantic": "romance love relationship romantic date",
    "adventurous": "adventure action journey exploration",
    "scary": "horror scary suspense thriller",
    "thoughtful": "drama thoughtful philosophical deep",
    "dark": "dark gritty crime noir",
}

# Canonical time period tokens and the release years they admit (inclusive).
TIME_PERIOD_BUCKETS: dict[str, tuple[int | None, int | None]] = {
    "old": (None, 2000),
    "new": (2010, None),
    "90s": (1990, 1999),
    "2000s": (2000, 2009),
}

TIME_PERIOD_KEYWORDS: dict[str, tuple[str, ...]] = {
    "90s": ("90s", "90's", "1990s", "nineties", "90-х", "90-е", "девяност"),
    "2000s": ("2000s", "2000's", "noughties", "2000-х", "2000-е", "нулев", "двухтысячн"),
    "old": ("old movie", "old film", "older", "classic", "vintage", "retro", "стар", "классик"),
    "new": ("new movie", "new film", "newer", "recent", "latest", "modern", "fresh", "нов", "свеж", "современн"),
}

LANGUAGE_PREFERENCE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "en": ("in english", "english-language", "english language", "на английском", "англоязычн"),
    "ru": ("in russian", "russian movie", "russian film", "на русском", "русск", "российск", "советск"),
    "fr": ("french", "in french", "французск"),
    "es": ("spanish", "in spanish", "испанск"),
    "de": ("german", "in german", "немецк"),
    "it": ("italian", "in italian", "итальянск"),
    "ja": ("japanese", "in japanese", "японск"),
    "ko": ("korean", "in korean", "корейск"),
    "zh": ("chinese", "in chinese", "китайск"),
    "hi": ("hindi", "bollywood", "индийск"),
}

SHORT_RUNTIME_KEYWORDS = ("short movie", "short film", "something short", "quick watch", "коротк", "недолг")
LONG_RUNTIME_KEYWORDS = ("long movie", "long film", "epic length", "something long", "длинн", "долг")
SHORT_RUNTIME_MINUTES = 90
LONG_RUNTIME_MINUTES = 150

LIKE_WORDS = ("like", "love", "liked", "loved", "enjoy", "enjoyed", "favorite", "favourite",
              "нравит", "понравил", "люблю", "любим")
DISLIKE_WORDS = ("hate", "hated", "dislike", "disliked", "don't like", "didn't like", "do not like",
                 "not a fan", "avoid", "boring", "не нравит", "не понравил", "ненавиж", "скучн")

SIMILARITY_PHRASES = ("similar to", "something like", "movies like", "films like", "in the style of",
                      "похож", "наподобие", "в стиле", "типа")

MOVIE_REQUEST_WORDS = ("movie", "movies", "film", "films", "watch", "recommend", "suggest", "show me",
                       "фильм", "кино", "посмотреть", "посоветуй", "порекомендуй", "предложи")

SMALL_TALK_WORDS = ("hello", "hi", "hey", "thanks", "thank you", "привет", "здравствуй", "спасибо")

# Languages the detector may report. Anything else falls back to "en".
SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "en", "ru", "uk", "es", "fr", "de", "it", "pt", "pl", "tr", "ja", "ko", "zh", "ar", "hi",
)

DEFAULT_LANGUAGE = "en"
