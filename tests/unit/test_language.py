import pytest

from cinebot.nlu.language import LanguageDetector, detect_script


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Посоветуй комедию", "ru"),
        ("재미있는 영화", "ko"),
        ("面白い映画をおすすめして", "ja"),
        ("推荐一部电影", "zh"),
        ("اقترح فيلما", "ar"),
        ("कोई फिल्म बताओ", "hi"),
        ("recommend a movie", None),
    ],
)
def test_detect_script(text, expected):
    assert detect_script(text) == expected


@pytest.mark.asyncio
async def test_script_heuristic_short_circuits(completion):
    detector = LanguageDetector(completion)

    assert await detector.detect("Хочу что-нибудь смешное") == "ru"
    assert completion.prompts == []


@pytest.mark.asyncio
async def test_classifier_used_for_latin_text(make_completion):
    completion = make_completion(language="Language: fr")
    detector = LanguageDetector(completion)

    assert await detector.detect("Je veux une comédie") == "fr"
    assert len(completion.prompts) == 1


@pytest.mark.asyncio
async def test_unknown_code_defaults_to_english(make_completion):
    detector = LanguageDetector(make_completion(language="xx"))

    assert await detector.detect("Ik wil een film") == "en"


@pytest.mark.asyncio
async def test_provider_failure_defaults_to_english(make_completion):
    detector = LanguageDetector(make_completion(fail=True))

    assert await detector.detect("hola amigos") == "en"


@pytest.mark.asyncio
async def test_blank_text_makes_no_call(completion):
    detector = LanguageDetector(completion)

    assert await detector.detect("   ") == "en"
    assert completion.prompts == []
