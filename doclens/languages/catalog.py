"""Static registry of the languages the app can recognize and translate."""

from dataclasses import dataclass, field, replace

from doclens.languages.exceptions import UnsupportedLanguageError

AUTO_DETECT_CODE = "auto"


@dataclass(frozen=True)
class Language:
    """A supported language, identified by its ISO 639-1 code (or "auto").

    ``is_downloaded`` is a cached view of the model tracker and takes no part
    in equality or hashing.
    """

    code: str
    display_name: str
    is_downloaded: bool = field(default=False, compare=False)

    @property
    def is_auto(self) -> bool:
        return self.code == AUTO_DETECT_CODE

    def with_download_state(self, is_downloaded: bool) -> "Language":
        return replace(self, is_downloaded=is_downloaded)


AUTO_DETECT = Language(AUTO_DETECT_CODE, "Auto-Detect", is_downloaded=True)
ENGLISH = Language("en", "English", is_downloaded=True)
SPANISH = Language("es", "Spanish")
FRENCH = Language("fr", "French")
GERMAN = Language("de", "German")
ITALIAN = Language("it", "Italian")
PORTUGUESE = Language("pt", "Portuguese")
RUSSIAN = Language("ru", "Russian")
JAPANESE = Language("ja", "Japanese")
KOREAN = Language("ko", "Korean")
CHINESE = Language("zh", "Chinese (Simplified)")
ARABIC = Language("ar", "Arabic")
HINDI = Language("hi", "Hindi")

ALL_LANGUAGES: tuple[Language, ...] = (
    AUTO_DETECT,
    ENGLISH,
    SPANISH,
    FRENCH,
    GERMAN,
    ITALIAN,
    PORTUGUESE,
    RUSSIAN,
    JAPANESE,
    KOREAN,
    CHINESE,
    ARABIC,
    HINDI,
)

_BY_CODE: dict[str, Language] = {language.code: language for language in ALL_LANGUAGES}


def find_language(code: str) -> Language | None:
    """Return the catalog entry for ``code`` or None if it is not supported."""
    return _BY_CODE.get(code.strip().lower())


def get_language(code: str) -> Language:
    """Return the catalog entry for ``code``.

    Raises:
        UnsupportedLanguageError: if the code is not in the catalog.
    """
    language = find_language(code)
    if language is None:
        raise UnsupportedLanguageError(
            f"Unsupported language '{code}'. Choose from: {list(_BY_CODE)}"
        )
    return language


def translatable_languages() -> tuple[Language, ...]:
    """All concrete languages, i.e. the catalog without the auto-detect entry."""
    return tuple(language for language in ALL_LANGUAGES if not language.is_auto)
