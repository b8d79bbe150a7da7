import httpx
import openai

from doclens.languages.catalog import find_language, translatable_languages
from doclens.translation.base import BaseTranslationBackend, ProgressCallback
from doclens.translation.exceptions import TranslationError

SYSTEM_PROMPT = (
    "You are a professional translator. Translate the user's text from "
    "{source} into {target}. Preserve line breaks and paragraph structure. "
    "Reply with the translation only."
)


class OpenAITranslationAdapter(BaseTranslationBackend):
    """Translation through an OpenAI-compatible chat completions API.

    Models are hosted remotely, so every supported language counts as downloaded.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
        temperature: float = 0.0,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self._model = model
        self._temperature = temperature

    def supports(self, language_code: str) -> bool:
        return any(language.code == language_code for language in translatable_languages())

    async def translate(self, text: str, source_code: str, target_code: str) -> str:
        source = find_language(source_code)
        target = find_language(target_code)
        system_prompt = SYSTEM_PROMPT.format(
            source=source.display_name if source else source_code,
            target=target.display_name if target else target_code,
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": text},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise TranslationError(f"Translation provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise TranslationError(f"Translation provider API error: {exc}") from exc

        if not response.choices:
            raise TranslationError("Translation provider returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise TranslationError("Translation provider returned an empty response")
        return content.strip()

    async def is_model_downloaded(self, language_code: str) -> bool:
        return self.supports(language_code)

    async def download_model(
        self,
        language_code: str,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if on_progress is not None:
            on_progress(1.0)

    async def delete_model(self, language_code: str) -> None:
        return None
