from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("argostranslate")

from doclens.translation.argos_adapter import ArgosTranslationAdapter  # noqa: E402
from doclens.translation.exceptions import ModelDownloadError, TranslationError  # noqa: E402

pytestmark = pytest.mark.anyio

PACKAGE = "doclens.translation.argos_adapter.argostranslate.package"


def _package(from_code: str, to_code: str) -> SimpleNamespace:
    return SimpleNamespace(
        from_code=from_code,
        to_code=to_code,
        download=MagicMock(return_value=f"/tmp/{from_code}_{to_code}.argosmodel"),
    )


class TestModelState:
    async def test_english_pivot_is_always_installed(self) -> None:
        with patch(f"{PACKAGE}.get_installed_packages", return_value=[]):
            assert await ArgosTranslationAdapter().is_model_downloaded("en")

    async def test_needs_both_directions(self) -> None:
        with patch(f"{PACKAGE}.get_installed_packages", return_value=[_package("es", "en")]):
            assert not await ArgosTranslationAdapter().is_model_downloaded("es")

    async def test_installed_when_both_directions_present(self) -> None:
        installed = [_package("es", "en"), _package("en", "es")]
        with patch(f"{PACKAGE}.get_installed_packages", return_value=installed):
            assert await ArgosTranslationAdapter().is_model_downloaded("es")


class TestDownload:
    async def test_installs_missing_packages_and_reports_progress(self) -> None:
        available = [_package("es", "en"), _package("en", "es"), _package("fr", "en")]
        progress: list[float] = []
        with (
            patch(f"{PACKAGE}.update_package_index") as mock_update,
            patch(f"{PACKAGE}.get_available_packages", return_value=available),
            patch(f"{PACKAGE}.get_installed_packages", return_value=[]),
            patch(f"{PACKAGE}.install_from_path") as mock_install,
        ):
            adapter = ArgosTranslationAdapter()
            await adapter.download_model("es", on_progress=progress.append)
            await adapter.download_model("es")

        mock_update.assert_called_once()
        assert mock_install.call_count == 4
        assert progress == [0.5, 1.0]

    async def test_missing_package_raises(self) -> None:
        with (
            patch(f"{PACKAGE}.update_package_index"),
            patch(f"{PACKAGE}.get_available_packages", return_value=[]),
            patch(f"{PACKAGE}.get_installed_packages", return_value=[]),
        ):
            with pytest.raises(ModelDownloadError, match="No argos package"):
                await ArgosTranslationAdapter().download_model("es")

    async def test_index_failure_raises_model_download_error(self) -> None:
        with patch(f"{PACKAGE}.update_package_index", side_effect=OSError("offline")):
            with pytest.raises(ModelDownloadError, match="offline"):
                await ArgosTranslationAdapter().download_model("es")


class TestTranslateAndDelete:
    async def test_translate_failure_is_wrapped(self) -> None:
        with patch(
            "doclens.translation.argos_adapter.argostranslate.translate.translate",
            side_effect=AttributeError("no path"),
        ):
            with pytest.raises(TranslationError, match="es->en"):
                await ArgosTranslationAdapter().translate("Hola", "es", "en")

    async def test_delete_uninstalls_both_directions(self) -> None:
        installed = [_package("es", "en"), _package("en", "es"), _package("fr", "en")]
        with (
            patch(f"{PACKAGE}.get_installed_packages", return_value=installed),
            patch(f"{PACKAGE}.uninstall") as mock_uninstall,
        ):
            await ArgosTranslationAdapter().delete_model("es")

        removed = {(call.args[0].from_code, call.args[0].to_code) for call in mock_uninstall.call_args_list}
        assert removed == {("es", "en"), ("en", "es")}
