from doclens.translation.identification import FallbackIdentifier, LangDetectIdentifier


class TestLangDetectIdentifier:
    def test_identifies_spanish(self) -> None:
        text = (
            "Hola, buenos días. Me llamo Juan y vivo en Madrid con mi familia. "
            "Todos los días camino al trabajo porque me gusta la ciudad."
        )
        assert LangDetectIdentifier().identify(text) == "es"

    def test_is_deterministic(self) -> None:
        identifier = LangDetectIdentifier()
        text = "Bonjour tout le monde, nous sommes heureux de vous voir ici aujourd'hui."
        assert {identifier.identify(text) for _ in range(5)} == {"fr"}

    def test_maps_chinese_variants_to_catalog_code(self) -> None:
        text = "这是一个用于测试语言识别的简单中文句子，我们希望它能够被正确识别。"
        assert LangDetectIdentifier().identify(text) == "zh"

    def test_blank_text_returns_none(self) -> None:
        assert LangDetectIdentifier().identify("   \n") is None

    def test_text_without_letters_returns_none(self) -> None:
        assert LangDetectIdentifier().identify("12345 67890") is None


class TestFallbackIdentifier:
    def test_never_identifies(self) -> None:
        assert FallbackIdentifier().identify("Hola, buenos días") is None
