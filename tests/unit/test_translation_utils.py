import unittest

from ipws import translation_utils


class TestTranslationUtils(unittest.TestCase):
    def test_get_translation_missing_key_returns_fallback(self):
        value = translation_utils.get_translation("missing.key", fallback="fallback")
        self.assertEqual(value, "fallback")

    def test_default_language_is_english(self):
        self.assertEqual(translation_utils.get_translation("risk.labels.red"), "Critical")
        self.assertEqual(translation_utils.resolve_language(None), "en")

    def test_unsupported_language_uses_english(self):
        self.assertEqual(translation_utils.resolve_language("xx"), "en")
        self.assertEqual(translation_utils.get_translation("risk.labels.red", language="xx"), "Critical")

    def test_available_languages_contains_en_ur(self):
        languages = translation_utils.get_available_languages()
        self.assertIn("en", languages)
        self.assertIn("ur", languages)

    def test_lookups_in_one_language_do_not_affect_others(self):
        title = translation_utils.get_translation("alerts.titles.red", language="ur")
        self.assertEqual(title, "سیلاب کا نازک الرٹ")
        self.assertEqual(translation_utils.get_translation("risk.labels.red"), "Critical")

    def test_missing_urdu_key_falls_back_to_english(self):
        self.assertEqual(translation_utils.get_translation("report.livestock", language="ur"),
                         "Livestock at Risk")


if __name__ == "__main__":
    unittest.main()
