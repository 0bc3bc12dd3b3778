"""
Translation utility for loading localized strings in Python modules.

Risk labels, alert titles and report headings are looked up here so the
engine can produce English or Urdu text for the dashboard and the offline
report. Translation data lives in JSON files next to this module.

There is no current language: callers pass ``language`` with each lookup,
and English is used when they do not.
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

TRANSLATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'translations')

DEFAULT_LANGUAGE = 'en'
AVAILABLE_LANGUAGES = ('en', 'ur')

# Parsed translation files, keyed by language code; read-only once loaded
_loaded = {}


def resolve_language(language=None):
    """Language code a lookup will use; unsupported codes fall back to English."""
    if language is None:
        return DEFAULT_LANGUAGE
    if language not in AVAILABLE_LANGUAGES:
        logger.warning(f"Language {language} not supported. Using English fallback.")
        return DEFAULT_LANGUAGE
    return language


def load_translations(language=DEFAULT_LANGUAGE):
    """
    Load translation data from JSON file.

    Args:
        language (str): Language code (default: 'en')

    Returns:
        dict: Translation data or empty dict if loading fails
    """
    language = resolve_language(language)
    if language in _loaded:
        return _loaded[language]

    translation_file = os.path.join(TRANSLATIONS_DIR, f'{language}.json')
    try:
        with open(translation_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load translations for {language}: {e}")
        data = {}
    _loaded[language] = data
    return data


def _resolve_translation(data, keys):
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            raise KeyError(key)
        current = current[key]
    return current


def get_translation(key_path, fallback='', language=None):
    """
    Get a translation string using dot notation for nested keys.

    Args:
        key_path (str): Dot-separated path to translation key (e.g., 'risk.labels.red')
        fallback (str): Fallback text if translation not found
        language (str): Language code; English when omitted

    Returns:
        str: Translated text or fallback
    """
    target_language = resolve_language(language)
    keys = key_path.split('.')

    try:
        return _resolve_translation(load_translations(target_language), keys)
    except KeyError:
        # English fallback when the target language lacks the key
        if target_language != DEFAULT_LANGUAGE:
            try:
                return _resolve_translation(load_translations(DEFAULT_LANGUAGE), keys)
            except KeyError:
                pass
        return fallback


def get_available_languages():
    """Get list of available language codes."""
    return list(AVAILABLE_LANGUAGES)
