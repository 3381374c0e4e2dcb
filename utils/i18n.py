# utils/i18n.py

"""Internationalization support."""
import locale


class Translator:
    """Simple translation system for multilingual support."""

    def __init__(self):
        self.current_lang = 'en'
        self.translations = {
            'en': {
                'app_title': 'BND Archive Tool',
                'extract_mode': '--- Unpacking {} ---',
                'extract_done': '--- Unpacking Complete ---',
                'repack_mode': "--- Repacking {} from folder '{}' ---",
                'repack_done': '--- BND Repack Completed ---',
                'extracted_summary': 'Extracted {} file(s), {} to {}',
                'unresolved_summary': '{} file(s) had no directory match and were written by stored name.',
                'repacked_summary': 'Replaced {} file(s), kept {} original file(s); new size {}',
                'saved_to': 'Saved to {}',

                # Errors
                'error': 'Error',
                'archive_not_found': "Input file not found: '{}'",
                'folder_not_found': "Input folder not found: '{}'",
                'operation_failed': 'An error occurred: {}',
                'interrupted': 'Operation interrupted by user.',
            },
            'de': {
                'app_title': 'BND-Archivwerkzeug',
                'extract_mode': '--- Entpacke {} ---',
                'extract_done': '--- Entpacken abgeschlossen ---',
                'repack_mode': "--- Packe {} neu aus Ordner '{}' ---",
                'repack_done': '--- Neupacken abgeschlossen ---',
                'extracted_summary': '{} Datei(en) entpackt, {} nach {}',
                'unresolved_summary': '{} Datei(en) ohne Verzeichnistreffer wurden unter dem gespeicherten Namen geschrieben.',
                'repacked_summary': '{} Datei(en) ersetzt, {} Originaldatei(en) behalten; neue Größe {}',
                'saved_to': 'Gespeichert unter {}',

                # Errors
                'error': 'Fehler',
                'archive_not_found': "Eingabedatei nicht gefunden: '{}'",
                'folder_not_found': "Eingabeordner nicht gefunden: '{}'",
                'operation_failed': 'Ein Fehler ist aufgetreten: {}',
                'interrupted': 'Vorgang vom Benutzer abgebrochen.',
            }
        }

        # Auto-detect system language
        try:
            system_lang = locale.getlocale()[0]
            if system_lang and system_lang.startswith('de'):
                self.current_lang = 'de'
        except ValueError:
            pass

    def set_language(self, lang_code: str):
        """Set the current language."""
        if lang_code in self.translations:
            self.current_lang = lang_code

    def get(self, key: str, *args) -> str:
        """Get translated string, with optional formatting."""
        text = self.translations[self.current_lang].get(key, key)
        if args:
            try:
                return text.format(*args)
            except (IndexError, KeyError):
                return text
        return text

# Global translator instance
translator = Translator()
