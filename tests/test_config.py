# tests/test_config.py

import json

from bnd.config import Config


def test_defaults_without_file(tmp_path):
    config = Config(tmp_path / "absent.json")
    assert config.alignment == 16
    assert config.output_suffix == "_new"
    assert config.extract_root is None
    assert config.show_progress is True
    assert config.get('language') == 'en'


def test_file_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'alignment': 32, 'extract_root': str(tmp_path)}), encoding='utf-8')
    config = Config(path)
    assert config.alignment == 32
    assert config.extract_root == tmp_path
    assert config.output_suffix == "_new"


def test_malformed_file_falls_back_to_defaults(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding='utf-8')
    config = Config(path)
    assert config.alignment == 16
    assert "Ignoring config file" in capsys.readouterr().err


def test_non_object_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding='utf-8')
    assert Config(path).config == Config(tmp_path / "absent.json").config


def test_save_and_reload(tmp_path):
    path = tmp_path / "config.json"
    config = Config(path)
    config.set('output_suffix', '_patched')
    config.save_config()
    assert Config(path).output_suffix == '_patched'
