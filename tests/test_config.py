import pytest

from chatgate.config import ConfigManager, SectionInfo, load_config

INI_TEXT = """\
[GateServer]
Port = 8080

[Redis]
Host = 127.0.0.1
Port = 6380
Passwd = placeholder
"""


@pytest.fixture
def ini_path(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(INI_TEXT, encoding="utf-8")
    return path


def test_reads_values(ini_path):
    cfg = ConfigManager.from_file(ini_path)
    assert cfg["GateServer"]["Port"] == "8080"
    assert cfg["Redis"]["Host"] == "127.0.0.1"
    assert cfg["Redis"]["Passwd"] == "placeholder"


def test_sections_sorted(ini_path):
    cfg = ConfigManager.from_file(ini_path)
    assert cfg.sections() == ["GateServer", "Redis"]


def test_missing_section_and_key_are_empty(ini_path):
    cfg = ConfigManager.from_file(ini_path)
    assert cfg["Nope"]["Port"] == ""
    assert len(cfg["Nope"]) == 0
    assert cfg["Redis"]["Missing"] == ""


def test_keys_are_case_sensitive(ini_path):
    cfg = ConfigManager.from_file(ini_path)
    assert "Port" in cfg["Redis"]
    assert "port" not in cfg["Redis"]


def test_load_config_defaults_to_cwd(ini_path, monkeypatch):
    monkeypatch.chdir(ini_path.parent)
    cfg = load_config()
    assert cfg["Redis"]["Port"] == "6380"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.ini")


def test_section_info_mapping_behaviour():
    info = SectionInfo({"b": "2", "a": "1"})
    assert list(info) == ["a", "b"]
    assert dict(info.items()) == {"a": "1", "b": "2"}
    assert info.get("c", "x") == "x"


def test_manager_built_from_mapping():
    cfg = ConfigManager({"S": {"k": "v"}})
    assert cfg["S"]["k"] == "v"
    assert "S" in cfg
    assert "T" not in cfg