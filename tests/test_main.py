from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from playmorph.main import cli

XSPF = b"""<?xml version="1.0" encoding="UTF-8"?>
<playlist version="1" xmlns="http://xspf.org/ns/0/">
  <trackList>
    <track><location>http://example.org/a.mp3</location><title>Tom & Jerry</title></track>
    <track><location>http://example.org/b.ogg</location></track>
  </trackList>
</playlist>
"""


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "input.xspf"
    path.write_bytes(XSPF)
    return path


@pytest.fixture
def config(tmp_path):
    return str(tmp_path / "missing.yaml")


def test_convert_to_file_infers_type_from_extension(source, config, tmp_path) -> None:
    output = tmp_path / "out.rss"

    assert cli([str(source), "-c", config, "-o", str(output)]) == 0

    items = ET.fromstring(output.read_bytes()).findall("channel/item")
    assert [item.findtext("title") for item in items] == ["Tom & Jerry", "b.ogg"]
    assert items[0].find("enclosure").get("url") == "http://example.org/a.mp3"


def test_convert_to_stdout_with_explicit_type(source, config, capsysbinary) -> None:
    assert cli([str(source), "-c", config, "-t", "B4S"]) == 0

    root = ET.fromstring(capsysbinary.readouterr().out)
    assert root.tag == "WinampXML"
    assert root.find("playlist").get("num_entries") == "2"


def test_output_defaults_to_input_type(source, config, capsysbinary) -> None:
    assert cli([str(source), "-c", config, "--generic"]) == 0

    captured = capsysbinary.readouterr()
    assert b"http://xspf.org/ns/0/" in captured.out
    assert b"SEQUENCE(x1)" in captured.err
    assert b"MEDIA(x1): http://example.org/a.mp3" in captured.err


def test_rss_media_flag(source, config, capsysbinary) -> None:
    assert cli([str(source), "-c", config, "-t", "rss", "--rss-media"]) == 0

    assert b'<media:content url="http://example.org/a.mp3"' in capsysbinary.readouterr().out


def test_unknown_output_type(source, config, capsys) -> None:
    assert cli([str(source), "-c", config, "-t", "m3u"]) == 2

    assert "Unknown output playlist type <m3u>" in capsys.readouterr().err


def test_unrecognised_input(tmp_path, config, capsys) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    assert cli([str(path), "-c", config]) == 2
    assert "Invalid playlist format" in capsys.readouterr().err


def test_missing_input(tmp_path, config, capsys) -> None:
    assert cli([str(tmp_path / "absent.xspf"), "-c", config]) == 2
    assert "Cannot read" in capsys.readouterr().err


def test_malformed_input(tmp_path, config, capsys) -> None:
    path = tmp_path / "broken.xspf"
    path.write_bytes(b'<playlist xmlns="http://xspf.org/ns/0/"><trackList>')

    assert cli([str(path), "-c", config]) == 1
    assert "Invalid XML document" in capsys.readouterr().err


def test_list_formats(config, capsys) -> None:
    assert cli(["--list-formats", "-c", config]) == 0

    out = capsys.readouterr().out
    for provider_id in ("xspf", "rss", "atom", "b4s", "plist"):
        assert provider_id in out


def test_show_input_for_document_without_namespace(tmp_path, config, capsysbinary) -> None:
    path = tmp_path / "plain.xspf"
    path.write_bytes(
        b"<playlist version='1'><trackList>"
        b"<track><location>http://example.org/a.mp3</location></track>"
        b"</trackList></playlist>"
    )

    assert cli([str(path), "-c", config, "-t", "rss", "-i"]) == 0

    captured = capsysbinary.readouterr()
    assert b"Input playlist (xspf):" in captured.err
    assert b"<location>http://example.org/a.mp3</location>" in captured.err
    assert b'<enclosure url="http://example.org/a.mp3"' in captured.out
