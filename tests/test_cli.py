"""
Tests for the docshift command line.
"""

import base64
import io
import json
import sys

from docshift.cli import main


def test_convert_file_to_file(tmp_path, capsys):
    src = tmp_path / "data.csv"
    src.write_bytes(b"a,b\n1,2\n")
    out = tmp_path / "data.txt"

    assert main(["convert", str(src), "-o", str(out)]) == 0
    assert out.read_bytes() == b"a | b\n1 | 2\n"
    err = capsys.readouterr().err
    assert "warning [minor] Simplified(table): Table written as aligned text rows" in err


def test_convert_stdin_to_stdout(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"\x1b[1mBold\x1b[0m\n")))
    assert main(["convert", "-", "--from", "ansi", "--to", "ansi"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "\x1b[1mBold\x1b[22m\n"
    assert captured.err == ""


def test_transforms_option(tmp_path):
    src = tmp_path / "doc.json"
    src.write_text(json.dumps({
        "docshift": 1,
        "content": {"kind": "document", "children": [
            {"kind": "heading", "props": {"level": 1}, "children": [{"kind": "text", "props": {"content": "T"}}]},
        ]},
    }))
    out = tmp_path / "out.json"
    assert main(["convert", str(src), "-o", str(out), "-t", "shift-headings:1", "--transform", "strip-empty"]) == 0
    data = json.loads(out.read_text())
    assert data["content"]["children"][0]["props"]["level"] == 2


def test_unresolvable_format_is_an_error(tmp_path, capsys):
    src = tmp_path / "noext"
    src.write_bytes(b"x")
    assert main(["convert", str(src), "--to", "text"]) == 1
    assert capsys.readouterr().err.strip() == "error: cannot determine input format - specify explicitly"

    assert main(["convert", str(src), "--from", "text", "--to", "pdf"]) == 1
    assert "error: unknown format: pdf" in capsys.readouterr().err


def test_missing_input_is_an_error(tmp_path, capsys):
    assert main(["convert", str(tmp_path / "missing.txt"), "--to", "text"]) == 1
    assert capsys.readouterr().err.startswith("error: io error:")


def test_invalid_input_is_an_error(tmp_path, capsys):
    src = tmp_path / "broken.docx"
    src.write_bytes(b"not a zip")
    assert main(["convert", str(src), "--to", "text"]) == 1
    assert capsys.readouterr().err.startswith("error: invalid input:")


def test_extract_media(tmp_path, png_bytes):
    src = tmp_path / "doc.json"
    src.write_text(json.dumps({
        "docshift": 1,
        "content": {"kind": "document", "children": [
            {"kind": "image", "props": {"resource": "img1", "alt": "dot"}},
        ]},
        "resources": {
            "img1": {"mime_type": "image/png", "data": base64.b64encode(png_bytes).decode("ascii")},
        },
    }))
    out = tmp_path / "doc.txt"
    media = tmp_path / "media"

    assert main(["convert", str(src), "-o", str(out), "--extract-media", str(media)]) == 0
    assert out.read_text() == "[Image: dot]\n"
    assert (media / "img1.png").read_bytes() == png_bytes


def test_formats_listing(capsys):
    assert main(["formats"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["FORMAT", "READ", "WRITE", "EXTENSIONS"]
    rows = {line.split()[0]: line.split()[1:] for line in lines[1:]}
    assert rows["docx"][:3] == ["yes", "yes", ".docx"]
    assert rows["tsv"][2:] == [".tab,", ".tsv"]


def test_transforms_listing(capsys):
    assert main(["transforms"]) == 0
    assert "shift-headings" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out
