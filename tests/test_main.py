import json

from main import main


def test_cli_search(catalog_file, capsys):
    assert main(["--catalog", catalog_file, "--part", "screens", "--model", "Note 10S"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["total_matches"] == 1
    assert data["results"][0]["compatibility"] == "Redmi Note 10 = Redmi Note 10S"


def test_cli_list(catalog_file, capsys):
    assert main(["--catalog", catalog_file, "--list"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [c["key"] for c in data] == ["screens", "batteries"]


def test_cli_missing_catalog(tmp_path, capsys):
    assert main(["--catalog", str(tmp_path / "missing.json"), "--part", "screens", "--model", "x"]) == 1


def test_cli_unknown_category(catalog_file, capsys):
    assert main(["--catalog", catalog_file, "--part", "chargers", "--model", "Redmi 9"]) == 1
