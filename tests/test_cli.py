import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from fixedrec.cli import app
from fixedrec.frontend.loader import sample_schema

runner = CliRunner()


def _write_schema(tmp_path: Path) -> Path:
    path = tmp_path / "schema.yaml"
    path.write_text(yaml.safe_dump(sample_schema(), sort_keys=False))
    return path


def _write_data(tmp_path: Path, *lines: str) -> Path:
    path = tmp_path / "data.txt"
    path.write_text("\n".join(lines) + "\n")
    return path


def test_sample_writes_a_loadable_schema(tmp_path: Path) -> None:
    out = tmp_path / "sample.yaml"
    result = runner.invoke(app, ["sample", "--output", str(out)])
    assert result.exit_code == 0
    assert yaml.safe_load(out.read_text())["name"] == "Transaction"


def test_check_prints_resolved_layout(tmp_path: Path) -> None:
    result = runner.invoke(app, ["check", str(_write_schema(tmp_path))])
    assert result.exit_code == 0
    assert "Detail" in result.stdout
    assert "3 record types" in result.stdout


def test_check_rejects_a_bad_schema(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(
        "name: Txn\nvariants:\n  - {name: A, tag: HD}\n  - {name: B, tag: DTL}\n"
    )
    result = runner.invoke(app, ["check", str(path)])
    assert result.exit_code == 2


def test_parse_to_json_on_stdout(tmp_path: Path) -> None:
    data = _write_data(tmp_path, "HDAlice     030", "TR000002")
    result = runner.invoke(app, ["parse", str(_write_schema(tmp_path)), str(data)])
    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert rows[0]["fields"] == {"name": "Alice     ", "age": 30}
    assert rows[1]["record_type"] == "Trailer"


def test_parse_strict_stops_on_first_error(tmp_path: Path) -> None:
    data = _write_data(tmp_path, "HDAlice     030", "HDAlice     abc")
    result = runner.invoke(app, ["parse", str(_write_schema(tmp_path)), str(data), "--strict"])
    assert result.exit_code == 1


def test_parse_lenient_writes_jsonl(tmp_path: Path) -> None:
    data = _write_data(tmp_path, "HDAlice     030", "ZZbroken")
    out = tmp_path / "out.jsonl"
    result = runner.invoke(
        app,
        ["parse", str(_write_schema(tmp_path)), str(data), "-f", "jsonl", "-o", str(out)],
    )
    assert result.exit_code == 0
    rows = [json.loads(line) for line in out.read_text().splitlines()]
    assert rows[1]["error"] == "invalid record type"


def test_parse_csv_requires_output(tmp_path: Path) -> None:
    data = _write_data(tmp_path, "TR000002")
    result = runner.invoke(app, ["parse", str(_write_schema(tmp_path)), str(data), "-f", "csv"])
    assert result.exit_code == 2


def test_compile_writes_parser_module(tmp_path: Path) -> None:
    out = tmp_path / "gen" / "transaction_parser.py"
    result = runner.invoke(app, ["compile", str(_write_schema(tmp_path)), "-o", str(out)])
    assert result.exit_code == 0
    source = out.read_text()
    assert "class TransactionParseError(Exception):" in source
    assert "def parse(line: str) -> Transaction:" in source
    compile(source, str(out), "exec")


def test_parse_reports_undecodable_input(tmp_path: Path) -> None:
    data = tmp_path / "data.bin"
    data.write_bytes(b"HDAlice     030\n" + "TR000002\n".encode("cp037"))
    result = runner.invoke(app, ["parse", str(_write_schema(tmp_path)), str(data)])
    assert result.exit_code == 2
    assert not isinstance(result.exception, UnicodeDecodeError)


def test_parse_decodes_with_the_requested_encoding(tmp_path: Path) -> None:
    data = tmp_path / "data.bin"
    data.write_bytes("TR000002\n".encode("cp037"))
    result = runner.invoke(
        app, ["parse", str(_write_schema(tmp_path)), str(data), "--encoding", "cp037"]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["fields"] == {"count": 2}
