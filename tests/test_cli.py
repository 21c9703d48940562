import json
from pathlib import Path

from typer.testing import CliRunner

from plaintext_converter.cli import app


runner = CliRunner()


def write_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        f'[runtime]\noutput_dir = "{(tmp_path / "runs").as_posix()}"\n[conversion]\nlinks = "table"\n',
        encoding="utf-8",
    )
    return path


def test_convert_prints_plaintext(tmp_path: Path) -> None:
    source = tmp_path / "mail.html"
    source.write_text('See <a href="https://x.test/">docs</a>', encoding="utf-8")
    result = runner.invoke(app, ["convert", str(source), "--links", "table", "--width", "0"])
    assert result.exit_code == 0
    assert result.stdout == "See docs [1]\n\nLinks:\n------\n[1] https://x.test/\n"


def test_convert_writes_output_file(tmp_path: Path) -> None:
    source = tmp_path / "mail.html"
    source.write_text('Logo: <img src="x.png" alt="Logo">', encoding="utf-8")
    target = tmp_path / "out" / "mail.txt"
    result = runner.invoke(app, ["convert", str(source), "--no-alt-text", "-o", str(target)])
    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "Logo: "


def test_convert_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["convert", str(tmp_path / "missing.html")])
    assert result.exit_code == 1


def test_convert_rejects_unknown_link_mode(tmp_path: Path) -> None:
    source = tmp_path / "mail.html"
    source.write_text("x", encoding="utf-8")
    result = runner.invoke(app, ["convert", str(source), "--links", "sideways"])
    assert result.exit_code != 0


def test_show_config(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show-config", "--config", str(write_config(tmp_path))])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["conversion"]["links"] == "table"


def test_batch(tmp_path: Path) -> None:
    source_dir = tmp_path / "mail"
    source_dir.mkdir()
    (source_dir / "a.html").write_text("<h2>A</h2>", encoding="utf-8")
    (source_dir / "b.html").write_text('<a href="https://b.test/">B</a>', encoding="utf-8")
    config = write_config(tmp_path)

    result = runner.invoke(app, ["batch", str(source_dir), "--config", str(config), "--parallel", "2"])

    assert result.exit_code == 0
    assert "Processed 2 files: 2 succeeded, 0 failed." in result.stdout
    outputs = sorted((tmp_path / "runs").glob("batch-*/*.txt"))
    assert [path.name for path in outputs] == ["a.txt", "b.txt"]
    assert outputs[1].read_text(encoding="utf-8").endswith("[1] https://b.test/\n")
    assert (tmp_path / "runs" / "summary.csv").exists()
