"""Tests for the treesurgeon command line."""

from __future__ import annotations

from click.testing import CliRunner

from treesurgeon.cli.main import __version__, main

TREES = "(S (NP (DT the) (NN dog)) (VP (VBD saw) (NP (DT a) (NN cat))))\n(S (VP (VB go)))\n"


def _corpus(tmp_path):
    path = tmp_path / "corpus.mrg"
    path.write_text(TREES, encoding="utf-8")
    return path


class TestSearch:

    def test_prints_match_roots(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["search", "NP < DT", str(_corpus(tmp_path))])
        assert result.exit_code == 0, result.output
        assert "(NP (DT the) (NN dog))" in result.output
        assert "(NP (DT a) (NN cat))" in result.output

    def test_named_node(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["search", "NP < NN=n", str(_corpus(tmp_path)), "-n", "n"])
        assert result.exit_code == 0, result.output
        assert "(NN dog)" in result.output
        assert "(NP (DT the) (NN dog))" not in result.output

    def test_count(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["search", "VP", str(_corpus(tmp_path)), "--count"])
        assert result.exit_code == 0, result.output
        assert "2" in result.output.splitlines()

    def test_filename_prefix(self, tmp_path) -> None:
        path = _corpus(tmp_path)
        result = CliRunner().invoke(main, ["search", "VB", str(path), "--filename"])
        assert f"{path}:1: (VB go)" in result.output

    def test_bad_pattern(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["search", "NP <", str(_corpus(tmp_path))])
        assert result.exit_code == 1
        assert "end of input" in result.output

    def test_unknown_name(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["search", "NP", str(_corpus(tmp_path)), "-n", "x"])
        assert result.exit_code == 1
        assert "does not capture" in result.output


class TestApply:

    def test_rule_file_to_stdout(self, tmp_path) -> None:
        rules = tmp_path / "dt.rules"
        rules.write_text("NP < DT=d\n\ndelete d\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["apply", str(_corpus(tmp_path)), "-s", str(rules)])
        assert result.exit_code == 0, result.output
        assert "(S (NP (NN dog)) (VP (VBD saw) (NP (NN cat))))" in result.output
        assert "(S (VP (VB go)))" in result.output

    def test_config_to_output_directory(self, tmp_path) -> None:
        corpus = tmp_path / "in"
        corpus.mkdir()
        _corpus(corpus)
        config = tmp_path / "run.toml"
        config.write_text(
            '[[rules]]\npattern = "VB|VBD=v"\nsurgery = "relabel v VERB"\n',
            encoding="utf-8",
        )
        out = tmp_path / "out"
        result = CliRunner().invoke(main, ["apply", str(corpus), "-c", str(config), "-o", str(out)])
        assert result.exit_code == 0, result.output
        written = (out / "corpus.mrg").read_text(encoding="utf-8")
        assert "(VERB saw)" in written
        assert "(VERB go)" in written

    def test_needs_rules(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["apply", str(_corpus(tmp_path))])
        assert result.exit_code == 2

    def test_bad_rule_file(self, tmp_path) -> None:
        rules = tmp_path / "bad.rules"
        rules.write_text("NP=np\n\ndelete missing\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["apply", str(_corpus(tmp_path)), "-s", str(rules)])
        assert result.exit_code == 1
        assert "missing" in result.output


class TestCheck:

    def test_reports_rules(self, tmp_path) -> None:
        rules = tmp_path / "ok.rules"
        rules.write_text("NP < DT=d\n\ndelete d\n\nVP=vp\n\nrelabel vp X\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check", str(rules)])
        assert result.exit_code == 0, result.output
        assert "OK: 2 rule(s)" in result.output

    def test_reports_errors(self, tmp_path) -> None:
        rules = tmp_path / "bad.rules"
        rules.write_text("NP <\n\ndelete d\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check", str(rules)])
        assert result.exit_code == 1
        assert "Error" in result.output


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert __version__ in result.output
