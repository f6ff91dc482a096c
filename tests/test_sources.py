"""Source Aggregator Tests."""

import pytest

from svc_env import SourceReadError, aggregate, load_env_file, parse_env_file


def test_parse_skips_blank_comment_and_malformed_lines():
    """Test blank lines, comments and lines without '=' are ignored."""
    values = parse_env_file("# header\n\nNAME=web\n   # indented comment\nNOEQUALS\n")
    assert values == {"NAME": "web"}


def test_parse_splits_on_first_equals_and_trims():
    """Test key/value split keeps later '=' in the value."""
    values = parse_env_file("  DSN =  postgres://db?sslmode=disable  \n")
    assert values == {"DSN": "postgres://db?sslmode=disable"}


def test_parse_strips_one_layer_of_matching_quotes():
    """Test quoted values are unwrapped exactly once."""
    values = parse_env_file(
        'NAME="web app"\n'
        "SINGLE='x'\n"
        "NESTED=\"'inner'\"\n"
        "MIXED=\"oops'\n"
        'LONE="\n'
        'EMPTY=""\n'
    )
    assert values["NAME"] == "web app"
    assert values["SINGLE"] == "x"
    assert values["NESTED"] == "'inner'"
    assert values["MIXED"] == "\"oops'"
    assert values["LONE"] == '"'
    assert values["EMPTY"] == ""


def test_parse_last_duplicate_wins():
    """Test repeated keys inside one file keep the last value."""
    assert parse_env_file("A=1\nA=2\n") == {"A": "2"}


def test_load_missing_file_returns_none(tmp_path):
    """Test missing files are skipped."""
    assert load_env_file(tmp_path / "absent.env") is None


def test_load_directory_raises_source_read_error(tmp_path):
    """Test an unreadable path fails with the path in the error."""
    with pytest.raises(SourceReadError) as exc_info:
        load_env_file(tmp_path)

    assert exc_info.value.path == str(tmp_path)
    assert str(tmp_path) in str(exc_info.value)


def test_load_invalid_utf8_raises_source_read_error(tmp_path):
    """Test undecodable files fail the load."""
    path = tmp_path / "bad.env"
    path.write_bytes(b"NAME=\xff\xfe\n")

    with pytest.raises(SourceReadError):
        load_env_file(path)


def test_aggregate_later_file_wins(write_env):
    """Test files merge in order with last-file-wins."""
    base = write_env("NAME=base\nPORT=1\n", name="base.env")
    local = write_env("PORT=2\n", name="local.env")

    merged = aggregate([base, local], include_process_env=False)

    assert merged == {"NAME": "base", "PORT": "2"}


def test_aggregate_skips_missing_files(write_env, tmp_path):
    """Test a missing file in the list does not fail the merge."""
    base = write_env("NAME=base\n")

    merged = aggregate([tmp_path / "nope.env", base], include_process_env=False)

    assert merged == {"NAME": "base"}


def test_aggregate_environment_overrides_files(write_env):
    """Test the process environment is merged last."""
    path = write_env("NAME=from_file\nPORT=1\n")

    merged = aggregate([path], environ={"NAME": "from_env"})

    assert merged["NAME"] == "from_env"
    assert merged["PORT"] == "1"


def test_aggregate_upper_cases_keys(write_env):
    """Test keys are case-normalized."""
    path = write_env("name=file\n")

    merged = aggregate([path], environ={"port": "80"})

    assert merged == {"NAME": "file", "PORT": "80"}


def test_aggregate_reads_live_environment(monkeypatch):
    """Test the default environment snapshot is os.environ."""
    monkeypatch.setenv("SVCTEST_AGGREGATE", "live")

    merged = aggregate()

    assert merged["SVCTEST_AGGREGATE"] == "live"


def test_aggregate_does_not_mutate_environ(write_env):
    """Test the injected environment is left untouched."""
    environ = {"NAME": "env"}
    aggregate([write_env("OTHER=1\n")], environ=environ)

    assert environ == {"NAME": "env"}


def test_parse_splits_on_newlines_only():
    """Test unicode line separators stay inside the value."""
    assert parse_env_file("A=x\u2028y\nB=1\r\nC=p\x0cq") == {
        "A": "x\u2028y",
        "B": "1",
        "C": "p\x0cq",
    }
