import io

import pytest

from hoptocopter.profile import (
    CoverageBlock,
    ProfileParseError,
    parse_profile_stream,
    parse_profile_text,
    parse_profiles,
)

SAMPLE = "mode: set\na/b.go:1.1,2.1 3 1\na/b.go:3.1,4.1 2 0\n"


def test_parse_sample_file(samples):
    profs = parse_profiles(samples / "coverage.out")
    assert len(profs) == 1
    assert profs[0].file_name == "github.com/esell/hoptocopter/main.go"
    assert profs[0].mode == "set"
    assert len(profs[0].blocks) == 8


def test_parse_scenario_profile():
    profs = parse_profile_text(SAMPLE)
    assert [p.file_name for p in profs] == ["a/b.go"]
    assert profs[0].blocks == (
        CoverageBlock(1, 1, 2, 1, 3, 1),
        CoverageBlock(3, 1, 4, 1, 2, 0),
    )


def test_files_and_blocks_are_sorted():
    text = (
        "mode: count\n"
        "z.go:5.1,6.1 1 0\n"
        "a.go:10.4,11.1 1 2\n"
        "z.go:1.9,2.1 1 1\n"
        "a.go:10.2,10.3 1 0\n"
        "a.go:3.1,4.1 1 0\n"
    )
    profs = parse_profile_text(text)
    assert [p.file_name for p in profs] == ["a.go", "z.go"]
    assert [b.start for b in profs[0].blocks] == [(3, 1), (10, 2), (10, 4)]
    assert [b.start for b in profs[1].blocks] == [(1, 9), (5, 1)]
    assert all(p.mode == "count" for p in profs)


def test_equal_start_positions_keep_input_order():
    text = "mode: set\nf.go:1.1,2.1 1 0\nf.go:1.1,3.1 2 1\n"
    blocks = parse_profile_text(text)[0].blocks
    assert [b.end_line for b in blocks] == [2, 3]


def test_file_name_with_colons_is_kept_whole():
    profs = parse_profile_text("mode: set\nC:/src/x.go:1.2,3.4 5 6\n")
    assert profs[0].file_name == "C:/src/x.go"
    assert profs[0].blocks[0] == CoverageBlock(1, 2, 3, 4, 5, 6)


def test_crlf_bytes_and_blank_lines():
    data = b"mode: atomic\r\nx.go:1.1,1.5 1 1\r\n\r\nx.go:2.1,2.5 1 0\r\n"
    profs = parse_profile_text(data)
    assert profs[0].mode == "atomic"
    assert len(profs[0].blocks) == 2


def test_mode_only_profile_has_no_files():
    assert parse_profile_text("mode: set\n") == []


@pytest.mark.parametrize(
    "text",
    ["", "\n", "mode: \n", "mode:set\n", "set\na.go:1.1,2.1 1 1\n", "a.go:1.1,2.1 1 1\n"],
)
def test_bad_mode_line(text):
    with pytest.raises(ProfileParseError) as exc:
        parse_profile_text(text)
    assert exc.value.lineno == 1
    assert "bad mode line" in str(exc.value)


@pytest.mark.parametrize(
    "line",
    [
        "a.go:1.1,2.1 x 1",
        "a.go:1.1,2.1 1 -1",
        "a.go:1.1,2.1 1",
        "a.go:1,2.1 1 1",
        "a.go1.1,2.1 1 1",
        "a.go:1.1,2.1 1 1 trailing",
        "a.go:1x1,2.1 1 1",
    ],
)
def test_bad_data_line_aborts(line):
    text = f"mode: set\na.go:1.1,2.1 1 1\n{line}\n"
    with pytest.raises(ProfileParseError) as exc:
        parse_profile_text(text)
    assert exc.value.lineno == 3
    assert exc.value.line == line


def test_block_ending_before_start_is_rejected():
    with pytest.raises(ProfileParseError):
        parse_profile_text("mode: set\na.go:5.1,4.9 1 1\n")


def test_invalid_utf8_is_a_parse_error():
    with pytest.raises(ProfileParseError):
        parse_profile_text(b"mode: set\n\xff\xfe.go:1.1,2.1 1 1\n")


def test_parse_stream_binary_and_text():
    assert parse_profile_stream(io.BytesIO(SAMPLE.encode())) == parse_profile_text(SAMPLE)
    assert parse_profile_stream(io.StringIO(SAMPLE)) == parse_profile_text(SAMPLE)


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_profiles(tmp_path / "nope.out")
