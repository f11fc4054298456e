import os
import re
from datetime import datetime, timedelta

import pytest

from docvault_backend.app.errors import FilenameError
from docvault_backend.app.filenames import (
    MAX_FILENAME_BYTES,
    generate_filename,
    get_original_filename,
    make_prefix,
    next_free_path,
    sanitize_filename,
    validate_dest_filename,
)

PREFIX_RE = re.compile(r"^(\d{14})_(\d{3})_([0-9a-f]{16})-")


def test_prefix_format():
    now = datetime(2026, 10, 18, 9, 30, 15, 42_999)
    prefix = make_prefix(now)
    match = PREFIX_RE.match(prefix)
    assert match
    assert match.group(1) == "20261018093015"
    assert match.group(2) == "042"
    assert prefix == match.group(0)


def test_prefix_random_part_differs():
    now = datetime(2026, 10, 18)
    assert make_prefix(now) != make_prefix(now)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("my report.pdf", "my_report.pdf"),
        ("a - b\t c.txt", "a_b_c.txt"),
        ("__lead__trail__", "lead_trail"),
        ("x___y.tar.gz", "x_y.tar.gz"),
        ("plain", "plain"),
    ],
)
def test_sanitize(raw, expected):
    assert sanitize_filename(raw) == expected


def test_generate_lowercases_extension():
    name = generate_filename("Quarterly Report-Final.PDF")
    assert PREFIX_RE.match(name)
    assert name.endswith("-Quarterly_Report_Final.pdf")


def test_generate_without_extension():
    assert generate_filename("README").endswith("-README")


def test_generate_drops_directories():
    name = generate_filename("../../etc/passwd")
    assert name.endswith("-passwd")
    validate_dest_filename(name)


def test_generated_names_are_time_ordered():
    start = datetime(2026, 10, 18, 23, 59, 59, 998_000)
    names = [generate_filename("a.txt", start + timedelta(milliseconds=i)) for i in range(5)]
    prefixes = [PREFIX_RE.match(n).group(1) + PREFIX_RE.match(n).group(2) for n in names]
    assert prefixes == sorted(prefixes)
    assert len(set(names)) == 5


def test_length_limit_boundary():
    # 36-byte prefix leaves 219 bytes for stem + extension
    fits = "a" * 215 + ".txt"
    name = generate_filename(fits)
    assert len(name.encode("utf-8")) == MAX_FILENAME_BYTES

    with pytest.raises(FilenameError, match="maximum length of 219"):
        generate_filename("a" * 216 + ".txt")


def test_length_limit_counts_bytes():
    with pytest.raises(FilenameError):
        generate_filename("é" * 110 + ".txt")


@pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\\b", "c:d", "a*b", "q?", 'x"y', "<a>", "a|b", "a b", "tab\tname", "nul\x00", "del\x7f"])
def test_validate_rejects(bad):
    with pytest.raises(FilenameError):
        validate_dest_filename(bad)


def test_validate_accepts_generated():
    validate_dest_filename(generate_filename("ok name.txt"))
    validate_dest_filename("plain.txt")


def test_original_filename_round_trip():
    name = generate_filename("My Report-v2.PDF")
    assert get_original_filename(name) == "My_Report_v2.pdf"


def test_original_filename_without_prefix():
    assert get_original_filename("holiday.jpg") == "holiday.jpg"


def test_next_free_path_probes_suffixes(tmp_path):
    d = str(tmp_path)
    assert next_free_path(d, "photo.jpg") == os.path.join(d, "photo.jpg")

    (tmp_path / "photo.jpg").write_bytes(b"")
    assert next_free_path(d, "photo.jpg") == os.path.join(d, "photo_1.jpg")

    (tmp_path / "photo_1.jpg").write_bytes(b"")
    (tmp_path / "photo_2.jpg").write_bytes(b"")
    assert next_free_path(d, "photo.jpg") == os.path.join(d, "photo_3.jpg")


def test_next_free_path_without_extension(tmp_path):
    (tmp_path / "notes").write_bytes(b"")
    assert next_free_path(str(tmp_path), "notes") == os.path.join(str(tmp_path), "notes_1")
