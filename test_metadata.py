import time
from datetime import datetime

import pytest
from PIL import Image

from media_timestamp_rename.config import RenameConfig
from media_timestamp_rename.errors import (
    ExifDecodeFailure,
    MalformedTimestampField,
    NoUsableTimestampField,
    UnreadableContainer,
)
from media_timestamp_rename.metadata import (
    parse_exif_timestamp,
    read_exif_tags,
    resolve,
    timestamp_from_tags,
)
from media_timestamp_rename.naming import NameResolver


def local(*args):
    return datetime(*args).astimezone()


class TestTimestampFromTags:

    def test_prefers_date_time_original(self):
        tags = {"DateTimeOriginal": "2021:05:06 07:08:09", "DateTime": "2020:01:01 00:00:00"}
        assert timestamp_from_tags(tags) == local(2021, 5, 6, 7, 8, 9)

    def test_falls_back_to_date_time(self):
        assert timestamp_from_tags({"DateTime": "2020:01:01 00:00:00"}) == local(2020, 1, 1)

    def test_no_timestamp_fields(self):
        with pytest.raises(NoUsableTimestampField):
            timestamp_from_tags({"Make": "Canon", "Model": "EOS"})

    def test_malformed_original_is_not_skipped(self):
        tags = {"DateTimeOriginal": "0000:00:00 00:00:00", "DateTime": "2020:01:01 00:00:00"}
        with pytest.raises(MalformedTimestampField):
            timestamp_from_tags(tags)


class TestParseExifTimestamp:

    def test_result_is_local_and_aware(self):
        parsed = parse_exif_timestamp("2019:12:31 23:59:58")
        assert parsed.tzinfo is not None
        assert parsed.replace(tzinfo=None) == datetime(2019, 12, 31, 23, 59, 58)

    def test_strips_padding(self):
        assert parse_exif_timestamp(b"2019:12:31 23:59:58\x00") == local(2019, 12, 31, 23, 59, 58)

    @pytest.mark.parametrize("value", ["", "2019-12-31 23:59:58", "2019:13:01 00:00:00", "yesterday"])
    def test_malformed(self, value):
        with pytest.raises(MalformedTimestampField):
            parse_exif_timestamp(value)


class TestReadExifTags:

    def test_reads_date_time(self, tmp_path, make_jpeg):
        path = make_jpeg(tmp_path / "a.jpg", "2020:02:03 04:05:06")
        assert read_exif_tags(path)["DateTime"] == "2020:02:03 04:05:06"

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"this is not an image at all")
        with pytest.raises(ExifDecodeFailure):
            read_exif_tags(path)


class TestResolve:

    def test_picture(self, tmp_path, make_jpeg):
        path = make_jpeg(tmp_path / "IMG_0001.JPG", "2020:02:03 04:05:06")
        info = resolve(path, RenameConfig())
        assert info.timestamp == local(2020, 2, 3, 4, 5, 6)
        assert info.extension == "JPG"

    def test_picture_without_exif(self, tmp_path):
        path = tmp_path / "plain.png"
        Image.new("RGB", (4, 4)).save(path)
        with pytest.raises(NoUsableTimestampField):
            resolve(path, RenameConfig())

    def test_movie(self, tmp_path, make_movie):
        path = make_movie(tmp_path / "clip.mov", 1577836800)
        info = resolve(path, RenameConfig())
        assert info.timestamp == datetime.fromtimestamp(1577836800).astimezone()
        assert info.extension == "mov"

    def test_movie_with_image_payload(self, tmp_path, make_jpeg):
        path = make_jpeg(tmp_path / "odd.mp4", "2020:02:03 04:05:06")
        with pytest.raises(UnreadableContainer):
            resolve(path, RenameConfig())


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
class TestDaylightSaving:

    @pytest.fixture
    def new_york(self, monkeypatch):
        monkeypatch.setenv("TZ", "America/New_York")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_spring_forward_gap_keeps_wall_clock(self, new_york):
        parsed = parse_exif_timestamp("2021:03:14 02:30:00")
        assert NameResolver(RenameConfig()).render(parsed) == "2021-03-14 02.30.00"

    def test_summer_time_offset(self, new_york):
        parsed = parse_exif_timestamp("2021:07:01 12:00:00")
        assert parsed.utcoffset().total_seconds() == -4 * 3600
        assert parsed.replace(tzinfo=None) == datetime(2021, 7, 1, 12)
