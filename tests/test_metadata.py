"""Tests for program metadata and its environment sampling."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from cnccoder._version import __version__
from cnccoder.program.metadata import (
    GENERATOR,
    ProgramMetadata,
    generate_name,
    sample_metadata,
)


class TestProgramMetadata:
    def test_header_lines(self) -> None:
        meta = ProgramMetadata(
            name="plate",
            host="bench",
            author="tester",
            created=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
        )
        assert meta.header_lines() == [
            "Name: plate",
            f"Generator: cnccoder {__version__}",
            "Host: bench",
            "Author: tester",
            "Created: 2024-05-06T07:08:09Z",
        ]

    def test_created_rendered_in_utc(self) -> None:
        local = timezone(timedelta(hours=2))
        meta = ProgramMetadata(name="x", created=datetime(2024, 1, 1, 12, 0, tzinfo=local))
        assert meta.header_lines()[-1] == "Created: 2024-01-01T10:00:00Z"

    def test_renamed_keeps_other_fields(self) -> None:
        meta = ProgramMetadata(name="a", host="h")
        renamed = meta.renamed("b")
        assert renamed.name == "b"
        assert renamed.host == "h"
        assert meta.name == "a"


class TestSampling:
    def test_generate_name_is_seedable(self) -> None:
        assert generate_name(random.Random(7)) == generate_name(random.Random(7))

    def test_generate_name_shape(self) -> None:
        adjective, noun = generate_name(random.Random(1)).split("_")
        assert adjective.isalpha() and noun.isalpha()

    def test_sample_metadata(self) -> None:
        before = datetime.now(timezone.utc)
        meta = sample_metadata("job")
        assert meta.name == "job"
        assert meta.generator == GENERATOR
        assert meta.host
        assert meta.author
        assert meta.created >= before

    def test_sample_metadata_generates_name(self) -> None:
        assert sample_metadata().name
