"""
Integration tests for typed object streams.

Tests cover:
- Register/reference control rows across several types
- Round trips of dataclasses and pydantic models
- Embedded structures and shadowed names
- Decoding errors
"""

import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Optional

import pytest
from pydantic import BaseModel

from tagtab import Decoder, Embedded, Encoder
from tagtab.core.fields import type_identity
from tagtab.exceptions import (
    FieldCountMismatchError,
    FieldNotFoundError,
    MissingActiveTypeError,
    ScalarTypeMismatchError,
    UnknownTypeReferenceError,
    UnsupportedTypeError,
)


@dataclass
class User:
    id: int = 0
    name: str = ""


@dataclass
class Group:
    id: int = 0
    title: str = ""


@dataclass
class Stamp:
    at: Optional[datetime] = None
    by: str = ""


@dataclass
class Event:
    id: int = 0
    stamp: Annotated[Stamp, Embedded] = field(default_factory=Stamp)
    by: str = ""
    payload: bytes = b""
    score: float = 0.0


@dataclass
class Tagged:
    id: int = 0
    tags: list = field(default_factory=list)


class Profile(BaseModel):
    id: int = 0
    bio: str = ""
    rating: Optional[float] = None


@dataclass
class Marker:
    label: str = ""


def encoded(*values) -> bytes:
    buffer = io.BytesIO()
    Encoder(buffer).encode_all(values)
    return buffer.getvalue()


def decoder_for(data: bytes | str) -> Decoder:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return Decoder(io.BytesIO(data))


USER_NS, USER_NAME = type_identity(User)
GROUP_NS, GROUP_NAME = type_identity(Group)


@pytest.mark.integration
class TestControlRows:
    """Tests for registry traffic on the wire."""

    def test_same_type_registers_once(self):
        data = encoded(User(1, "alice"), User(2, "bob"))

        assert data == (
            f"`*`\t{USER_NS}\t{USER_NAME}\tid\tname\n1\talice\n2\tbob\n".encode()
        )

    def test_switching_back_uses_reference(self):
        data = encoded(User(1, "alice"), Group(7, "admins"), User(2, "bob"))

        assert data == (
            f"`*`\t{USER_NS}\t{USER_NAME}\tid\tname\n"
            "1\talice\n"
            f"`*`\t{GROUP_NS}\t{GROUP_NAME}\tid\ttitle\n"
            "7\tadmins\n"
            f"`@`\t{USER_NS}\t{USER_NAME}\n"
            "2\tbob\n"
        ).encode()

    def test_rows_report_descriptors(self):
        decoder = decoder_for(encoded(User(1, "alice"), Group(7, "admins"), User(2, "bob")))

        rows = [(d.name, values) for d, values in decoder.rows()]

        assert rows == [
            (USER_NAME, ["1", "alice"]),
            (GROUP_NAME, ["7", "admins"]),
            (USER_NAME, ["2", "bob"]),
        ]
        assert len(decoder.registry) == 2

    def test_literal_marker_values_are_data(self):
        data = encoded(Marker("*"), Marker("@"))
        decoder = decoder_for(data)

        assert [m.label for m in decoder.objects(Marker)] == ["*", "@"]

    @pytest.mark.parametrize("marker", ["*", "@"])
    def test_marker_value_equal_to_comment_rune_is_data(self, marker):
        buffer = io.BytesIO()
        Encoder(buffer, comment=marker).encode_all([Marker(marker), Marker("x")])

        decoder = Decoder(io.BytesIO(buffer.getvalue()), comment=marker)

        assert [m.label for m in decoder.objects(Marker)] == [marker, "x"]

    def test_bad_value_leaves_registry_untouched(self):
        buffer = io.BytesIO()
        encoder = Encoder(buffer)

        with pytest.raises(ScalarTypeMismatchError):
            encoder.encode(Tagged(tags=["x"]))

        assert len(encoder.registry) == 0
        assert buffer.getvalue() == b""


@pytest.mark.integration
class TestRoundTrip:
    """Tests for encode then decode."""

    def test_mixed_types(self):
        decoder = decoder_for(encoded(User(1, "alice"), Group(7, "admins"), User(2, "bob")))

        assert decoder.decode(User()) == User(1, "alice")
        assert decoder.decode(Group()) == Group(7, "admins")
        assert decoder.decode(User()) == User(2, "bob")
        assert decoder.decode(User()) is None

    def test_tricky_text_values(self, tricky_strings):
        users = [User(i, text) for i, text in enumerate(tricky_strings)]
        decoder = decoder_for(encoded(*users))

        assert list(decoder.objects(User)) == users

    def test_all_scalar_kinds(self):
        @dataclass
        class Sample:
            n: int = 0
            s: str = ""
            f: float = 0.0
            t: Optional[datetime] = None
            b: bytes = b""

        when = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        value = Sample(n=-5, s="x\ty", f=12.9, t=when, b=b"\x00\xff")

        decoded = decoder_for(encoded(value)).decode(Sample())

        assert decoded == value

    def test_pydantic_models(self):
        profiles = [Profile(id=1, bio="hi\nthere", rating=4.5), Profile(id=2)]

        decoded = list(decoder_for(encoded(*profiles)).objects(Profile))

        assert [p.model_dump() for p in decoded] == [p.model_dump() for p in profiles]
        assert decoded[1].rating is None

    def test_embedded_first_name_wins(self):
        """Only the embedded 'by' is written and read back."""
        event = Event(id=1, stamp=Stamp(by="inner"), by="outer", payload=b"abc", score=2.5)
        data = encoded(event)

        assert data.split(b"\n")[0].endswith(b"\tid\tat\tby\tpayload\tscore")
        assert b"outer" not in data

        decoded = decoder_for(data).decode(Event(by="untouched"))

        assert decoded.stamp == Stamp(at=None, by="inner")
        assert decoded.by == "untouched"
        assert decoded.payload == b"abc"
        assert decoded.score == 2.5

    def test_empty_fields_decode_to_zero_values(self):
        data = f"`*`\t{USER_NS}\t{USER_NAME}\tid\tname\n\t\n"

        assert decoder_for(data).decode(User(5, "x")) == User(0, "")

    def test_fields_not_in_stream_keep_values(self):
        data = f"`*`\t{USER_NS}\t{USER_NAME}\tname\nbob\n"

        assert decoder_for(data).decode(User(9, "x")) == User(9, "bob")

    def test_comments_around_typed_rows(self):
        buffer = io.BytesIO()
        Encoder(buffer, comment="#").encode_all([User(1, "#one"), Marker("#mark")])

        text = b"# leading comment\n" + buffer.getvalue()
        decoder = Decoder(io.BytesIO(text), comment="#")

        assert decoder.decode(User()) == User(1, "#one")
        assert decoder.decode(Marker()) == Marker("#mark")


@pytest.mark.integration
class TestDecodeErrors:
    """Tests for decoding failures."""

    def test_data_before_registration(self):
        with pytest.raises(MissingActiveTypeError):
            decoder_for("1\talice\n").decode(User())

    def test_unknown_reference(self):
        with pytest.raises(UnknownTypeReferenceError):
            decoder_for("`@`\tapp\tNobody\n1\n").decode(User())

    def test_column_without_field(self):
        data = f"`*`\t{USER_NS}\t{USER_NAME}\tid\temail\n1\ta@b\n"

        with pytest.raises(FieldNotFoundError) as exc_info:
            decoder_for(data).decode(User())

        assert exc_info.value.column == "email"

    def test_failed_decode_assigns_nothing(self):
        data = f"`*`\t{USER_NS}\t{USER_NAME}\tname\tid\nbob\tnot-a-number\n"
        user = User(1, "alice")

        with pytest.raises(ScalarTypeMismatchError):
            decoder_for(data).decode(user)

        assert user == User(1, "alice")

    def test_row_width_mismatch(self):
        data = f"`*`\t{USER_NS}\t{USER_NAME}\tid\tname\n1\n"

        with pytest.raises(FieldCountMismatchError) as exc_info:
            decoder_for(data).decode(User())

        assert exc_info.value.record == ["1"]

    def test_destination_must_be_structured(self):
        with pytest.raises(UnsupportedTypeError):
            decoder_for("").decode({"id": 1})

    def test_encoder_rejects_plain_values(self):
        with pytest.raises(UnsupportedTypeError):
            Encoder(io.BytesIO()).encode({"id": 1})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
