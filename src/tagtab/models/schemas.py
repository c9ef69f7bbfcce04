"""
Core Pydantic schemas for tagged-tab streams.

These schemas describe the pieces of a stream that outlive a single call:
how a field was physically quoted and which column layout a registered
type carries.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import QuoteStyle


class FieldFormat(BaseModel):
    """
    Physical encoding of one field on the wire.

    ``str(fmt)`` renders the opening delimiter of the field: ``""`` for plain,
    a single backtick, or ``^id^`` for caret-tagged fields.
    """

    model_config = ConfigDict(frozen=True)

    style: QuoteStyle = Field(default=QuoteStyle.PLAIN, description="Quoting style")
    tag: str = Field(default="", description="Caret id (caret style only)")

    @model_validator(mode="after")
    def check_tag(self) -> "FieldFormat":
        """Only caret-tagged fields carry an id, and the id cannot hold a caret"""
        if self.style != QuoteStyle.CARET and self.tag:
            raise ValueError(f"{self.style} fields do not carry a tag")
        if "^" in self.tag:
            raise ValueError(f"caret id cannot contain '^': {self.tag!r}")
        return self

    @classmethod
    def plain(cls) -> "FieldFormat":
        return cls(style=QuoteStyle.PLAIN)

    @classmethod
    def backtick(cls) -> "FieldFormat":
        return cls(style=QuoteStyle.BACKTICK)

    @classmethod
    def caret(cls, tag: str = "") -> "FieldFormat":
        return cls(style=QuoteStyle.CARET, tag=tag)

    @classmethod
    def parse(cls, text: str) -> "FieldFormat":
        """
        Parse the rendering produced by ``str()``.

        Args:
            text: ``""``, a backtick, or ``^id^``

        Returns:
            Matching FieldFormat

        Raises:
            ValueError: If the text is not a known rendering
        """
        if text == "":
            return cls.plain()
        if text == "`":
            return cls.backtick()
        if len(text) >= 2 and text[0] == "^" and text[-1] == "^":
            return cls.caret(text[1:-1])
        raise ValueError(f"unknown field format: {text!r}")

    @property
    def is_plain(self) -> bool:
        return self.style == QuoteStyle.PLAIN

    def __str__(self) -> str:
        if self.style == QuoteStyle.BACKTICK:
            return "`"
        if self.style == QuoteStyle.CARET:
            return f"^{self.tag}^"
        return ""


class TypeDescriptor(BaseModel):
    """Registered identity and column layout of one structured type in a stream."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., description="Namespace (module path) of the type")
    name: str = Field(..., description="Type name within its namespace")
    columns: tuple[str, ...] = Field(default=(), description="Ordered column names")

    @property
    def key(self) -> tuple[str, str]:
        """Registry identity of the type"""
        return (self.namespace, self.name)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name
