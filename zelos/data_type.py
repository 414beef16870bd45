"""Data types that a trace field can carry."""

from __future__ import annotations

from enum import Enum


class DataType(str, Enum):
    """The type of a trace event field, named as in its serialized form."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    TIMESTAMP_NS = "timestamp[ns]"
    BINARY = "binary"
    STRING = "string"
    BOOLEAN = "bool"

    def __str__(self) -> str:
        return self.value

    def is_numeric(self) -> bool:
        """Whether values of this type are plotted as numbers."""
        return self not in _NON_NUMERIC

    @classmethod
    def parse(cls, text: str) -> DataType:
        """Parse a serialized type name, accepting the ``float`` and ``double`` aliases."""
        alias = _ALIASES.get(text)
        if alias is not None:
            return alias
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"unknown data type: {text!r}") from None

    @classmethod
    def from_duckdb_type(cls, name: str) -> DataType:
        """Map a DuckDB column type name to a data type."""
        try:
            return _FROM_DUCKDB[name]
        except KeyError:
            raise ValueError(f"Could not convert type: {name!r}") from None

    def to_duckdb_type(self) -> str:
        """The DuckDB column type that stores this data type."""
        return _TO_DUCKDB[self]


_NON_NUMERIC = frozenset({DataType.TIMESTAMP_NS, DataType.BINARY, DataType.STRING})

_ALIASES = {"float": DataType.FLOAT32, "double": DataType.FLOAT64}

_TO_DUCKDB = {
    DataType.INT8: "TINYINT",
    DataType.INT16: "SMALLINT",
    DataType.INT32: "INTEGER",
    DataType.INT64: "BIGINT",
    DataType.UINT8: "UTINYINT",
    DataType.UINT16: "USMALLINT",
    DataType.UINT32: "UINTEGER",
    DataType.UINT64: "UBIGINT",
    DataType.FLOAT32: "FLOAT",
    DataType.FLOAT64: "DOUBLE",
    DataType.TIMESTAMP_NS: "TIMESTAMP_NS",
    DataType.BINARY: "BLOB",
    DataType.STRING: "VARCHAR",
    DataType.BOOLEAN: "BOOLEAN",
}

_FROM_DUCKDB = {name: data_type for data_type, name in _TO_DUCKDB.items()}