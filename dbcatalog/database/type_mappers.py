"""Database-specific column type classification."""

import re
from abc import ABC, abstractmethod
from enum import Enum

# Whole-word integer type names: INT, INTEGER, BIGINT, INT8, UHUGEINT, SERIAL
INTEGER_TYPE_PATTERN = re.compile(r"\b(U?(TINY|SMALL|MEDIUM|BIG|HUGE)?INT(EGER|\d+)?|(SMALL|BIG)?SERIAL)\b")


class TypeFamily(str, Enum):
    """Broad families of column data types."""
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIME = "time"
    BINARY = "binary"
    OTHER = "other"
    UNKNOWN = "unknown"


class TypeMapper(ABC):
    """Abstract base class for database type mapping."""

    @abstractmethod
    def to_family(self, db_type: str) -> TypeFamily:
        """Classify a database type name."""
        pass

    def compatible(self, first: str, second: str) -> bool:
        """Whether two columns could hold the same key values.

        Unknown types are compatible with anything.
        """
        first_family = self.to_family(first)
        second_family = self.to_family(second)
        if TypeFamily.UNKNOWN in (first_family, second_family):
            return True
        numeric = {TypeFamily.INTEGER, TypeFamily.DECIMAL}
        if first_family in numeric and second_family in numeric:
            return True
        return first_family == second_family


class GenericTypeMapper(TypeMapper):
    """Type mapper for ANSI type names."""

    def to_family(self, db_type: str) -> TypeFamily:
        if not db_type or not db_type.strip():
            return TypeFamily.UNKNOWN
        type_upper = db_type.upper()

        if any(t in type_upper for t in ["VARCHAR", "TEXT", "STRING", "CHAR", "CLOB"]):
            return TypeFamily.STRING
        elif "INTERVAL" in type_upper:
            return TypeFamily.OTHER
        elif INTEGER_TYPE_PATTERN.search(type_upper):
            return TypeFamily.INTEGER
        elif any(t in type_upper for t in ["DECIMAL", "NUMERIC", "NUMBER"]):
            return TypeFamily.DECIMAL
        elif any(t in type_upper for t in ["FLOAT", "DOUBLE", "REAL"]):
            return TypeFamily.FLOAT
        elif "BOOL" in type_upper or type_upper == "BIT":
            return TypeFamily.BOOLEAN
        elif "TIMESTAMP" in type_upper or "DATETIME" in type_upper:
            return TypeFamily.TIMESTAMP
        elif "DATE" in type_upper:
            return TypeFamily.DATE
        elif "TIME" in type_upper:
            return TypeFamily.TIME
        elif any(t in type_upper for t in ["BLOB", "BINARY", "BYTEA"]):
            return TypeFamily.BINARY
        return TypeFamily.OTHER


class SnowflakeTypeMapper(GenericTypeMapper):
    """Type mapper for Snowflake database types."""

    def to_family(self, db_type: str) -> TypeFamily:
        if not db_type or not db_type.strip():
            return TypeFamily.UNKNOWN
        type_upper = db_type.upper()

        # NUMBER(38,0) is Snowflake's integer
        if type_upper.startswith("NUMBER") or type_upper.startswith("FIXED"):
            if "," in type_upper and not type_upper.replace(" ", "").endswith(",0)"):
                return TypeFamily.DECIMAL
            return TypeFamily.INTEGER
        elif type_upper.startswith("TEXT"):
            return TypeFamily.STRING
        elif any(t in type_upper for t in ["VARIANT", "OBJECT", "ARRAY", "GEOGRAPHY"]):
            return TypeFamily.OTHER
        return super().to_family(db_type)


class DuckDBTypeMapper(GenericTypeMapper):
    """Type mapper for DuckDB database types."""

    def to_family(self, db_type: str) -> TypeFamily:
        if not db_type or not db_type.strip():
            return TypeFamily.UNKNOWN
        type_upper = db_type.upper()

        if "UUID" in type_upper:
            return TypeFamily.STRING
        elif any(t in type_upper for t in ["HUGEINT", "UBIGINT", "UINTEGER", "USMALLINT", "UTINYINT"]):
            return TypeFamily.INTEGER
        elif "JSON" in type_upper:
            return TypeFamily.STRING
        elif any(t in type_upper for t in ["STRUCT", "MAP", "LIST", "[]", "UNION"]):
            return TypeFamily.OTHER
        return super().to_family(db_type)
