"""Tests for column type classification."""

from dbcatalog.database.type_mappers import (
    DuckDBTypeMapper,
    GenericTypeMapper,
    SnowflakeTypeMapper,
    TypeFamily,
)


class TestGenericTypeMapper:
    """Test ANSI type families."""

    def test_integer_names(self):
        mapper = GenericTypeMapper()
        for name in ["INT", "integer", "BIGINT", "SMALLINT", "TINYINT", "INT8", "BIGSERIAL"]:
            assert mapper.to_family(name) == TypeFamily.INTEGER, name

    def test_names_containing_int_are_not_integers(self):
        mapper = GenericTypeMapper()
        assert mapper.to_family("POINT") == TypeFamily.OTHER
        assert mapper.to_family("INTERVAL") == TypeFamily.OTHER
        assert mapper.to_family("VARCHAR(20)") == TypeFamily.STRING

    def test_unknown_and_compatibility(self):
        mapper = GenericTypeMapper()
        assert mapper.to_family("") == TypeFamily.UNKNOWN
        assert mapper.compatible("INTEGER", "DECIMAL(10,0)")
        assert mapper.compatible("", "POINT")
        assert not mapper.compatible("INTEGER", "POINT")


class TestDialectTypeMappers:
    """Test dialect-specific type names."""

    def test_snowflake_number_scale(self):
        mapper = SnowflakeTypeMapper()
        assert mapper.to_family("NUMBER(38,0)") == TypeFamily.INTEGER
        assert mapper.to_family("NUMBER(10,2)") == TypeFamily.DECIMAL

    def test_duckdb_types(self):
        mapper = DuckDBTypeMapper()
        assert mapper.to_family("UHUGEINT") == TypeFamily.INTEGER
        assert mapper.to_family("UUID") == TypeFamily.STRING
        assert mapper.to_family("INTEGER[]") == TypeFamily.OTHER
