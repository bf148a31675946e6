# ============================================================================
# SCHEMA GENERATION TESTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Tests - DDL generated from models
# PURPOSE: Verify tables, column types and the live-context unique index
# CREATED: 19 OCT 2026
# ============================================================================
"""
Schema Generation Tests

Run with:
    pytest tests/test_schema.py -v
"""

from core.models import Context, Platform, Sensor, TABLE_MODELS
from core.schema import PydanticToSQL


def _render(statements):
    return [stmt.as_string(None) for stmt in statements]


class TestTables:

    def test_context_table(self):
        ddl = PydanticToSQL().generate_table(Context).as_string(None)
        assert '"sensorctx"."contexts"' in ddl
        assert '"to_add" JSONB' in ddl
        assert '"end_date" TIMESTAMPTZ' in ddl
        assert 'PRIMARY KEY ("id")' in ddl

    def test_status_enum_column(self):
        generator = PydanticToSQL()
        ddl = generator.generate_table(Sensor).as_string(None)
        assert '"sensorctx"."entity_status"' in ddl
        assert '"current_config" JSONB NOT NULL' in ddl

    def test_custom_schema(self):
        ddl = PydanticToSQL(schema_name="sensorctx_test").generate_table(Platform).as_string(None)
        assert '"sensorctx_test"."platforms"' in ddl


class TestIndexes:

    def test_one_live_context_per_sensor(self):
        statements = _render(PydanticToSQL().generate_indexes(Context))
        live = [s for s in statements if "idx_contexts_live_sensor" in s]
        assert len(live) == 1
        assert live[0].startswith("CREATE UNIQUE INDEX")
        assert live[0].endswith("WHERE end_date IS NULL")

    def test_path_containment_index(self):
        statements = _render(PydanticToSQL().generate_indexes(Platform))
        assert any("USING GIN" in s and '"hosted_by_path"' in s for s in statements)


class TestGenerateAll:

    def test_every_table_created(self):
        statements = _render(PydanticToSQL().generate_all())
        creates = [s for s in statements if s.startswith("CREATE TABLE")]
        assert len(creates) == len(TABLE_MODELS)
        assert statements[0].startswith("CREATE SCHEMA")
