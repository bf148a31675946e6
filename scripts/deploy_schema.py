#!/usr/bin/env python
# ============================================================================
# SCHEMA DEPLOYMENT SCRIPT
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# PURPOSE: Deploy the sensorctx schema to PostgreSQL using PydanticToSQL
# USAGE:
#   python scripts/deploy_schema.py --dry-run    # Print DDL
#   python scripts/deploy_schema.py              # Execute deployment
#   python scripts/deploy_schema.py --rebuild    # Drop and recreate schema
#   python scripts/deploy_schema.py --status     # List deployed tables
# ============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import psycopg
from psycopg import sql

from core.config import get_defaults
from core.schema import PydanticToSQL
from repositories.database import _safe_conninfo, get_connection_string


def _print_ddl(generator: PydanticToSQL) -> None:
    for i, stmt in enumerate(generator.generate_all(), 1):
        print(f"-- Statement {i}")
        print(stmt.as_string(None).strip() + ";")
        print()


def _print_status(conn, schema: str) -> None:
    rows = conn.execute(
        sql.SQL("""
        SELECT table_name, COUNT(*) AS columns
        FROM information_schema.columns
        WHERE table_schema = %s
        GROUP BY table_name
        ORDER BY table_name
        """),
        (schema,),
    ).fetchall()
    if not rows:
        print(f"Schema {schema} has no tables.")
        return
    print(f"Tables ({len(rows)}):")
    for table_name, columns in rows:
        print(f"  - {schema}.{table_name} ({columns} columns)")


def main():
    parser = argparse.ArgumentParser(
        description="Deploy sensorctx schema to PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/deploy_schema.py --dry-run     # Preview DDL without executing
  python scripts/deploy_schema.py               # Deploy schema
  python scripts/deploy_schema.py --status      # Check current installation

Environment Variables:
  DATABASE_URL          Full PostgreSQL connection string
  POSTGRES_HOST         Database host (default: localhost)
  POSTGRES_DB           Database name (default: postgres)
  POSTGRES_USER         Database user (default: postgres)
  POSTGRES_PASSWORD     Database password
  POSTGRES_PORT         Database port (default: 5432)
  POSTGRES_SSLMODE      SSL mode (default: prefer)
  SENSORCTX_DB_SCHEMA   Target schema (default: sensorctx)
        """
    )
    parser.add_argument("--dry-run", action="store_true", help="Print DDL without executing")
    parser.add_argument("--rebuild", action="store_true", help="DROP the schema first (destroys data)")
    parser.add_argument("--status", action="store_true", help="List deployed tables")
    parser.add_argument("--connection", type=str, help="PostgreSQL connection string (overrides environment)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    schema = get_defaults().database.schema
    generator = PydanticToSQL(schema_name=schema, destructive=args.rebuild)

    print("=" * 70)
    print("SENSORCTX - Schema Deployment")
    print("=" * 70)

    if args.dry_run:
        if args.rebuild:
            print(generator.generate_drop_schema().as_string(None) + ";\n")
        _print_ddl(generator)
        return

    conninfo = args.connection or get_connection_string()
    print(f"Target: {_safe_conninfo(conninfo)}")
    print(f"Schema: {schema}")
    print("=" * 70)

    with psycopg.connect(conninfo, autocommit=True) as conn:
        if args.status:
            _print_status(conn, schema)
            return

        if args.rebuild:
            print(f"Dropping schema {schema}...")
            conn.execute(generator.generate_drop_schema())

        count = generator.execute(conn)
        print(f"Executed {count} DDL statements.")
        _print_status(conn, schema)


if __name__ == "__main__":
    main()
