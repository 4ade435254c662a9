#!/usr/bin/env python3
import argparse
import os
import subprocess
import sys
from pathlib import Path

import psycopg

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / 'backend'

DROP_SQL = """
DROP TABLE IF EXISTS quiz_responses CASCADE;
DROP TABLE IF EXISTS quiz_attempts CASCADE;
DROP TABLE IF EXISTS question_options CASCADE;
DROP TABLE IF EXISTS quiz_questions CASCADE;
DROP TABLE IF EXISTS quizzes CASCADE;
DROP TABLE IF EXISTS alembic_version;
"""


def libpq_url(database_url: str) -> str:
    # SQLAlchemy URLs carry the driver name; libpq does not accept it.
    return database_url.replace('postgresql+psycopg://', 'postgresql://', 1)


def main() -> int:
    parser = argparse.ArgumentParser(description='Drop and recreate the quiz schema in the development database.')
    parser.add_argument('--yes', action='store_true', help='Required to execute destructive reset.')
    parser.add_argument('--drop-only', action='store_true', help='Skip re-running migrations after the drop.')
    args = parser.parse_args()

    if not args.yes:
        raise SystemExit('Refusing to reset database. Re-run with --yes to confirm destructive action.')

    database_url = os.environ.get('DATABASE_URL')
    if not database_url:
        raise SystemExit('DATABASE_URL is required.')
    if not database_url.startswith('postgresql'):
        raise SystemExit('reset_dev_db only supports PostgreSQL databases.')

    with psycopg.connect(libpq_url(database_url)) as connection:
        with connection.cursor() as cursor:
            cursor.execute(DROP_SQL)
        connection.commit()
    print('Quiz tables dropped.')

    if not args.drop_only:
        subprocess.run([sys.executable, '-m', 'alembic', 'upgrade', 'head'], cwd=str(BACKEND_DIR), check=True)
        print('Schema recreated at alembic head.')

    print('Development database reset completed.')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
