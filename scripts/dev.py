#!/usr/bin/env python3
import argparse
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / 'backend'


def run_migrations() -> None:
    subprocess.run([sys.executable, '-m', 'alembic', 'upgrade', 'head'], cwd=str(BACKEND_DIR), check=True)


def spawn_backend(port: int) -> subprocess.Popen:
    backend_cmd = [
        sys.executable,
        '-m',
        'uvicorn',
        'app.main:app',
        '--host',
        '0.0.0.0',
        '--port',
        str(port),
        '--reload',
    ]
    return subprocess.Popen(backend_cmd, cwd=str(BACKEND_DIR), env=os.environ.copy())


def terminate_process(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.terminate()

    time.sleep(1)
    if process.poll() is None:
        process.kill()


def main() -> int:
    parser = argparse.ArgumentParser(description='Run the quiz attempt API with auto-reload.')
    parser.add_argument('--port', type=int, default=8001)
    parser.add_argument('--migrate', action='store_true', help='Apply alembic migrations before starting.')
    args = parser.parse_args()

    if args.migrate:
        run_migrations()

    backend = spawn_backend(args.port)

    def handle_signal(_sig: int, _frame: object) -> None:
        terminate_process(backend)
        raise SystemExit(0)

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    while backend.poll() is None:
        time.sleep(0.5)
    return backend.returncode or 0


if __name__ == '__main__':
    raise SystemExit(main())
