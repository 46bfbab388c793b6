#!/usr/bin/env python3
"""
Startup script for Railway deployment.
Creates the storage buckets, applies migrations and runs uvicorn.
"""
import os
import sys
import subprocess
import signal

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

BUCKETS = [
    'project-documents',
    'branding',
    'temp-ai-uploads',
]

process = None


def create_directories():
    """Create one directory per storage bucket"""
    base_path = os.environ.get('STORAGE_PATH') or ('/app/data' if os.path.exists('/app') else '../data')

    for bucket in BUCKETS:
        directory = os.path.join(base_path, bucket)
        os.makedirs(directory, exist_ok=True)
        print(f"Directory ensured: {directory}")


def run_migrations():
    """Run alembic migrations"""
    print("Running database migrations...")
    result = subprocess.run(
        ['alembic', 'upgrade', 'head'],
        capture_output=True,
        text=True,
        cwd=BASE_DIR
    )
    if result.returncode != 0:
        print(f"Migration failed: {result.stderr}")
        sys.exit(result.returncode)
    print("Migrations completed successfully")
    if result.stdout:
        print(result.stdout)


def start_uvicorn():
    """Start uvicorn server"""
    port = os.environ.get('PORT', '8000')
    print(f"Starting uvicorn on port {port}")

    proc = subprocess.Popen(
        [
            'uvicorn', 'app.main:app',
            '--host', '0.0.0.0',
            '--port', port
        ],
        cwd=BASE_DIR
    )
    print(f"Uvicorn started with PID {proc.pid}")
    return proc


def signal_handler(signum, frame):
    """Handle shutdown signals"""
    print(f"Received signal {signum}, shutting down...")
    if process and process.poll() is None:
        process.terminate()
        try:
            process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            process.kill()
    sys.exit(0)


def main():
    global process

    create_directories()
    run_migrations()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    process = start_uvicorn()
    try:
        process.wait()
    except KeyboardInterrupt:
        pass
    finally:
        signal_handler(signal.SIGTERM, None)


if __name__ == '__main__':
    main()
