#!/usr/bin/env python3
"""
Development startup script.

Runs the mock cart backend and the storefront side by side with reload on.
The storefront is pointed at the local backend and only starts once the
backend answers its health check.
"""

import importlib.util
import os
import shutil
import subprocess
import sys
import time
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).parent.parent
BACKEND_PORT = 8001
STOREFRONT_PORT = 8000
REQUIRED_MODULES = ("fastapi", "uvicorn", "httpx", "pydantic_settings", "dotenv")


def missing_modules() -> list:
    return [name for name in REQUIRED_MODULES if importlib.util.find_spec(name) is None]


def ensure_env_file() -> None:
    """Seed .env from .env.example on first run"""
    env_file = PROJECT_ROOT / ".env"
    template = PROJECT_ROOT / ".env.example"
    if env_file.exists() or not template.exists():
        return
    shutil.copy(template, env_file)
    print("Created .env from .env.example")
    print("  Set STRIPE_PUBLISHABLE_KEY there to enable card payments")


def launch(app: str, port: int, env: dict = None) -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", app, "--reload", "--host", "0.0.0.0", "--port", str(port)],
        cwd=PROJECT_ROOT,
        env={**os.environ, **(env or {})},
    )


def wait_for_health(port: int, attempts: int = 30) -> bool:
    url = f"http://localhost:{port}/health"
    for _ in range(attempts):
        try:
            if httpx.get(url, timeout=1.0).status_code == 200:
                return True
        except httpx.TransportError:
            pass
        time.sleep(0.5)
    return False


def main():
    print("GiftDrive Storefront - development servers\n")

    missing = missing_modules()
    if missing:
        print(f"Missing packages: {', '.join(missing)}")
        print('Run: pip install -e ".[test]"')
        sys.exit(1)
    ensure_env_file()

    processes = [launch("giftdrive.mock_backend.main:app", BACKEND_PORT)]
    try:
        if not wait_for_health(BACKEND_PORT):
            print("Mock cart backend did not come up, check its log above")
            return
        processes.append(launch(
            "giftdrive.storefront.main:app",
            STOREFRONT_PORT,
            {"BACKEND_BASE_URL": f"http://localhost:{BACKEND_PORT}"},
        ))

        print(f"\nStorefront API: http://localhost:{STOREFRONT_PORT}/docs")
        print(f"Cart backend:   http://localhost:{BACKEND_PORT}/docs")
        print(f"Sample child:   http://localhost:{STOREFRONT_PORT}/api/storefront/needs/children/7")
        print("\nPress Ctrl+C to stop")

        for process in processes:
            process.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        for process in processes:
            process.terminate()
        for process in processes:
            process.wait()


if __name__ == "__main__":
    main()
