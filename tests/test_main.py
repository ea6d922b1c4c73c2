"""
Import tests for the application entry point.

Each import runs in a fresh interpreter so module load order matches a
deployment (``uvicorn oauth_broker.main:app``) rather than the test session.
"""

import os
import subprocess
import sys

import pytest


pytestmark = pytest.mark.unit

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def run_fresh(code: str) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [PROJECT_ROOT, env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-c", code],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )


@pytest.mark.parametrize(
    "module",
    [
        "oauth_broker.main",
        "oauth_broker.core.errors",
        "oauth_broker.handshake.router",
        "oauth_broker.handshake",
        "oauth_broker.integrations.google",
        "oauth_broker.handshake.sinks",
    ],
)
def test_module_imports_in_fresh_interpreter(module):
    result = run_fresh(f"import {module}")

    assert result.returncode == 0, result.stderr


def test_app_exposes_routes_in_fresh_interpreter():
    result = run_fresh(
        "from oauth_broker.main import app\n"
        "paths = {route.path for route in app.routes}\n"
        "assert {'/auth', '/callback', '/health'} <= paths, paths\n"
    )

    assert result.returncode == 0, result.stderr
