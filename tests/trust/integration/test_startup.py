"""Domain initialization in a fresh interpreter, the way the API, engine and CLI start."""

import os
import subprocess
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[3] / "src"


def _run(code):
    env = {**os.environ, "PYTHONPATH": str(SRC_DIR), "PROTEAN_ENV": "test"}
    return subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True, timeout=120)


class TestDomainStartup:
    def test_init_before_any_api_import(self):
        result = _run("from trust.domain import trust; trust.init(); print('ok')")
        assert result.returncode == 0, result.stderr
        assert result.stdout.strip().endswith("ok")

    def test_routers_import_after_init(self):
        result = _run(
            "from trust.domain import trust; trust.init(); "
            "from trust.api.integration import router; print(router.prefix)"
        )
        assert result.returncode == 0, result.stderr
        assert result.stdout.strip().endswith("/integration")
