#!/usr/bin/env python3
from __future__ import annotations

import asyncio
import importlib
import os
import sys
from pathlib import Path


REQUIRED_PYTHON = (3, 11)


def _is_on(name: str, default: str = "off") -> bool:
    return os.getenv(name, default).strip().casefold() == "on"


def _log_dir() -> Path:
    configured = os.getenv("MNEMO_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".mnemo" / "logs"


async def _check_memory_service(base_url: str) -> tuple[bool, str]:
    from mnemo.core.http import MnemoHTTPError, aclose_http_client, request_with_retry

    health_url = f"{base_url.rstrip('/')}/health"
    try:
        response = await request_with_retry("GET", health_url, timeout_override=2.0, retries=0)
        return True, f"GET {health_url} -> {response.status_code}"
    except MnemoHTTPError as exc:
        return False, str(exc)
    finally:
        await aclose_http_client()


def main() -> int:
    errors: list[str] = []

    if sys.version_info >= REQUIRED_PYTHON:
        print(f"OK: Python {sys.version.split()[0]} (>= 3.11)")
    else:
        errors.append(
            "Python 3.11+ is required. Fix: install Python 3.11+ and recreate your virtual environment."
        )

    try:
        importlib.import_module("mnemo.core.orchestration.orchestrator")
        print("OK: import mnemo")
    except Exception as exc:
        errors.append(
            f"Could not import mnemo ({exc}). Fix: run `python -m pip install -e .[dev]` from repo root."
        )
        for message in errors:
            print(f"ERROR: {message}")
        return 1

    from mnemo.core.config import load_settings

    try:
        settings = load_settings()
        print("OK: settings loaded")
    except Exception as exc:
        errors.append(f"Settings failed to load: {exc}. Fix: check MNEMO_CONFIG_PATH and its YAML.")
        settings = None

    if _is_on("MNEMO_LOG_TO_FILE"):
        log_dir = _log_dir()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            probe = log_dir / ".write-check"
            probe.write_text("ok", encoding="utf-8")
            probe.unlink(missing_ok=True)
            print(f"OK: MNEMO_LOG_DIR writable at {log_dir}")
        except OSError as exc:
            errors.append(
                f"MNEMO_LOG_DIR is not writable ({log_dir}): {exc}. "
                "Fix: set MNEMO_LOG_DIR to a writable directory or MNEMO_LOG_TO_FILE=off."
            )
    else:
        print("OK: file logging disabled")

    if settings is not None:
        if settings.embedding.api_key:
            print(f"OK: embedding key set for model {settings.embedding.model}")
        else:
            errors.append(
                "No embedding API key configured. Fix: export MNEMO_EMBEDDING_API_KEY or OPENAI_API_KEY."
            )

        if _is_on("MNEMO_CHECK_MEMORY_SERVICE", "on"):
            reachable, detail = asyncio.run(_check_memory_service(settings.execution.api_base_url))
            if reachable:
                print(f"OK: memory service reachable ({detail})")
            else:
                errors.append(
                    f"Memory service unreachable ({settings.execution.api_base_url}): {detail}. "
                    "Fix: start the service or set MNEMO_API_BASE_URL."
                )
        else:
            print("OK: memory service check skipped (MNEMO_CHECK_MEMORY_SERVICE=off)")

    if errors:
        for message in errors:
            print(f"ERROR: {message}")
        return 1

    print("OK: environment check passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
