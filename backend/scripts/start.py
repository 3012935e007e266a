#!/usr/bin/env python3
"""
Signal desk launcher
====================

Features:
  - Check environment and dependencies
  - Check the configured market data provider
  - Start the backend service

Usage:
    python scripts/start.py              # normal start
    python scripts/start.py --check      # check the environment only
    python scripts/start.py --port 8080  # custom port
"""

import argparse
import asyncio
import os
import sys

# Make signaldesk/signalcore importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def print_banner():
    """Print the startup banner."""
    print()
    print("=" * 60)
    print("   Signal Desk")
    print("   1-minute FX HIGH/LOW signals")
    print("=" * 60)
    print()


def check_python_version():
    """Check the Python version."""
    print("[check] Python version...", end=" ")
    version = sys.version_info
    if version.major >= 3 and version.minor >= 11:
        print(f"✓ Python {version.major}.{version.minor}.{version.micro}")
        return True
    else:
        print(f"✗ Python {version.major}.{version.minor} (needs >= 3.11)")
        return False


def check_dependencies():
    """Check the core dependencies."""
    print("[check] Core dependencies...")

    deps = [
        ("fastapi", "FastAPI"),
        ("uvicorn", "Uvicorn"),
        ("httpx", "httpx"),
        ("numpy", "NumPy"),
        ("pydantic_settings", "pydantic-settings"),
        ("yaml", "PyYAML"),
        ("orjson", "orjson"),
    ]

    all_ok = True
    for module, name in deps:
        try:
            __import__(module)
            print(f"  ✓ {name}")
        except ImportError:
            print(f"  ✗ {name} (pip install {name})")
            all_ok = False

    return all_ok


async def check_provider():
    """Fetch one quote from the configured provider."""
    from signaldesk.clients import build_provider
    from signaldesk.config import get_settings
    from signaldesk.desk_config import load_desk_config

    settings = load_desk_config().apply(get_settings())
    print(f"[check] Market data ({settings.provider})...", end=" ")
    provider = build_provider(settings)
    try:
        quote = await provider.get_latest_quote(settings.symbol)
        print(f"✓ {quote.symbol}: {quote.mid:.5f}")
        return True
    except Exception as e:
        print(f"✗ request failed: {e}")
        return False
    finally:
        await provider.close()


async def run_checks():
    """Run every check."""
    print()
    print("-" * 60)
    print("Environment checks")
    print("-" * 60)

    results = []

    results.append(check_python_version())
    deps_ok = check_dependencies()
    results.append(deps_ok)
    if deps_ok:
        results.append(await check_provider())

    print()
    print("-" * 60)

    if all(results):
        print("✓ All checks passed!")
        return True
    else:
        print("✗ Some checks failed, fix them and retry")
        return False


def start_server(host: str, port: int):
    """Start the server."""
    from signaldesk.config import get_settings
    from signaldesk.desk_config import load_desk_config

    settings = load_desk_config().apply(get_settings())

    print()
    print("-" * 60)
    print("  Starting service")
    print("-" * 60)
    print(f"  Pair:      {settings.symbol}")
    print(f"  Timeframe: {settings.timeframe}")
    print(f"  Provider:  {settings.provider}")
    print(f"  Address:   http://{host}:{port}")
    print(f"  API:       http://{host}:{port}/docs")
    print("-" * 60)
    print()

    import uvicorn

    uvicorn.run(
        "signaldesk.main:app",
        host=host,
        port=port,
        log_level="warning",
        reload=False,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Signal desk launcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/start.py              # normal start
  python scripts/start.py --check      # check the environment only
  python scripts/start.py --port 8080  # custom port
        """
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="only check the environment, do not start"
    )
    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="start without running the checks"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="listen address (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="listen port (default: 8000)"
    )

    args = parser.parse_args()

    print_banner()

    if not args.skip_checks and not asyncio.run(run_checks()):
        sys.exit(1)

    if args.check:
        print()
        print("Checks complete, exiting.")
        return

    start_server(args.host, args.port)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nService stopped.")
        sys.exit(0)
