#!/usr/bin/env python3
"""
PrepForge - Main Entry Point.

Usage:
    python main.py                      # Run the FastAPI server
    python main.py --cli                # Start a demo round and print its problems
    python main.py --cli --offline      # Same, without calling Gemini (fallback problems)
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path


def setup_python_path():
    """Add project root to Python path."""
    project_root = Path(__file__).parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


def create_data_directories():
    """Ensure required data directories exist."""
    from src.core.config import get_settings

    Path(get_settings().DATA_DIR).mkdir(parents=True, exist_ok=True)


def run_server(host: str = None, port: int = None):
    """Launch the FastAPI server with uvicorn."""
    import uvicorn
    from src.core.config import configure_logging, get_settings

    # Configure logging before starting server
    configure_logging()

    if host is None:
        host = os.getenv("HOST", "127.0.0.1")

    if port is None:
        port = int(os.getenv("PORT", "8000"))

    enable_reload = get_settings().DEBUG_MODE

    print("\n" + "=" * 60)
    print("🧩  PrepForge - Interview Problem Generator")
    print("=" * 60)
    print(f"\n🌐 API: http://{host}:{port}/api")
    print(f"📚 API Docs: http://{host}:{port}/api/docs")
    print("\nPress Ctrl+C to stop the server\n")

    uvicorn.run(
        "src.api.app:app",
        host=host,
        port=port,
        reload=enable_reload,
        reload_dirs=["src"] if enable_reload else None,
        workers=1,
        log_level="info",
        access_log=False,  # Reduce log noise
    )


class OfflineTextClient:
    """Text client that is always unavailable, so every slot uses its fallback."""

    SERVICE = "offline"

    async def generate(self, prompt: str) -> str:
        from src.core.exceptions import UpstreamUnavailableError

        raise UpstreamUnavailableError(self.SERVICE, "offline mode")


async def run_cli_demo(company: str, role: str, round_index: int, offline: bool):
    """Create a simulation in memory, start one round and print it."""
    setup_python_path()

    from src.app.controller import GenerationController
    from src.app.generation import ProblemGenerator
    from src.app.rounds import RoundSessionManager
    from src.core.config import configure_logging
    from src.core.exceptions import PrepForgeError
    from src.infra.llm.gemini import GeminiTextClient
    from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository
    from src.infra.persistence.store import InMemoryDocumentStore

    configure_logging()
    logger = logging.getLogger(__name__)

    print("\n" + "=" * 60)
    print("🧩  PrepForge - CLI Demo")
    print("=" * 60 + "\n")

    client = OfflineTextClient() if offline else GeminiTextClient()
    store = InMemoryDocumentStore()
    manager = RoundSessionManager(
        GenerationController(ProblemGenerator(client)),
        RoundSessionRepository(store),
        SimulationRepository(store),
    )

    try:
        simulation = manager.create_simulation("cli-user", company, role, estimated_duration="3-4 hours")
        round_ = simulation.round_at(round_index)
        print(f"🏢 {company} / {role}")
        print(f"🎯 Round {round_index + 1}: {round_.name} ({round_.duration})\n")

        session = await manager.start_round("cli-user", simulation.simulation_id, round_index)

        for i, problem in enumerate(session.problems, start=1):
            print(f"  {i}. [{problem.kind.value}] {problem.title} - {problem.difficulty}, {problem.estimated_time}")
            print(f"     {problem.description}")

        print("\n" + "=" * 60)
        print(f"✅ Session {session.session_id}: {len(session.problems)} problems")
        print("=" * 60 + "\n")

    except (PrepForgeError, IndexError) as e:
        logger.error(f"Demo error: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        if not offline:
            print("   Make sure GEMINI_API_KEY is set in .env, or use --offline")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="PrepForge - Interview Problem Generator"
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run a CLI demo instead of the web server",
    )
    parser.add_argument("--company", default="Google", help="Target company for the CLI demo")
    parser.add_argument("--role", default="Senior Frontend Engineer", help="Target role for the CLI demo")
    parser.add_argument("--round", type=int, default=0, help="Round index for the CLI demo")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not call Gemini in the CLI demo",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind the server (default: HOST or 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server (default: PORT or 8000)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Set debug mode before settings are first read
    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    setup_python_path()

    if args.cli:
        asyncio.run(run_cli_demo(args.company, args.role, args.round, args.offline))
        return

    create_data_directories()
    run_server(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
