#!/usr/bin/env python3
"""
Shared Wishlist Backend Runner
==============================

Script to run the backend and register users for local development.

Usage:
    python run_app.py                         # Run main app (default)
    python run_app.py --mode dev              # Development mode with auto-reload
    python run_app.py --mode prod             # Production mode
    python run_app.py --port 8001             # Custom port
    python run_app.py --create-user alice alice@example.com
                                              # Register a user and print a dev token
"""

import argparse
import asyncio
import sys

def print_banner():
    """Print application banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║               Shared Wishlist Backend                 ║
╚═══════════════════════════════════════════════════════╝
    """
    print(banner)

def run_main_app(host="0.0.0.0", port=8000, reload=True, workers=1):
    """Run the main FastAPI application"""
    print(f"\nStarting application on {host}:{port}")
    print(f"API Docs: http://localhost:{port}/api/docs")
    print("\n" + "=" * 50)

    import uvicorn
    try:
        uvicorn.run(
            "app.main:app",
            host=host,
            port=port,
            reload=reload,
            workers=None if reload else workers,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")

async def create_user(username: str, email: str) -> int:
    """Register a user in the directory and print an access token"""
    from app.core.database import get_db_context, init_db, close_db
    from app.core.security import SecurityUtils
    from app.api.v1.wishlists.crud import UserCRUD

    await init_db()
    try:
        async with get_db_context() as db:
            if await UserCRUD.get_by_email(db, email):
                print(f"A user with email {email} already exists")
                return 1
            user = await UserCRUD.create(db, username=username, email=email)
    finally:
        await close_db()

    token = SecurityUtils.create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
    })
    print(f"Created user {user.username} <{user.email}> with id {user.id}")
    print(f"Access token: {token}")
    return 0

def main():
    parser = argparse.ArgumentParser(
        description="Shared Wishlist Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_app.py                      # Main app on port 8000
  python run_app.py --port 8001          # Custom port
  python run_app.py --mode prod          # Production mode
  python run_app.py --create-user bob bob@example.com
        """
    )

    parser.add_argument(
        "--mode",
        choices=["main", "dev", "prod"],
        default="main",
        help="Server mode (default: main)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes in prod mode; use Redis for the cache with more than one"
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload"
    )
    parser.add_argument(
        "--create-user",
        nargs=2,
        metavar=("USERNAME", "EMAIL"),
        help="Register a user and print a development access token"
    )

    args = parser.parse_args()

    if args.create_user:
        username, email = args.create_user
        return asyncio.run(create_user(username, email))

    print_banner()

    # Determine reload setting
    reload = not args.no_reload and args.mode != "prod"

    from app.core.config import settings
    workers = settings.worker_count(args.workers)
    if workers != args.workers:
        print("REDIS_URL is not set; running a single worker so cached wishlists stay consistent")

    run_main_app(args.host, args.port, reload, workers)

    return 0

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nGoodbye!")
        sys.exit(0)
