"""PlantTracker CLI — entry point for `planttracker serve|create-user|reminders`."""

import argparse
import asyncio
import sys


def serve(args) -> None:
    """Start the PlantTracker backend."""
    import uvicorn
    from planttracker.core.config import get_settings

    settings = get_settings()

    print("🌱 PlantTracker backend")
    print(f"   Starting on http://{settings.host}:{settings.port}")
    print(f"   API Docs:  http://{settings.host}:{settings.port}/docs")
    print("")

    uvicorn.run(
        "planttracker.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


def create_user(args) -> None:
    """Create a user and print its bearer token."""
    from planttracker.core.config import get_settings
    from planttracker.core.store import GardenStore
    from planttracker.models import Base, create_session_factory

    settings = get_settings()
    engine, SessionFactory = create_session_factory(settings.database_url)
    Base.metadata.create_all(bind=engine)
    user = GardenStore(SessionFactory).create_user(args.email, args.name, args.zip_code)
    engine.dispose()
    print(f"Created user {user.id} <{user.email}>")
    print(f"Token: {user.api_token}")


async def _print_reminders() -> int:
    from planttracker.client.app import GardenApp
    from planttracker.core import setup_logging
    from planttracker.core.config import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)
    app = GardenApp(settings)
    try:
        if not app.session.is_logged_in:
            print("Not signed in. Set PLANTTRACKER_API_TOKEN first.")
            return 1
        items = await app.reminder_items()
        if not items:
            print("No watering reminders set.")
        for item in items:
            plant = item.plant
            print(f"{plant.display_name:<30} {item.status_text:<22} {item.frequency_text}")
        return 0
    finally:
        await app.aclose()


def reminders(args) -> None:
    """Print the watering reminder list."""
    sys.exit(asyncio.run(_print_reminders()))


def main():
    parser = argparse.ArgumentParser(prog="planttracker")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the backend API").set_defaults(func=serve)

    user_parser = sub.add_parser("create-user", help="Create a user and print its token")
    user_parser.add_argument("email")
    user_parser.add_argument("--name", default="")
    user_parser.add_argument("--zip-code", default="")
    user_parser.set_defaults(func=create_user)

    sub.add_parser("reminders", help="Show watering reminders").set_defaults(func=reminders)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
